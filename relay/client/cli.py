"""Interactive chat client: `relay-chat [--protocol sse|websocket|nostream] [question]`."""

from __future__ import annotations

import argparse
import asyncio
import sys

from relay.client.playback import PlaybackSimulator
from relay.client.receiver import Receiver
from relay.client.render import TerminalRenderer
from relay.client.session import Binding, ChatSession
from relay.config import get_config
from relay.core.logging_config import setup_logging

HELP = "Commands: /protocol sse|websocket|nostream, /quit"


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    server = config.server
    parser = argparse.ArgumentParser(prog="relay-chat", description="Chat with the relay server.")
    parser.add_argument("question", nargs="?", help="Ask once and exit")
    parser.add_argument(
        "--protocol", choices=[b.value for b in Binding], default=Binding.SSE.value
    )
    parser.add_argument("--url", default=f"http://localhost:{server.http_port}")
    parser.add_argument("--ws-url", default=f"ws://localhost:{server.socket_port}{server.socket_path}")
    parser.add_argument("--token-delay-ms", type=float, default=config.playback.token_delay_ms)
    parser.add_argument("--log-level", default="WARNING")
    return parser


async def run(args: argparse.Namespace) -> int:
    renderer = TerminalRenderer()
    session = ChatSession(
        base_url=args.url,
        socket_url=args.ws_url,
        protocol=args.protocol,
        receiver=Receiver(renderer),
        playback=PlaybackSimulator(token_delay=args.token_delay_ms / 1000.0),
        status=renderer.status,
    )
    try:
        await session.check_connection()
        if args.question:
            state = await session.ask(args.question)
            return 1 if state is None or state.failed else 0
        print(HELP)
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                return 0
            line = line.strip()
            if line in ("/quit", "/exit"):
                return 0
            if line.startswith("/protocol"):
                name = line.removeprefix("/protocol").strip()
                if name not in [b.value for b in Binding]:
                    print(HELP)
                    continue
                await session.switch(name)
                continue
            await session.ask(line)
    finally:
        await session.close()


def main() -> None:
    args = build_parser().parse_args()
    setup_logging(level=args.log_level, use_json=False)
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
