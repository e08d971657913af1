"""Entry point for relay-server: HTTP bindings on Flask, socket binding on `websockets`."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from relay.config import get_config
from relay.core.adapter import RelayAdapter
from relay.core.logging_config import setup_logging
from relay.models.gateway import build_demo_upstream, build_upstream
from relay.web.app import create_app
from relay.web.bridge import LoopBridge
from relay.web.socket_server import RelaySocketServer

if TYPE_CHECKING:
    from relay.config.loader import Config

logger = logging.getLogger(__name__)


def main() -> None:
    config = get_config()
    setup_logging(config.logging.level, use_json=config.logging.use_json)
    try:
        run_server(config)
    except KeyboardInterrupt:
        logger.info("server shutdown requested")


def run_server(config: Config) -> None:
    adapter = RelayAdapter(build_upstream(config))
    demo_adapter = RelayAdapter(build_demo_upstream(config))
    bridge = LoopBridge().start()
    socket_server = RelaySocketServer(
        adapter,
        demo_adapter,
        host=config.server.host,
        port=config.server.socket_port,
        socket_path=config.server.socket_path,
        demo_path=config.server.demo_socket_path,
    )
    try:
        bridge.call(socket_server.start())
    except OSError as e:
        logger.error("cannot bind socket server: %s", e)
        bridge.stop()
        sys.exit(1)
    app = create_app(adapter, demo_adapter, bridge)
    logger.info(
        "HTTP server starting",
        extra={"host": config.server.host, "port": config.server.http_port},
    )
    try:
        app.run(host=config.server.host, port=config.server.http_port, threaded=True)
    finally:
        bridge.call(socket_server.close())
        bridge.stop()


if __name__ == "__main__":
    main()
