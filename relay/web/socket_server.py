"""Message-socket binding over `websockets`.

One worker per connection. Questions are handled one at a time: the next
inbound message is read only after the previous request's terminal message
went out. A closed socket cancels the in-flight request and its upstream call.

The demo path takes no question: the scripted words are pushed as soon as the
handshake completes, then the server closes the socket.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from http import HTTPStatus
from typing import AsyncIterator

import websockets
from websockets.exceptions import ConnectionClosed

from relay.core.adapter import RelayAdapter, words_only
from relay.core.errors import DecodeFailure, InvalidRequest, ServiceUnavailable
from relay.core.events import Event, RelayRequest, is_terminal
from relay.transport import message_socket

logger = logging.getLogger(__name__)


def _path(raw: str) -> str:
    return raw.split("?", 1)[0]


class RelaySocketServer:
    """Routes `socket_path` to the upstream adapter and `demo_path` to the scripted one."""

    def __init__(
        self,
        adapter: RelayAdapter,
        demo_adapter: RelayAdapter | None = None,
        host: str = "0.0.0.0",
        port: int = 8081,
        socket_path: str = "/ai/ws",
        demo_path: str = "/ws",
    ) -> None:
        self.host = host
        self.port = port
        self._adapter = adapter
        self._demo_adapter = demo_adapter
        self._socket_path = socket_path
        self._demo_path = demo_path
        self._server = None

    def _route(self, path: str) -> RelayAdapter | None:
        path = _path(path)
        if path == self._socket_path:
            return self._adapter
        if path == self._demo_path:
            return self._demo_adapter
        return None

    def process_request(self, connection, request):
        """Refuse the handshake for unknown paths or an unconfigured upstream."""
        adapter = self._route(request.path)
        if adapter is None:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
        try:
            adapter.ensure_available()
        except ServiceUnavailable as e:
            return connection.respond(HTTPStatus.SERVICE_UNAVAILABLE, f"{e}\n")
        return None

    async def handle_client(self, websocket) -> None:
        client_id = str(uuid.uuid4())[:8]
        logger.info("socket client connected", extra={"client_id": client_id})
        try:
            if _path(websocket.request.path) == self._demo_path:
                await self._serve_demo(websocket, client_id)
            else:
                await self._serve_questions(websocket, client_id)
        except ConnectionClosed:
            pass
        finally:
            logger.info("socket client disconnected", extra={"client_id": client_id})

    async def _serve_questions(self, websocket, client_id: str) -> None:
        async for raw in websocket:
            try:
                req = message_socket.decode_question(raw)
            except DecodeFailure as e:
                logger.warning("dropping inbound message: %s", e, extra={"client_id": client_id})
                continue
            except InvalidRequest as e:
                await websocket.send(message_socket.error_message(str(e)))
                continue
            if req is None:
                continue
            logger.info(
                "question received",
                extra={"binding": "message_socket", "client_id": client_id, "prompt_chars": len(req.prompt)},
            )
            events = self._adapter.open_stream(req)
            if not await self._run_request(websocket, events, client_id):
                break

    async def _serve_demo(self, websocket, client_id: str) -> None:
        events = words_only(self._demo_adapter.open_stream(RelayRequest(prompt="demo")))
        if await self._run_request(websocket, events, client_id):
            await websocket.close()

    async def _run_request(self, websocket, events: AsyncIterator[Event], client_id: str) -> bool:
        """Relay one request. False when the socket closed before the terminal message."""
        relay = asyncio.create_task(self._relay(websocket, events))
        closed = asyncio.create_task(websocket.wait_closed())
        try:
            done, _ = await asyncio.wait({relay, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
        if relay in done:
            try:
                relay.result()
            except ConnectionClosed:
                logger.info("socket closed mid-response, upstream released", extra={"client_id": client_id})
                return False
            return True
        relay.cancel()
        with contextlib.suppress(asyncio.CancelledError, ConnectionClosed):
            await relay
        logger.info("socket closed mid-response, upstream released", extra={"client_id": client_id})
        return False

    async def _relay(self, websocket, events: AsyncIterator[Event]) -> None:
        async with contextlib.aclosing(events) as stream:
            async for event in stream:
                await websocket.send(message_socket.dumps(event))
                if is_terminal(event):
                    return

    async def start(self) -> int:
        """Bind and start accepting. Returns the bound port."""
        self._server = await websockets.serve(
            self.handle_client,
            self.host,
            self.port,
            process_request=self.process_request,
            ping_interval=30,
            ping_timeout=10,
        )
        port = next(iter(self._server.sockets)).getsockname()[1]
        logger.info("socket server listening", extra={"host": self.host, "port": port})
        return port

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
