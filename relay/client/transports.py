"""Client side of the three bindings.

Push-stream and unary go over one shared `httpx.AsyncClient`; the message
socket keeps one `websockets` connection open across sequential requests.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

import httpx
import websockets
from websockets.exceptions import ConnectionClosed, InvalidStatus

from relay.core.errors import (
    DecodeFailure,
    InvalidRequest,
    ServiceUnavailable,
    TransportFailure,
    UpstreamFailure,
)
from relay.core.events import Event, RelayRequest, is_terminal
from relay.transport import message_socket, unary
from relay.transport.push_stream import FrameDecoder
from relay.transport.unary import UnaryPayload

logger = logging.getLogger(__name__)


def _status_error(status: int, text: str) -> Exception:
    text = text.strip() or f"HTTP error! status: {status}"
    if status == 503:
        return ServiceUnavailable(text)
    if status == 400:
        return InvalidRequest(text)
    return TransportFailure(f"HTTP error! status: {status}: {text}")


class PushStreamTransport:
    """POST the question, read frames as they arrive."""

    def __init__(self, client: httpx.AsyncClient, path: str = "/ai/stream") -> None:
        self._client = client
        self._path = path

    async def events(self, req: RelayRequest) -> AsyncIterator[Event]:
        try:
            async with self._client.stream("POST", self._path, json={"question": req.prompt}) as resp:
                if resp.status_code != 200:
                    body = await resp.aread()
                    raise _status_error(resp.status_code, body.decode("utf-8", errors="replace"))
                decoder = FrameDecoder()
                async for chunk in resp.aiter_text():
                    for event in decoder.feed(chunk):
                        yield event
                        if is_terminal(event):
                            return
        except httpx.HTTPError as e:
            raise TransportFailure(f"Connection failed: {e}") from e


class UnaryTransport:
    def __init__(self, client: httpx.AsyncClient, path: str = "/ai/nostream") -> None:
        self._client = client
        self._path = path

    async def fetch(self, req: RelayRequest) -> UnaryPayload:
        try:
            resp = await self._client.post(self._path, json={"question": req.prompt})
        except httpx.HTTPError as e:
            raise TransportFailure(f"Request failed: {e}") from e
        if resp.status_code == 500:
            try:
                data = resp.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("error"):
                raise UpstreamFailure(str(data["error"]))
        if resp.status_code != 200:
            raise _status_error(resp.status_code, resp.text)
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeFailure(f"unary response is not JSON: {e}") from e
        return unary.decode_response(data)


class SocketTransport:
    """One duplex connection, reused for sequential questions."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._conn = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        if self._conn is not None:
            return
        try:
            self._conn = await websockets.connect(self._url)
        except InvalidStatus as e:
            raise _status_error(e.response.status_code, e.response.body.decode("utf-8", errors="replace")) from e
        except (OSError, websockets.exceptions.InvalidHandshake) as e:
            raise TransportFailure(f"WebSocket connection failed: {e}") from e
        logger.debug("socket connected", extra={"url": self._url})

    async def events(self, req: RelayRequest) -> AsyncIterator[Event]:
        await self.connect()
        conn = self._conn
        try:
            await conn.send(message_socket.encode_question(req.prompt))
            async for raw in conn:
                try:
                    event = message_socket.decode_event(raw)
                except DecodeFailure as e:
                    logger.warning("dropping socket message: %s", e)
                    continue
                yield event
                if is_terminal(event):
                    return
        except ConnectionClosed as e:
            self._conn = None
            raise TransportFailure(f"WebSocket closed: {e}") from e
        if self._conn is conn:
            self._conn = None
        raise TransportFailure("WebSocket closed")

    async def close(self) -> None:
        """Idempotent: closing an already closed transport is a no-op."""
        conn, self._conn = self._conn, None
        if conn is not None:
            await conn.close()
            logger.debug("socket closed", extra={"url": self._url})
