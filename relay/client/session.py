"""Chat session: one receiver, one active binding, switchable at runtime."""

from __future__ import annotations

import logging
from enum import Enum

import httpx

from relay.client.playback import PlaybackSimulator
from relay.client.receiver import DisplayState, Receiver
from relay.client.transports import PushStreamTransport, SocketTransport, UnaryTransport
from relay.core.errors import InvalidRequest, RelayError
from relay.core.events import make_request

logger = logging.getLogger(__name__)


class Binding(str, Enum):
    SSE = "sse"
    WEBSOCKET = "websocket"
    NOSTREAM = "nostream"


class ChatSession:
    """Sends questions over the selected binding and drives the receiver."""

    def __init__(
        self,
        base_url: str,
        socket_url: str,
        protocol: Binding | str = Binding.SSE,
        receiver: Receiver | None = None,
        playback: PlaybackSimulator | None = None,
        http_client: httpx.AsyncClient | None = None,
        status=None,
    ) -> None:
        self.protocol = Binding(protocol)
        self.receiver = receiver or Receiver()
        self.playback = playback or PlaybackSimulator()
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=None)
        self._owns_http = http_client is None
        self._socket_url = socket_url
        self._push = PushStreamTransport(self._http)
        self._unary = UnaryTransport(self._http)
        self._socket: SocketTransport | None = None
        self._status = status

    def _report(self, kind: str, message: str) -> None:
        logger.debug("status %s: %s", kind, message)
        if self._status:
            self._status(kind, message)

    async def check_connection(self) -> bool:
        """Probe the server for the current protocol and report connectivity."""
        self._report("connecting", f"Connecting to AI agent via {self.protocol.value.upper()}...")
        if self.protocol is Binding.WEBSOCKET:
            try:
                await self._socket_transport().connect()
            except RelayError as e:
                self._report("disconnected", f"Failed to connect to AI agent: {e}")
                return False
            self._report("connected", "Connected to AI agent (WebSocket ready)")
            return True
        try:
            resp = await self._http.get("/ai/test")
        except httpx.HTTPError as e:
            self._report("disconnected", f"Failed to connect to AI agent: {e}")
            return False
        if resp.status_code != 200:
            self._report("disconnected", "Failed to connect to AI agent")
            return False
        label = "SSE" if self.protocol is Binding.SSE else "No-Stream"
        self._report("connected", f"Connected to AI agent ({label} ready)")
        return True

    def _socket_transport(self) -> SocketTransport:
        if self._socket is None:
            self._socket = SocketTransport(self._socket_url)
        return self._socket

    async def ask(self, prompt: str) -> DisplayState | None:
        """Submit one question. Empty input is ignored and shows nothing."""
        try:
            req = make_request(prompt.strip())
        except InvalidRequest:
            return None
        state = self.receiver.submit(req.prompt)
        try:
            if self.protocol is Binding.NOSTREAM:
                payload = await self._unary.fetch(req)
                await self.playback.replay(self.receiver, payload)
            elif self.protocol is Binding.WEBSOCKET:
                await self.receiver.consume(self._socket_transport().events(req))
            else:
                await self.receiver.consume(self._push.events(req))
        except RelayError as e:
            self.receiver.fail(str(e))
            self._report("disconnected", "Connection error")
        return state

    async def switch(self, protocol: Binding | str) -> None:
        await self.release()
        self.protocol = Binding(protocol)
        await self.check_connection()

    async def release(self) -> None:
        """Release the active transport. Safe to call any number of times."""
        socket, self._socket = self._socket, None
        if socket is not None:
            await socket.close()
            self._report("disconnected", "Disconnected")

    async def close(self) -> None:
        await self.release()
        if self._owns_http:
            await self._http.aclose()
            self._owns_http = False
