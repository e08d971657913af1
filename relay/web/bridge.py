"""Drive async adapter work from WSGI request threads.

One background event loop owns the shared upstream client and the socket
server. Flask handlers submit coroutines to it and block on the result, one
step at a time, so a streaming response is pulled event by event and closing
it closes the async generator on the loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Coroutine, Iterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoopBridge:
    def __init__(self) -> None:
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("LoopBridge not started")
        return self._loop

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "LoopBridge":
        if self.running:
            return self
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run, name="relay-loop", daemon=True
        )
        self._thread.start()
        logger.debug("event loop thread started")
        return self

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def stop(self) -> None:
        if not self.running:
            return
        loop = self.loop
        loop.call_soon_threadsafe(loop.stop)
        self._thread.join(timeout=5)
        loop.close()
        self._thread = None
        self._loop = None

    def call(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run `coro` on the loop and wait for it. No timeout: a hung upstream blocks the caller."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()

    def iterate(self, agen: AsyncIterator[T]) -> Iterator[T]:
        """Sync view of an async generator. Closing the view closes `agen` on the loop."""
        try:
            while True:
                try:
                    item = self.call(_anext(agen))
                except StopAsyncIteration:
                    return
                yield item
        finally:
            if hasattr(agen, "aclose") and self.running:
                self.call(_aclose(agen))


# run_coroutine_threadsafe only accepts coroutine objects, not bare awaitables
async def _anext(agen: AsyncIterator[T]) -> T:
    return await agen.__anext__()


async def _aclose(agen) -> None:
    await agen.aclose()
