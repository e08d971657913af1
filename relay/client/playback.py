"""Playback simulator for the unary binding.

Re-segments a complete response and feeds it to the receiver one unit at a
time on the local clock, so a non-streamed answer looks like the streamed ones.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Awaitable, Callable

from relay.client.receiver import PlaybackSummary, Receiver
from relay.core.events import ResponseTime, Token
from relay.core.segmenter import segment
from relay.transport.unary import UnaryPayload

logger = logging.getLogger(__name__)


class PlaybackSimulator:
    def __init__(
        self,
        token_delay: float = 0.01,
        segmenter: Callable[[str], list[str]] = segment,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._token_delay = token_delay
        self._segment = segmenter
        self._clock = clock
        self._sleep = sleep

    async def tokens(self, text: str) -> AsyncIterator[Token]:
        """Synthetic tokens, one per unit, each followed by the fixed delay."""
        for unit in self._segment(text):
            yield Token(text=unit)
            await self._sleep(self._token_delay)

    async def replay(self, receiver: Receiver, payload: UnaryPayload) -> PlaybackSummary:
        receiver.feed(ResponseTime(seconds=payload.response_time))
        start = self._clock()
        async for token in self.tokens(payload.response):
            receiver.feed(token)
        summary = PlaybackSummary(
            backend_timing=payload.timing,
            display_duration=self._clock() - start,
        )
        logger.debug(
            "playback finished",
            extra={
                "backend_timing": round(summary.backend_timing, 3),
                "display_duration": round(summary.display_duration, 3),
            },
        )
        receiver.finish_playback(summary)
        return summary
