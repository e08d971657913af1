"""Upstream adapter: drive the remote service and turn its output into the event grammar.

Streaming path yields `[ResponseTime?, Token*, Timing, End]` or `[Error]`.
Closing the returned generator aborts the upstream call and releases it;
nothing is emitted after that.

Unary path runs one blocking call and returns the complete text with
`response_time` equal to `timing`: nothing is observable before completion,
so the two are the same quantity by definition, not a separate measurement.
"""

from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable

from relay.core.errors import UpstreamFailure
from relay.core.events import (
    End,
    Error,
    Event,
    RelayRequest,
    ResponseTime,
    Timing,
    Token,
)
from relay.core.segmenter import segment
from relay.models.gateway import Upstream
from relay.models.streaming import ChatProvider

logger = logging.getLogger(__name__)


@dataclass
class UnaryResult:
    """Complete response of the unary path."""

    text: str
    timing: float
    response_time: float


class RelayAdapter:
    """Wraps the shared upstream. One adapter serves any number of sequential or concurrent requests."""

    def __init__(
        self,
        upstream: Upstream,
        segmenter: Callable[[str], list[str]] = segment,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._upstream = upstream
        self._segment = segmenter
        self._clock = clock

    @property
    def upstream(self) -> Upstream:
        return self._upstream

    def ensure_available(self) -> ChatProvider:
        """Raise ServiceUnavailable when the upstream is not configured."""
        return self._upstream.require()

    def open_stream(self, request: RelayRequest) -> AsyncIterator[Event]:
        """Start a streaming request. Fails synchronously if the upstream is unconfigured."""
        provider = self.ensure_available()
        return self._stream_events(provider, request, self._clock())

    async def _stream_events(
        self, provider: ChatProvider, request: RelayRequest, t0: float
    ) -> AsyncIterator[Event]:
        has_content = False
        token_count = 0
        fragments = provider.stream(request.prompt)
        logger.debug("upstream stream opened", extra={"upstream": self._upstream.name})
        try:
            try:
                async for fragment in fragments:
                    if not fragment:
                        continue
                    if not has_content:
                        has_content = True
                        response_time = self._clock() - t0
                        logger.info(
                            "first content received", extra={"response_time": round(response_time, 3)}
                        )
                        yield ResponseTime(seconds=response_time)
                    for unit in self._segment(fragment):
                        token_count += 1
                        yield Token(text=unit)
            except Exception as e:
                if not has_content:
                    logger.warning("upstream stream failed: %s", e)
                    yield Error(message=f"Upstream error: {e}")
                    return
                logger.warning(
                    "upstream failed after partial content, ending truncated response: %s",
                    e,
                    extra={"tokens": token_count},
                )
        finally:
            aclose = getattr(fragments, "aclose", None)
            if aclose is not None:
                await aclose()
        total = self._clock() - t0
        logger.info(
            "stream completed", extra={"timing": round(total, 3), "tokens": token_count}
        )
        yield Timing(seconds=total)
        yield End()

    async def complete(self, request: RelayRequest) -> UnaryResult:
        """Unary path: raises ServiceUnavailable or UpstreamFailure."""
        provider = self.ensure_available()
        t0 = self._clock()
        try:
            text = await provider.complete(request.prompt)
        except Exception as e:
            logger.warning("upstream unary call failed: %s", e)
            raise UpstreamFailure(str(e)) from e
        total = self._clock() - t0
        logger.info("unary response completed", extra={"timing": round(total, 3), "chars": len(text)})
        return UnaryResult(text=text, timing=total, response_time=total)

    async def probe(self) -> str:
        """Availability check, independent of the event grammar."""
        provider = self.ensure_available()
        try:
            return await provider.probe()
        except Exception as e:
            logger.warning("upstream probe failed: %s", e)
            raise UpstreamFailure(str(e)) from e


async def words_only(events: AsyncIterator[Event]) -> AsyncIterator[Event]:
    """Drop ResponseTime and Timing. The demo routes carry words and the terminal event only."""
    async with contextlib.aclosing(events) as stream:
        async for event in stream:
            if not isinstance(event, (ResponseTime, Timing)):
                yield event
