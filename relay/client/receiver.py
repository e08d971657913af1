"""Receiver state machine: turns decoded events from any binding into one display.

    Idle --submit--> Awaiting --first event--> Receiving --End--> Terminal
    Awaiting | Receiving --Error--> Terminal
    Terminal --submit--> Awaiting

The receiver owns the DisplayState. Bindings only hand it events.
"""

from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable, Protocol

from relay.core.events import (
    End,
    Error,
    Event,
    ResponseTime,
    Timing,
    Token,
    is_terminal,
    make_request,
)

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    RECEIVING = "receiving"
    TERMINAL = "terminal"


@dataclass
class PlaybackSummary:
    """Unary path timing: backend processing plus local replay."""

    backend_timing: float
    display_duration: float

    @property
    def total(self) -> float:
        return self.backend_timing + self.display_duration


@dataclass
class DisplayState:
    """One response target."""

    prompt: str
    content: str = ""
    placeholder: bool = True
    failed: bool = False
    error: str | None = None
    response_time: float | None = None
    first_content_latency: float | None = None
    timing: float | None = None
    playback: PlaybackSummary | None = None
    finalized: bool = False


class Renderer(Protocol):
    def begin(self, state: DisplayState) -> None: ...

    def clear_placeholder(self, state: DisplayState) -> None: ...

    def append(self, state: DisplayState, text: str) -> None: ...

    def finish(self, state: DisplayState) -> None: ...

    def fail(self, state: DisplayState) -> None: ...


class Receiver:
    """Consumes one request's events at a time."""

    def __init__(
        self,
        renderer: Renderer | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._renderer = renderer
        self._clock = clock
        self._phase = Phase.IDLE
        self._state: DisplayState | None = None
        self._submitted_at = 0.0

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def state(self) -> DisplayState | None:
        return self._state

    @property
    def busy(self) -> bool:
        return self._phase in (Phase.AWAITING, Phase.RECEIVING)

    def submit(self, prompt: str) -> DisplayState:
        """Open a new response target. Raises InvalidRequest for an empty prompt."""
        if self.busy:
            raise RuntimeError("a request is already in flight")
        req = make_request(prompt.strip())
        self._state = DisplayState(prompt=req.prompt)
        self._submitted_at = self._clock()
        self._phase = Phase.AWAITING
        if self._renderer:
            self._renderer.begin(self._state)
        return self._state

    def feed(self, event: Event) -> None:
        if not self.busy:
            logger.warning("event with no request in flight: %s", event.kind)
            return
        state = self._state
        if self._phase is Phase.AWAITING and not is_terminal(event):
            self._phase = Phase.RECEIVING
        if isinstance(event, Token):
            self._on_token(state, event.text)
        elif isinstance(event, ResponseTime):
            state.response_time = event.seconds
        elif isinstance(event, Timing):
            state.timing = event.seconds
        elif isinstance(event, End):
            self._finish(state)
        elif isinstance(event, Error):
            self._fail(state, event.message)

    def _on_token(self, state: DisplayState, text: str) -> None:
        if state.placeholder:
            state.placeholder = False
            if self._renderer:
                self._renderer.clear_placeholder(state)
        if state.first_content_latency is None and text.strip():
            state.first_content_latency = self._clock() - self._submitted_at
        state.content += text
        if self._renderer:
            self._renderer.append(state, text)

    def _finish(self, state: DisplayState) -> None:
        state.placeholder = False
        state.finalized = True
        self._phase = Phase.TERMINAL
        if self._renderer:
            self._renderer.finish(state)

    def _fail(self, state: DisplayState, message: str) -> None:
        state.placeholder = False
        state.failed = True
        state.error = message
        self._phase = Phase.TERMINAL
        if self._renderer:
            self._renderer.fail(state)

    def fail(self, message: str) -> None:
        """Client-side failure (transport, HTTP status). No-op once terminal."""
        self.feed(Error(message=message))

    def finish_playback(self, summary: PlaybackSummary) -> None:
        if not self.busy:
            return
        self._state.playback = summary
        self._state.timing = summary.backend_timing
        self.feed(End())

    async def consume(self, events: AsyncIterator[Event]) -> DisplayState | None:
        """Feed events until a terminal one. The source is closed early after it."""
        async with contextlib.aclosing(events) as stream:
            async for event in stream:
                self.feed(event)
                if is_terminal(event):
                    break
        if self.busy:
            self.fail("Connection closed before the response completed")
        return self._state
