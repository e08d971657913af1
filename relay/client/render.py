"""Terminal presentation surface."""

from __future__ import annotations

import sys
from typing import TextIO

from relay.client.receiver import DisplayState

PLACEHOLDER = "AI is thinking..."


def format_summary(state: DisplayState) -> list[str]:
    """Timing lines shown under a finished response."""
    if state.playback is not None:
        p = state.playback
        return [
            "Timing breakdown:",
            f"  Backend processing: {p.backend_timing:.2f}s",
            f"  Visual display effect: {p.display_duration:.2f}s",
            f"  Total time: {p.total:.2f}s",
        ]
    lines = []
    if state.timing is not None:
        lines.append(f"Response completed in {state.timing:.2f} seconds")
    first = state.first_content_latency
    if first is None:
        first = state.response_time
    if first is not None:
        lines.append(f"First letter appeared in {first:.2f} seconds")
    return lines


class TerminalRenderer:
    def __init__(self, out: TextIO | None = None) -> None:
        self._out = out or sys.stdout

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    def status(self, kind: str, message: str) -> None:
        self._write(f"[{kind}] {message}\n")

    def begin(self, state: DisplayState) -> None:
        self._write(PLACEHOLDER)

    def clear_placeholder(self, state: DisplayState) -> None:
        self._write("\r" + " " * len(PLACEHOLDER) + "\r")

    def append(self, state: DisplayState, text: str) -> None:
        self._write(text)

    def finish(self, state: DisplayState) -> None:
        if not state.content:
            self.clear_placeholder(state)
        self._write("\n")
        for line in format_summary(state):
            self._write(f"  {line}\n")

    def fail(self, state: DisplayState) -> None:
        if not state.content:
            self.clear_placeholder(state)
        else:
            self._write("\n")
        self._write(f"Error: {state.error}\n")
