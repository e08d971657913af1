"""Scripted provider: replays a fixed text one word at a time. Backs the demo routes."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from relay.core.segmenter import segment

DEMO_TEXT = (
    "Hello! This is a demonstration of real-time text streaming from a Python backend "
    "to a client. The text is being generated word by word and sent to the client as "
    "it becomes available. This creates a much better user experience compared to "
    "waiting for the entire response to be generated before displaying anything."
)


class ScriptedProvider:
    """Ignores the prompt and emits `text` split into units, `delay` seconds apart."""

    def __init__(self, text: str = DEMO_TEXT, delay: float = 0.2) -> None:
        self._text = text
        self._delay = delay

    def stream(self, prompt: str) -> AsyncIterator[str]:
        async def _stream() -> AsyncIterator[str]:
            for unit in segment(self._text):
                yield unit
                if self._delay:
                    await asyncio.sleep(self._delay)

        return _stream()

    async def complete(self, prompt: str) -> str:
        return self._text

    async def probe(self) -> str:
        return "ok"
