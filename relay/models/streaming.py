"""Upstream collaborator contract.

A provider turns a prompt into either a stream of text fragments or one
complete text. Streaming providers return an async generator so that the
adapter can close it early: closing must abort the remote call and release
its connection.

- OpenAI Chat Completions stream: delta.content per chunk.
- Scripted demo provider: one word per tick.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable


@runtime_checkable
class ChatProvider(Protocol):
    """Remote text generation service, treated as opaque."""

    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield raw fragments. Raises on upstream failure."""
        ...

    async def complete(self, prompt: str) -> str:
        """Single blocking call returning the whole text."""
        ...

    async def probe(self) -> str:
        """Cheap existence check; returns a short reply or raises."""
        ...
