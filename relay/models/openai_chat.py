"""OpenAI-compatible chat provider (OpenAI cloud or any /v1 compatible server)."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIChatProvider:
    """Stateless calls over one shared AsyncOpenAI client."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-3.5-turbo",
        base_url: str | None = None,
        timeout: float | None = None,
        probe_prompt: str = "Hello",
        probe_max_tokens: int = 10,
    ) -> None:
        kwargs: dict = {"api_key": api_key, "base_url": base_url}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = AsyncOpenAI(**kwargs)
        self._model_name = model_name
        self._probe_prompt = probe_prompt
        self._probe_max_tokens = probe_max_tokens

    @property
    def model_name(self) -> str:
        return self._model_name

    def _messages(self, prompt: str) -> list[dict[str, str]]:
        return [{"role": "user", "content": prompt}]

    def stream(self, prompt: str) -> AsyncIterator[str]:
        """Async generator of content deltas. Closing it closes the HTTP stream."""

        async def _stream() -> AsyncIterator[str]:
            stream = await self._client.chat.completions.create(
                model=self._model_name,
                messages=self._messages(prompt),
                stream=True,
            )
            try:
                async for chunk in stream:
                    delta = chunk.choices[0].delta if chunk.choices else None
                    if delta and getattr(delta, "content", None):
                        yield delta.content
            finally:
                await stream.close()

        return _stream()

    async def complete(self, prompt: str) -> str:
        resp = await self._client.chat.completions.create(
            model=self._model_name,
            messages=self._messages(prompt),
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    async def probe(self) -> str:
        resp = await self._client.chat.completions.create(
            model=self._model_name,
            messages=self._messages(self._probe_prompt),
            max_tokens=self._probe_max_tokens,
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""
