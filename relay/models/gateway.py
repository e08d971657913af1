"""Upstream handle: one process-wide provider, configured or not. Injected into adapters."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from relay.core.errors import ServiceUnavailable
from relay.models.openai_chat import OpenAIChatProvider
from relay.models.scripted import ScriptedProvider
from relay.models.streaming import ChatProvider

if TYPE_CHECKING:
    from relay.config.loader import Config

logger = logging.getLogger(__name__)


class UpstreamState(str, Enum):
    CONFIGURED = "configured"
    UNCONFIGURED = "unconfigured"


class Upstream:
    """Immutable holder for the shared provider. Calls through it are stateless."""

    def __init__(self, provider: ChatProvider | None = None, name: str = "") -> None:
        self._provider = provider
        self._name = name or (type(provider).__name__ if provider else "none")

    @classmethod
    def unconfigured(cls) -> "Upstream":
        return cls(None)

    @property
    def state(self) -> UpstreamState:
        return UpstreamState.CONFIGURED if self._provider is not None else UpstreamState.UNCONFIGURED

    @property
    def name(self) -> str:
        return self._name

    def require(self) -> ChatProvider:
        """Return the provider or raise ServiceUnavailable."""
        if self._provider is None:
            raise ServiceUnavailable()
        return self._provider


def build_upstream(config: "Config") -> Upstream:
    """OpenAI-compatible upstream from config. No API key: Unconfigured."""
    api_key = config.model.openai_api_key.strip()
    if not api_key:
        logger.warning("OPENAI_API_KEY not set. AI routes will answer 503.")
        logger.warning("To enable them: export OPENAI_API_KEY=<your key>")
        return Upstream.unconfigured()
    provider = OpenAIChatProvider(
        api_key=api_key,
        model_name=config.model.name,
        base_url=config.model.openai_base_url,
        timeout=config.model.request_timeout,
        probe_prompt=config.model.probe_prompt,
        probe_max_tokens=config.model.probe_max_tokens,
    )
    logger.info("upstream client initialized", extra={"model": config.model.name})
    return Upstream(provider, name=f"openai:{config.model.name}")


def build_demo_upstream(config: "Config") -> Upstream:
    """Scripted upstream for the demo routes; always configured."""
    provider = ScriptedProvider(config.demo.text, delay=config.demo.word_delay_ms / 1000.0)
    return Upstream(provider, name="demo")
