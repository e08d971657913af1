"""Pytest fixtures."""

from __future__ import annotations

import pytest

from relay.core.adapter import RelayAdapter
from relay.models.gateway import Upstream
from relay.web.bridge import LoopBridge


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Never pick up real upstream credentials or config overrides in tests."""
    for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "RELAY_CONFIG", "RELAY_ENV"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def make_adapter():
    """Adapter over a provider; None gives an unconfigured upstream."""

    def _make(provider=None, clock=None):
        upstream = Upstream(provider, name="fake") if provider else Upstream.unconfigured()
        if clock is None:
            return RelayAdapter(upstream)
        return RelayAdapter(upstream, clock=clock)

    return _make


@pytest.fixture
def bridge():
    b = LoopBridge().start()
    yield b
    b.stop()
