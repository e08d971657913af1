"""Tests for config loading."""

from __future__ import annotations

from relay.config.loader import Config, _deep_merge, _load_yaml, get_config
from relay.models.scripted import DEMO_TEXT


def test_load_yaml_missing(tmp_path):
    assert _load_yaml(tmp_path / "nonexistent.yaml") == {}


def test_load_yaml_exists(tmp_path):
    path = tmp_path / "test.yaml"
    path.write_text("server:\n  http_port: 9000\n")
    data = _load_yaml(path)
    assert data["server"]["http_port"] == 9000


def test_defaults():
    config = Config.load()
    assert config.server.http_port == 8080
    assert config.server.socket_port == 8081
    assert config.server.socket_path == "/ai/ws"
    assert config.server.demo_socket_path == "/ws"
    assert config.model.name == "gpt-3.5-turbo"
    assert config.model.openai_api_key == ""
    assert config.model.openai_base_url is None
    assert config.playback.token_delay_ms == 10
    assert config.demo.text == DEMO_TEXT
    assert config.logging.use_json is True


def test_config_load_from_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("model:\n  name: gpt-4o-mini\nplayback:\n  token_delay_ms: 25\n")
    config = Config.load(config_path=path)
    assert config.model.name == "gpt-4o-mini"
    assert config.playback.token_delay_ms == 25
    assert config.server.http_port == 8080


def test_api_key_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-123456789")
    monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:1234/v1")
    config = Config.load()
    assert config.model.openai_api_key == "sk-test-123456789"
    assert config.model.openai_base_url == "http://localhost:1234/v1"


def test_relay_config_env_var(monkeypatch, tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("server:\n  http_port: 5000\n")
    monkeypatch.setenv("RELAY_CONFIG", str(path))
    config = Config.load()
    assert config.server.http_port == 5000


def test_relay_env_overlay(monkeypatch, tmp_path):
    base = tmp_path / "base.yaml"
    base.write_text("server:\n  http_port: 5000\n  socket_port: 5001\n")
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "staging.yaml").write_text("server:\n  socket_port: 6001\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RELAY_ENV", "staging")
    config = Config.load(config_path=base)
    assert config.server.http_port == 5000
    assert config.server.socket_port == 6001


def test_relay_env_missing_overlay_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RELAY_ENV", "nope")
    config = Config.load()
    assert config.server.http_port == 8080


def test_deep_merge():
    base = {"a": 1, "b": {"x": 10, "y": 20}}
    override = {"b": {"y": 22, "z": 30}, "c": 3}
    out = _deep_merge(base, override)
    assert out == {"a": 1, "b": {"x": 10, "y": 22, "z": 30}, "c": 3}
    assert base["b"] == {"x": 10, "y": 20}


def test_get_config(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("model:\n  name: fromfile\nlogging:\n  level: DEBUG\n  use_json: false\n")
    config = get_config(config_path=str(path))
    assert config.model.name == "fromfile"
    assert config.logging.level == "DEBUG"
    assert config.logging.use_json is False
