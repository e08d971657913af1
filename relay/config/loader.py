"""Load configuration from YAML and environment variables. No hardcoded secrets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from relay.models.scripted import DEMO_TEXT

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SERVER_", extra="ignore")
    host: str = "0.0.0.0"
    http_port: int = 8080
    socket_port: int = 8081
    socket_path: str = "/ai/ws"
    demo_socket_path: str = "/ws"


class ModelSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MODEL_", extra="ignore")
    name: str = "gpt-3.5-turbo"
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    probe_prompt: str = "Hello"
    probe_max_tokens: int = 10
    request_timeout: Optional[float] = None


class PlaybackSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PLAYBACK_", extra="ignore")
    token_delay_ms: float = 10.0


class DemoSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DEMO_", extra="ignore")
    text: str = DEMO_TEXT
    word_delay_ms: float = 200.0


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")
    level: str = "INFO"
    use_json: bool = True


class Config(BaseSettings):
    """Application config: YAML + env. Secrets from env only."""

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")

    server: ServerSettings = Field(default_factory=ServerSettings)
    model: ModelSettings = Field(default_factory=ModelSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    demo: DemoSettings = Field(default_factory=DemoSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        config_path = config_path or os.getenv("RELAY_CONFIG") or None
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        yaml_data = _load_yaml(path)
        env_name = os.getenv("RELAY_ENV", "")
        if env_name:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(f"config/{env_name}.yaml")))
        api_key = os.getenv("OPENAI_API_KEY")
        if api_key:
            yaml_data.setdefault("model", {})["OPENAI_API_KEY"] = api_key
        base_url = os.getenv("OPENAI_BASE_URL")
        if base_url:
            yaml_data.setdefault("model", {})["OPENAI_BASE_URL"] = base_url
        return cls(**yaml_data)


def get_config(config_path: str | Path | None = None) -> Config:
    return Config.load(config_path)
