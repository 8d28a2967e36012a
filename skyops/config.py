from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseModel):
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.6, ge=0.0, le=2.0)
    # Direct key for local testing; shared setups use api_key_env.
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    connect_timeout_s: float = Field(default=10.0, gt=0)
    # None keeps the stream open as long as the server sends data.
    read_timeout_s: float | None = None

    def resolve_api_key(self) -> str | None:
        """Effective key: direct value first, then the named env var."""
        if self.api_key:
            return self.api_key
        return os.environ.get(self.api_key_env) or None


class StreamConfig(BaseModel):
    data_prefix: str = "data: "
    done_sentinel: str = "[DONE]"
    delta_paths: list[list[str | int]] = Field(
        default_factory=lambda: [["choices", 0, "delta", "content"], ["delta"]],
    )

    @field_validator("delta_paths")
    @classmethod
    def _validate_paths(cls, value: list[list[str | int]]) -> list[list[str | int]]:
        if not value or any(not path for path in value):
            raise ValueError("stream.delta_paths must contain at least one non-empty path")
        return value


class DuplicatePolicy(StrEnum):
    allow = "allow"
    suppress_turn = "suppress_turn"
    suppress_session = "suppress_session"


class DirectivesConfig(BaseModel):
    start_marker: str = "<action>"
    end_marker: str = "</action>"
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.allow

    @model_validator(mode="after")
    def _validate_markers(self) -> DirectivesConfig:
        if not self.start_marker or not self.end_marker:
            raise ValueError("directive markers must not be empty")
        if self.start_marker == self.end_marker:
            raise ValueError("start_marker and end_marker must differ")
        return self


class WebConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8430
    allow_origin: str = "*"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class TelemetryConfig(BaseModel):
    """OpenTelemetry tracing configuration."""

    enabled: bool = False
    console_export: bool = False
    service_name: str = "skyops"


class SkyopsSettings(BaseSettings):
    airline_name: str = "Crown Aviation"
    llm: LLMConfig = Field(default_factory=LLMConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    directives: DirectivesConfig = Field(default_factory=DirectivesConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    history_turns: int = Field(default=10, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="SKYOPS_",
        env_nested_delimiter="__",
        extra="ignore",
    )


def _coerce_env_value(value: str) -> object:
    parsed = yaml.safe_load(value)
    return value if parsed is None else parsed


def _set_nested(mapping: dict[str, object], path: list[str], value: object) -> None:
    current = mapping
    for key in path[:-1]:
        existing = current.get(key)
        if not isinstance(existing, dict):
            existing = {}
            current[key] = existing
        current = existing
    current[path[-1]] = value


def _apply_env_overrides(data: dict[str, object]) -> dict[str, object]:
    merged = dict(data)
    prefix = "SKYOPS_"
    for key, raw_value in os.environ.items():
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].lower().split("__")
        _set_nested(merged, path, _coerce_env_value(raw_value))
    return merged


def load_config(path: str | Path = "config/skyops.yaml") -> SkyopsSettings:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError("config file must contain a top-level mapping")

    raw = loaded.get("skyops", loaded)
    if not isinstance(raw, dict):
        raise ValueError("skyops config section must be a mapping")

    return SkyopsSettings.model_validate(_apply_env_overrides(raw))


__all__ = [
    "DirectivesConfig",
    "DuplicatePolicy",
    "LLMConfig",
    "LoggingConfig",
    "SkyopsSettings",
    "StreamConfig",
    "TelemetryConfig",
    "WebConfig",
    "load_config",
]
