"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from skyops.config import (
    DirectivesConfig,
    DuplicatePolicy,
    LLMConfig,
    SkyopsSettings,
    StreamConfig,
    load_config,
)

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config" / "skyops.example.yaml"


@pytest.fixture(autouse=True)
def _clear_skyops_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("SKYOPS_"):
            monkeypatch.delenv(key)


class TestDefaults:
    def test_stream_defaults(self) -> None:
        cfg = StreamConfig()
        assert cfg.data_prefix == "data: "
        assert cfg.done_sentinel == "[DONE]"
        assert cfg.delta_paths == [["choices", 0, "delta", "content"], ["delta"]]

    def test_directive_defaults(self) -> None:
        cfg = DirectivesConfig()
        assert (cfg.start_marker, cfg.end_marker) == ("<action>", "</action>")
        assert cfg.duplicate_policy == DuplicatePolicy.allow

    def test_settings_defaults(self) -> None:
        settings = SkyopsSettings()
        assert settings.airline_name == "Crown Aviation"
        assert settings.web.port == 8430
        assert settings.telemetry.enabled is False


class TestValidation:
    def test_markers_must_differ(self) -> None:
        with pytest.raises(ValidationError, match="must differ"):
            DirectivesConfig(start_marker="||", end_marker="||")

    def test_markers_must_be_non_empty(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            DirectivesConfig(start_marker="")

    def test_delta_paths_must_not_be_empty(self) -> None:
        with pytest.raises(ValidationError):
            StreamConfig(delta_paths=[])
        with pytest.raises(ValidationError):
            StreamConfig(delta_paths=[[]])

    def test_unknown_duplicate_policy(self) -> None:
        with pytest.raises(ValidationError):
            DirectivesConfig(duplicate_policy="sometimes")

    def test_temperature_range(self) -> None:
        with pytest.raises(ValidationError):
            LLMConfig(temperature=3.5)


class TestApiKey:
    def test_direct_key_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert LLMConfig(api_key="direct").resolve_api_key() == "direct"

    def test_key_from_named_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SKYOPS_TEST_KEY", "from-env")
        assert LLMConfig(api_key_env="SKYOPS_TEST_KEY").resolve_api_key() == "from-env"

    def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SKYOPS_NO_SUCH_KEY", raising=False)
        assert LLMConfig(api_key_env="SKYOPS_NO_SUCH_KEY").resolve_api_key() is None


class TestLoadConfig:
    def test_example_config_loads(self) -> None:
        settings = load_config(EXAMPLE_CONFIG)
        assert settings.llm.model == "gpt-4o-mini"
        assert settings.stream.delta_paths[0] == ["choices", 0, "delta", "content"]

    def test_yaml_section(self, tmp_path: Path) -> None:
        path = tmp_path / "skyops.yaml"
        path.write_text(
            "skyops:\n"
            "  airline_name: Alpine Air\n"
            "  directives:\n"
            "    duplicate_policy: suppress_turn\n"
            "  stream:\n"
            "    delta_paths:\n"
            "      - [message, text]\n",
            encoding="utf-8",
        )

        settings = load_config(path)

        assert settings.airline_name == "Alpine Air"
        assert settings.directives.duplicate_policy == DuplicatePolicy.suppress_turn
        assert settings.stream.delta_paths == [["message", "text"]]

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "skyops.yaml"
        path.write_text("skyops:\n  web:\n    port: 9000\n", encoding="utf-8")
        monkeypatch.setenv("SKYOPS_WEB__PORT", "9100")
        monkeypatch.setenv("SKYOPS_LLM__MODEL", "gpt-4.1")

        settings = load_config(path)

        assert settings.web.port == 9100
        assert settings.llm.model == "gpt-4.1"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")
        with pytest.raises(ValueError, match="top-level mapping"):
            load_config(path)

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("skyops:\n  history_turns: -1\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)
