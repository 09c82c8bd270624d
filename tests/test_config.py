"""Tests for config loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cmc.config import ConfigError, get_api_key, load_config
from cmc.schemas.config import AppConfig


class TestAppConfig:
    """Test the AppConfig Pydantic model directly."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.model == "gpt-4o"
        assert cfg.request_timeout is None
        assert cfg.port == 8000
        assert cfg.session_ttl_seconds == 1800
        assert cfg.initial_code is None

    def test_port_range(self) -> None:
        with pytest.raises(ValidationError, match="port"):
            AppConfig(port=70000)

    def test_blank_model_rejected(self) -> None:
        with pytest.raises(ValidationError, match="model"):
            AppConfig(model="  ")

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError, match="request_timeout"):
            AppConfig(request_timeout=0)

    def test_non_positive_ttl_rejected(self) -> None:
        with pytest.raises(ValidationError, match="session_ttl_seconds"):
            AppConfig(session_ttl_seconds=0)


class TestLoadConfig:
    """Test YAML file loading."""

    def test_none_gives_defaults(self) -> None:
        assert load_config(None) == AppConfig()

    def test_load_valid(self, tmp_config: Path) -> None:
        cfg = load_config(tmp_config)
        assert cfg.model == "gpt-4o-mini"
        assert cfg.port == 9000
        assert cfg.initial_code == "int main() {\n    return 0;\n}\n"

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yml")

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "empty.yml"
        cfg_file.write_text("# nothing here\n")
        assert load_config(cfg_file) == AppConfig()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "list.yml"
        cfg_file.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(cfg_file)

    def test_invalid_value(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "bad.yml"
        cfg_file.write_text("port: 0\n")
        with pytest.raises(ValidationError):
            load_config(cfg_file)

    def test_example_config_is_valid(self) -> None:
        example = Path(__file__).parent.parent / "cmc-config.example.yml"
        assert load_config(example).model == "gpt-4o"


class TestApiKey:
    def test_prefers_openai_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-primary")
        monkeypatch.setenv("API_KEY", "sk-fallback")
        assert get_api_key() == "sk-primary"

    def test_falls_back_to_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setenv("API_KEY", "sk-fallback")
        assert get_api_key() == "sk-fallback"

    def test_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "  ")
        monkeypatch.delenv("API_KEY", raising=False)
        with pytest.raises(ConfigError):
            get_api_key()
