"""Config loading: cmc-config.yml into AppConfig, API key from the environment."""

import os
from pathlib import Path

import yaml

from cmc.schemas.config import AppConfig

# Checked in order; the first non-empty value wins.
API_KEY_ENV_VARS = ("OPENAI_API_KEY", "API_KEY")


class ConfigError(Exception):
    """Raised when required configuration is missing."""


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate a config file, or return defaults when ``path`` is None.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    if path is None:
        return AppConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        # An empty (or all-comments) file means "use defaults"
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # A blank ``initial_code:`` key loads as None, which already means "sample".
    return AppConfig(**raw)


def get_api_key() -> str:
    """Return the model API key from the environment.

    Raises ``ConfigError`` when none of ``API_KEY_ENV_VARS`` is set.
    """
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    raise ConfigError(
        "No API key found. Set OPENAI_API_KEY (or API_KEY) in the environment or a .env file."
    )
