"""Configuration schema: validates cmc-config.yml."""

from pydantic import BaseModel, field_validator

from cmc.shared.llm_client import MAX_TOKENS, MODEL


class AppConfig(BaseModel):
    """Top-level configuration loaded from cmc-config.yml.

    Every field has a default, so an absent config file is valid. The API
    key is never read from here; it comes from the environment.
    """

    # Model
    model: str = MODEL
    max_tokens: int = MAX_TOKENS
    request_timeout: float | None = None  # seconds; None = SDK default

    # Web server
    host: str = "127.0.0.1"
    port: int = 8000
    session_ttl_seconds: int = 30 * 60

    # Editor contents for a fresh session; None = built-in sample program
    initial_code: str | None = None

    @field_validator("model")
    @classmethod
    def check_model(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("model must not be empty")
        return v.strip()

    @field_validator("max_tokens")
    @classmethod
    def check_max_tokens(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_tokens must be positive")
        return v

    @field_validator("request_timeout")
    @classmethod
    def check_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("port")
    @classmethod
    def check_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @field_validator("session_ttl_seconds")
    @classmethod
    def check_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("session_ttl_seconds must be positive")
        return v
