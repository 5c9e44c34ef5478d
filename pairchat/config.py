"""Client configuration using pydantic-settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from PAIRCHAT_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="PAIRCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    server_uri: str = Field(
        default="ws://localhost:3010",
        description="Websocket endpoint of the matchmaking service",
    )
    nickname: str = Field(default="", description="Nickname offered at the prompt")
    log_level: str = Field(default="WARNING", description="Logging level")
    open_timeout: float = Field(
        default=10.0, gt=0, description="Seconds to wait for the websocket handshake"
    )
    max_message_length: int = Field(
        default=0, ge=0, description="Longest chat line sent, 0 leaves length to the server"
    )

    @field_validator("server_uri")
    @classmethod
    def validate_server_uri(cls, v: str) -> str:
        if not v.startswith(("ws://", "wss://")):
            raise ValueError("server_uri must use ws:// or wss://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return level


def load_settings(**overrides) -> Settings:
    """Environment < explicit overrides (CLI flags). None values are skipped."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
