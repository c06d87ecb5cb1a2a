"""Configuration management using Pydantic v2."""

import os
from dataclasses import dataclass
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.klingex.io"
DEFAULT_WS_URL = "wss://api.klingex.io/ws"


def _find_env_file() -> str:
    """Find .env file: check project root first, then CWD."""
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    env_path = os.path.join(project_root, ".env")
    if os.path.exists(env_path):
        return env_path
    return ".env"


class KlingExSettings(BaseSettings):
    """Client configuration, read from ``KLINGEX_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KLINGEX_",
        env_file=_find_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Authentication (API key wins when both are set)
    api_key: str | None = Field(default=None, description="API key sent as X-API-Key / apiKey")
    jwt: str | None = Field(default=None, description="JWT bearer token (alternative to api_key)")

    # Endpoints
    base_url: str = Field(default=DEFAULT_BASE_URL, description="REST API base URL")
    ws_url: str = Field(default=DEFAULT_WS_URL, description="WebSocket endpoint URL")

    # REST
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")
    human_readable: bool = Field(
        default=True,
        description="Submit order quantity/price as human-readable values by default",
    )

    # WebSocket
    ws_reconnect: bool = Field(default=True, description="Reconnect after abnormal closures")
    ws_reconnect_interval: float = Field(
        default=5.0, gt=0, description="Base reconnect delay in seconds (grows x1.5 per attempt)"
    )
    ws_max_reconnect_attempts: int = Field(
        default=10, ge=0, description="Reconnect attempts before giving up"
    )
    ws_ping_interval: float = Field(default=30.0, gt=0, description="Liveness ping interval in seconds")
    ws_open_timeout: float = Field(
        default=10.0, gt=0, description="Transport timeout for the opening handshake in seconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level used by setup_logging()")
    log_format: Literal["text", "json"] = Field(default="text", description="Log output format")

    @field_validator("base_url", "ws_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @property
    def is_authenticated(self) -> bool:
        return bool(self.api_key or self.jwt)


@dataclass
class WebSocketOptions:
    """Reconnect and liveness tuning for a single WebSocket client."""

    reconnect: bool = True
    reconnect_interval: float = 5.0
    max_reconnect_attempts: int = 10
    ping_interval: float = 30.0
    open_timeout: float = 10.0

    @classmethod
    def from_settings(cls, source: "KlingExSettings | None" = None) -> "WebSocketOptions":
        source = source or settings
        return cls(
            reconnect=source.ws_reconnect,
            reconnect_interval=source.ws_reconnect_interval,
            max_reconnect_attempts=source.ws_max_reconnect_attempts,
            ping_interval=source.ws_ping_interval,
            open_timeout=source.ws_open_timeout,
        )


# Global settings instance
settings = KlingExSettings()
