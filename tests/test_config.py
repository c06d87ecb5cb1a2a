"""Tests for configuration."""

import pytest

from klingex.config import KlingExSettings, WebSocketOptions


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("API_KEY", "JWT", "BASE_URL", "WS_URL", "WS_RECONNECT_INTERVAL", "LOG_FORMAT"):
        monkeypatch.delenv(f"KLINGEX_{name}", raising=False)


def test_default_settings() -> None:
    """Test default settings."""
    settings = KlingExSettings(_env_file=None)
    assert settings.base_url == "https://api.klingex.io"
    assert settings.ws_url == "wss://api.klingex.io/ws"
    assert settings.timeout == 30.0
    assert settings.ws_reconnect is True
    assert settings.ws_reconnect_interval == 5.0
    assert settings.ws_max_reconnect_attempts == 10
    assert not settings.is_authenticated


def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that KLINGEX_* environment variables are read."""
    monkeypatch.setenv("KLINGEX_API_KEY", "env_key")
    monkeypatch.setenv("KLINGEX_WS_RECONNECT_INTERVAL", "0.5")
    monkeypatch.setenv("KLINGEX_BASE_URL", "https://staging.klingex.io/")

    settings = KlingExSettings(_env_file=None)
    assert settings.api_key == "env_key"
    assert settings.is_authenticated
    assert settings.ws_reconnect_interval == 0.5
    assert settings.base_url == "https://staging.klingex.io"


def test_config_validation() -> None:
    """Test configuration validation."""
    with pytest.raises(ValueError):
        KlingExSettings(_env_file=None, timeout=0)

    with pytest.raises(ValueError):
        KlingExSettings(_env_file=None, ws_max_reconnect_attempts=-1)

    with pytest.raises(ValueError):
        KlingExSettings(_env_file=None, log_format="xml")


def test_websocket_options_from_settings() -> None:
    settings = KlingExSettings(
        _env_file=None,
        ws_reconnect=False,
        ws_reconnect_interval=2.0,
        ws_max_reconnect_attempts=3,
        ws_ping_interval=15.0,
    )
    options = WebSocketOptions.from_settings(settings)
    assert options == WebSocketOptions(
        reconnect=False,
        reconnect_interval=2.0,
        max_reconnect_attempts=3,
        ping_interval=15.0,
        open_timeout=10.0,
    )
