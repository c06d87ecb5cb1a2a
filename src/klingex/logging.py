"""Structured logging setup with request/stream context support.

Two output formats are supported, controlled by ``KLINGEX_LOG_FORMAT``
(mapped to ``settings.log_format``):

- ``text`` (default): human-readable console output.
  Format: ``2024-01-01 12:00:00 | INFO     | klingex.websocket | [req=N/A]
           [ch=ticker] [sym=BTC-USDT] | message``

- ``json``: one JSON object per line with fields ``timestamp``, ``level``,
  ``logger``, ``message``, ``request_id``, ``channel``, ``symbol``,
  ``service`` and (on exceptions) ``exc_type``/``exc_value``/``exc_trace``.

The library never configures handlers on import. Applications that want this
output call ``setup_logging()`` once at startup; everyone else gets plain
``logging`` loggers that follow their own configuration.

Context propagation:
  ``request_id_var`` is bound by the HTTP layer for each request.
  ``channel_var`` / ``symbol_var`` are bound by the WebSocket router while a
  subscription callback runs, so anything the callback logs carries them.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
channel_var: ContextVar[str | None] = ContextVar("stream_channel", default=None)
symbol_var: ContextVar[str | None] = ContextVar("stream_symbol", default=None)

_SERVICE_NAME = "klingex"


class ContextFilter(logging.Filter):
    """Inject request id and stream context into every log record.

    Fields injected onto every ``LogRecord``:
    - ``request_id``: HTTP request ID or "N/A"
    - ``channel``: stream channel (empty string when not set)
    - ``symbol``: stream symbol (empty string when not set)
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "N/A"
        record.channel = channel_var.get() or ""
        record.symbol = symbol_var.get() or ""
        return True


class JSONFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Context fields are empty strings (not "N/A") when absent so aggregators
    can filter them with ``symbol != ""``.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=UTC).isoformat()

        payload: dict[str, Any] = {
            "timestamp": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "N/A"),
            "channel": getattr(record, "channel", ""),
            "symbol": getattr(record, "symbol", ""),
            "service": _SERVICE_NAME,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exc_type"] = exc_type.__name__ if exc_type else None
            payload["exc_value"] = str(exc_value)
            payload["exc_trace"] = traceback.format_exception(exc_type, exc_value, exc_tb)

        return json.dumps(payload, default=str)


class _StreamTextFormatter(logging.Formatter):
    """Human-readable formatter that appends stream context only when set."""

    _BASE_FMT = "%(asctime)s | %(levelname)-8s | %(name)s | [req=%(request_id)s]"
    _DATE_FMT = "%Y-%m-%d %H:%M:%S"

    def __init__(self) -> None:
        super().__init__(fmt=self._BASE_FMT, datefmt=self._DATE_FMT)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "request_id"):
            record.request_id = "N/A"
        base = super().format(record)

        tokens: list[str] = []
        channel = getattr(record, "channel", "")
        symbol = getattr(record, "symbol", "")
        if channel:
            tokens.append(f"[ch={channel}]")
        if symbol:
            tokens.append(f"[sym={symbol}]")

        context_part = (" " + " ".join(tokens)) if tokens else ""
        return f"{base}{context_part} | {record.getMessage()}"


def setup_logging() -> None:
    """Configure root logging based on ``settings.log_format``.

    Safe to call more than once: a handler is only added when the root logger
    has none yet.
    """
    # Lazy import keeps this module importable before settings load.
    try:
        from klingex.config import settings as _settings

        log_level_str = _settings.log_level.upper()
        log_format = _settings.log_format.lower()
    except Exception:
        log_level_str = "INFO"
        log_format = "text"

    log_level = getattr(logging, log_level_str, logging.INFO)

    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(log_level)
        return

    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.addFilter(ContextFilter())

    if log_format == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(_StreamTextFormatter())

    root_logger.addHandler(console_handler)

    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging initialised (level=%s, format=%s)", log_level_str, log_format
    )


def set_request_id(request_id: str | None) -> None:
    """Set request_id in the current async context."""
    request_id_var.set(request_id)


def get_request_id() -> str | None:
    """Get current request_id from the async context."""
    return request_id_var.get()


def generate_request_id() -> str:
    """Generate a new UUID4 request_id."""
    return str(uuid.uuid4())


def set_stream_context(channel: str | None = None, symbol: str | None = None) -> None:
    """Bind stream context into the current async context.

    Only the arguments passed are updated; ``None`` leaves a var unchanged.
    Pair with ``clear_stream_context()`` in a ``finally`` block.
    """
    if channel is not None:
        channel_var.set(channel)
    if symbol is not None:
        symbol_var.set(symbol)


def clear_stream_context() -> None:
    """Clear the stream ContextVars in the current async context."""
    channel_var.set(None)
    symbol_var.set(None)


def get_logger(name: str) -> logging.Logger:
    """Return a standard ``logging.Logger`` for the given module name.

    Usage::

        from klingex.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    context: dict[str, Any] | None = None,
) -> None:
    """Log an exception with its traceback and optional structured context."""
    context_str = f" | context={context}" if context else ""
    logger.error(
        "Exception: %s%s",
        exc,
        context_str,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
