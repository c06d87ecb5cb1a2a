"""Exception classes raised or reported by the KlingEx client."""

from typing import Any


class KlingExError(Exception):
    """Base exception for all KlingEx client errors."""

    default_code = "API_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code!r}, "
            f"status_code={self.status_code!r})"
        )


class AuthenticationError(KlingExError):
    """Credentials missing, invalid or expired (HTTP 401)."""

    default_code = "AUTH_ERROR"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, status_code=401)


class RateLimitError(KlingExError):
    """Too many requests (HTTP 429)."""

    default_code = "RATE_LIMIT"

    def __init__(self, message: str = "Rate limit exceeded", retry_after: float | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class ValidationError(KlingExError):
    """Request rejected as invalid (HTTP 400)."""

    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, status_code=400, details=details)


class InsufficientFundsError(KlingExError):
    """Balance too low for the requested order or withdrawal."""

    default_code = "INSUFFICIENT_FUNDS"

    def __init__(self, message: str = "Insufficient funds") -> None:
        super().__init__(message, status_code=400)


class RequestTimeoutError(KlingExError):
    default_code = "TIMEOUT"

    def __init__(self, message: str = "Request timeout") -> None:
        super().__init__(message, status_code=408)


class NetworkError(KlingExError):
    default_code = "NETWORK_ERROR"


class WebSocketError(KlingExError):
    """Transport-level WebSocket failure, including failed reconnect attempts."""

    default_code = "WS_ERROR"


class WebSocketDecodeError(WebSocketError):
    """Inbound frame could not be decoded into a message."""

    default_code = "WS_DECODE_ERROR"


class ReconnectExhaustedError(WebSocketError):
    """Reconnect attempts hit the configured cap; a manual connect() is required."""

    default_code = "WS_RECONNECT_EXHAUSTED"
