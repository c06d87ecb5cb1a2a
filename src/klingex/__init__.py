"""KlingEx: async Python client for the KlingEx exchange REST and WebSocket APIs.

Public surface
--------------
Client:
    KlingEx, KlingExWebSocket, Channel, WebSocketOptions

Configuration:
    KlingExSettings, settings

Errors:
    KlingExError, AuthenticationError, RateLimitError, ValidationError,
    InsufficientFundsError, RequestTimeoutError, NetworkError,
    WebSocketError, WebSocketDecodeError, ReconnectExhaustedError

Helpers:
    to_human, to_raw
"""

from .client import KlingEx
from .config import KlingExSettings, WebSocketOptions, settings
from .errors import (
    AuthenticationError,
    InsufficientFundsError,
    KlingExError,
    NetworkError,
    RateLimitError,
    ReconnectExhaustedError,
    RequestTimeoutError,
    ValidationError,
    WebSocketDecodeError,
    WebSocketError,
)
from .units import to_human, to_raw
from .websocket import Channel, KlingExWebSocket, Subscription

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "Channel",
    "InsufficientFundsError",
    "KlingEx",
    "KlingExError",
    "KlingExSettings",
    "KlingExWebSocket",
    "NetworkError",
    "RateLimitError",
    "ReconnectExhaustedError",
    "RequestTimeoutError",
    "Subscription",
    "ValidationError",
    "WebSocketDecodeError",
    "WebSocketError",
    "WebSocketOptions",
    "__version__",
    "settings",
    "to_human",
    "to_raw",
]
