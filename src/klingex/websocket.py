"""KlingEx WebSocket client for real-time market and account streams.

One client instance owns one transport at a time and three concerns:

- Connection management: ``connect()`` opens the transport with credentials
  in the query string, starts the liveness ping and replays every registered
  subscription. Any closure the client did not request itself schedules a
  reconnect with exponential backoff (``interval * 1.5 ** (attempt - 1)``)
  until the attempt cap.
- Subscription registry: ``channel`` or ``channel:symbol`` -> callback. The
  registry is the source of truth for what the server should be streaming
  and survives reconnects; only ``disconnect()`` clears it.
- Message routing: each inbound frame is decoded and handed to the matching
  callback (``data`` payload only). Unmatched frames are dropped.

Errors never propagate out of the reader task or the subscription methods;
they go to the handler registered with ``on_error()`` and to the log.
``connect()`` is the only call that raises to its caller.
"""

import asyncio
import inspect
import json
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import websockets
import websockets.exceptions
from pydantic import ValidationError as PydanticValidationError
from websockets.asyncio.client import ClientConnection

from klingex.config import WebSocketOptions
from klingex.errors import ReconnectExhaustedError, WebSocketDecodeError, WebSocketError
from klingex.logging import clear_stream_context, get_logger, log_exception, set_stream_context
from klingex.models import WebSocketMessage

logger = get_logger(__name__)

MessageHandler = Callable[[Any], Any]
ErrorHandler = Callable[[Exception], Any]
Unsubscribe = Callable[[], None]

NORMAL_CLOSURE = 1000
BACKOFF_FACTOR = 1.5


class Channel(str, Enum):
    """Stream categories a client can subscribe to."""

    ORDERBOOK = "orderbook"
    TRADES = "trades"
    TICKER = "ticker"
    USER_ORDERS = "user.orders"
    USER_BALANCES = "user.balances"


def subscription_key(channel: str, symbol: str | None = None) -> str:
    """Registry key: ``channel`` alone, or ``channel:symbol``."""
    return f"{channel}:{symbol}" if symbol else channel


def routing_key(channel: str, data: Any) -> str:
    """Registry key an inbound message should be delivered to."""
    symbol = data.get("symbol") if isinstance(data, dict) else None
    return subscription_key(channel, symbol if isinstance(symbol, str) else None)


@dataclass
class Subscription:
    """One caller's interest in a stream."""

    channel: Channel
    symbol: str | None
    callback: MessageHandler

    @property
    def key(self) -> str:
        return subscription_key(self.channel.value, self.symbol)

    def to_message(self, action: str) -> dict[str, str]:
        message = {"action": action, "channel": self.channel.value}
        if self.symbol:
            message["symbol"] = self.symbol
        return message


class KlingExWebSocket:
    """Persistent streaming client with automatic resubscription."""

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        jwt: str | None = None,
        options: WebSocketOptions | None = None,
    ) -> None:
        """Initialize the WebSocket client.

        Args:
            url: Endpoint, e.g. ``wss://api.klingex.io/ws``
            api_key: Sent as the ``apiKey`` query parameter (wins over jwt)
            jwt: Sent as the ``token`` query parameter
            options: Reconnect/ping tuning; defaults come from settings
        """
        self._url = url
        self._api_key = api_key
        self._jwt = jwt
        self._options = options or WebSocketOptions.from_settings()
        self._reconnect_enabled = self._options.reconnect

        self._websocket: ClientConnection | None = None
        self._connecting = False
        self._generation = 0
        self._reconnect_attempts = 0
        self._subscriptions: dict[str, Subscription] = {}
        self._error_handler: ErrorHandler | None = None

        self._outbox: asyncio.Queue[dict[str, Any]] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._ping_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._close_task: asyncio.Future[None] | None = None
        self._callback_tasks: set[asyncio.Future[Any]] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._websocket is not None

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def subscriptions(self) -> dict[str, Subscription]:
        """Snapshot of the registry keyed by subscription key."""
        return dict(self._subscriptions)

    def on_error(self, handler: ErrorHandler | None) -> None:
        """Set the single handler for transport, decode and reconnect errors."""
        self._error_handler = handler

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    def _build_url(self) -> str:
        url = httpx.URL(self._url)
        if self._api_key:
            url = url.copy_set_param("apiKey", self._api_key)
        elif self._jwt:
            url = url.copy_set_param("token", self._jwt)
        return str(url)

    async def connect(self) -> None:
        """Open the transport; returns once it is open.

        No-op when already open or while another connect is in flight.

        Raises:
            WebSocketError: The transport failed before opening.
        """
        try:
            await self._open()
        except WebSocketError:
            # A transport that never opened counts as an abnormal closure.
            self._schedule_reconnect()
            raise

    async def _open(self) -> None:
        if self._websocket is not None or self._connecting:
            logger.debug("connect() ignored: already open or connecting")
            return

        generation = self._generation
        self._connecting = True
        try:
            websocket = await websockets.connect(
                self._build_url(),
                ping_interval=None,
                open_timeout=self._options.open_timeout,
            )
        except Exception as e:
            logger.error(f"Failed to connect to KlingEx WebSocket {self._url}: {e}")
            raise WebSocketError("WebSocket connection failed", details=str(e)) from e
        finally:
            self._connecting = False

        if generation != self._generation:
            logger.info("disconnect() called while connecting; closing new transport")
            await websocket.close(code=NORMAL_CLOSURE, reason="Client disconnect")
            return

        self._on_open(websocket)

    def _on_open(self, websocket: ClientConnection) -> None:
        self._websocket = websocket
        self._reconnect_attempts = 0
        self._cancel_pending_reconnect()

        self._outbox = asyncio.Queue()
        self._reader_task = asyncio.create_task(self._listen(websocket))
        self._writer_task = asyncio.create_task(self._write_loop(websocket, self._outbox))
        self._ping_task = asyncio.create_task(self._ping_loop())

        for subscription in self._subscriptions.values():
            self._send(subscription.to_message("subscribe"))

        logger.info(
            f"KlingEx WebSocket connected to {self._url} "
            f"({len(self._subscriptions)} subscriptions replayed)"
        )

    def disconnect(self) -> None:
        """Close the connection for good and forget every subscription.

        Does not wait for the closing handshake; ``aclose()`` does.
        """
        self._reconnect_enabled = False
        self._generation += 1
        self._cancel_pending_reconnect()

        websocket = self._websocket
        self._teardown()
        if websocket is not None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop; skipping closing handshake")
            else:
                self._close_task = loop.create_task(
                    websocket.close(code=NORMAL_CLOSURE, reason="Client disconnect")
                )
                self._close_task.add_done_callback(_log_close_failure)

        self._subscriptions.clear()
        logger.info("KlingEx WebSocket disconnected")

    async def aclose(self) -> None:
        """``disconnect()`` and wait for the closing handshake."""
        self.disconnect()
        if self._close_task is not None:
            try:
                await self._close_task
            except Exception:
                # Already logged by _log_close_failure.
                pass
            self._close_task = None

    def _teardown(self) -> None:
        """Detach the current transport and stop its helper tasks."""
        self._websocket = None
        self._outbox = None
        current = asyncio.current_task() if _loop_running() else None
        for task in (self._ping_task, self._writer_task):
            if task is not None and not task.done() and task is not current:
                task.cancel()
        self._ping_task = None
        self._writer_task = None
        self._reader_task = None

    def _on_transport_closed(self, websocket: ClientConnection, error: BaseException | None) -> None:
        if websocket is not self._websocket:
            logger.debug("Ignoring close event from a discarded transport")
            return

        self._teardown()

        # disconnect() detaches the handle first, so any close seen here was
        # not requested by this client.
        if error is None:
            reason = f"closed by server (code {websocket.close_code}, reason {websocket.close_reason!r})"
        else:
            reason = str(error)

        logger.warning(f"KlingEx WebSocket connection lost: {reason}")
        lost = WebSocketError("WebSocket connection lost", details=reason)
        lost.__cause__ = error
        self._report_error(lost)
        self._schedule_reconnect()

    # ------------------------------------------------------------------
    # Reconnection
    # ------------------------------------------------------------------

    def _backoff_delay(self, attempt: int) -> float:
        return self._options.reconnect_interval * BACKOFF_FACTOR ** (attempt - 1)

    def _schedule_reconnect(self) -> None:
        if not self._reconnect_enabled:
            return

        if self._reconnect_attempts >= self._options.max_reconnect_attempts:
            logger.error(
                f"Giving up after {self._reconnect_attempts} reconnection attempts; "
                "call connect() to try again"
            )
            self._report_error(ReconnectExhaustedError("Max reconnection attempts reached"))
            return

        self._cancel_pending_reconnect()
        self._reconnect_attempts += 1
        delay = self._backoff_delay(self._reconnect_attempts)
        logger.info(
            f"Reconnecting in {delay:.2f}s "
            f"(attempt {self._reconnect_attempts}/{self._options.max_reconnect_attempts})"
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self._open()
        except WebSocketError as e:
            self._report_error(e)
            self._schedule_reconnect()

    def _cancel_pending_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is None or task.done():
            return
        if _loop_running() and task is asyncio.current_task():
            return
        task.cancel()

    # ------------------------------------------------------------------
    # Transport I/O
    # ------------------------------------------------------------------

    async def _listen(self, websocket: ClientConnection) -> None:
        error: BaseException | None = None
        try:
            async for raw in websocket:
                self._handle_message(raw)
        except websockets.exceptions.ConnectionClosedError as e:
            error = e
        except OSError as e:
            error = e
        self._on_transport_closed(websocket, error)

    async def _write_loop(
        self, websocket: ClientConnection, outbox: asyncio.Queue[dict[str, Any]]
    ) -> None:
        while True:
            payload = await outbox.get()
            try:
                await websocket.send(json.dumps(payload))
            except websockets.exceptions.ConnectionClosed:
                logger.debug(f"Dropping outbound frame on closed connection: {payload}")
                return

    async def _ping_loop(self) -> None:
        while True:
            await asyncio.sleep(self._options.ping_interval)
            self._send({"type": "ping"})

    def _send(self, payload: dict[str, Any]) -> None:
        if self._outbox is None:
            logger.debug(f"Not connected; not sending {payload}")
            return
        self._outbox.put_nowait(payload)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self, channel: Channel | str, symbol: str | None, callback: MessageHandler
    ) -> Unsubscribe:
        """Register ``callback`` for a channel (and symbol, for market data).

        Replaces any existing callback for the same channel/symbol. The wire
        subscribe is sent now if connected, otherwise on the next connect.

        Returns:
            A function that removes this subscription; extra calls do nothing.
            Once the same channel/symbol is subscribed again, the old function
            no longer removes anything.
        """
        subscription = Subscription(Channel(channel), symbol, callback)
        key = subscription.key
        self._subscriptions[key] = subscription

        if self.is_connected:
            self._send(subscription.to_message("subscribe"))
        else:
            logger.debug(f"Subscription {key} registered; will be sent on connect")

        def unsubscribe() -> None:
            if self._subscriptions.get(key) is not subscription:
                return
            del self._subscriptions[key]
            if self.is_connected:
                self._send(subscription.to_message("unsubscribe"))

        return unsubscribe

    def orderbook(self, symbol: str, callback: MessageHandler) -> Unsubscribe:
        """Orderbook updates (``bids``/``asks`` level arrays) for a trading pair."""
        return self.subscribe(Channel.ORDERBOOK, symbol, callback)

    def trades(self, symbol: str, callback: MessageHandler) -> Unsubscribe:
        """Public trades (id/price/quantity/side/timestamp) for a trading pair."""
        return self.subscribe(Channel.TRADES, symbol, callback)

    def ticker(self, symbol: str, callback: MessageHandler) -> Unsubscribe:
        """Ticker snapshots (price/bid/ask) for a trading pair."""
        return self.subscribe(Channel.TICKER, symbol, callback)

    def user_orders(self, callback: MessageHandler) -> Unsubscribe:
        """Your order updates (requires auth)."""
        return self.subscribe(Channel.USER_ORDERS, None, callback)

    def user_balances(self, callback: MessageHandler) -> Unsubscribe:
        """Your balance updates (requires auth)."""
        return self.subscribe(Channel.USER_BALANCES, None, callback)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _handle_message(self, raw: str | bytes) -> None:
        try:
            payload = json.loads(raw)
        except ValueError as e:
            error = WebSocketDecodeError("Failed to parse message", details=_preview(raw))
            error.__cause__ = e
            self._report_error(error)
            return

        if not isinstance(payload, dict):
            self._report_error(WebSocketDecodeError("Unexpected message", details=_preview(raw)))
            return

        if payload.get("type") == "pong":
            return

        if "channel" not in payload:
            logger.debug(f"Ignoring frame without channel: {_preview(raw)}")
            return

        try:
            message = WebSocketMessage.model_validate(payload)
        except PydanticValidationError as e:
            error = WebSocketDecodeError("Malformed message", details=_preview(raw))
            error.__cause__ = e
            self._report_error(error)
            return

        key = routing_key(message.channel, message.data)
        subscription = self._subscriptions.get(key) or self._subscriptions.get(message.channel)
        if subscription is None:
            logger.debug(f"No subscription for {key}; dropping {message.event} message")
            return

        self._dispatch(subscription, message.data)

    def _dispatch(self, subscription: Subscription, data: Any) -> None:
        set_stream_context(channel=subscription.channel.value, symbol=subscription.symbol)
        try:
            result = subscription.callback(data)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._callback_tasks.add(task)
                task.add_done_callback(self._on_callback_done)
        except Exception as e:
            self._report_error(e)
        finally:
            clear_stream_context()

    def _on_callback_done(self, task: "asyncio.Future[Any]") -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, Exception):
            self._report_error(error)

    def _report_error(self, error: Exception) -> None:
        handler = self._error_handler
        if handler is None:
            logger.error(f"Unhandled WebSocket error: {error!r}")
            return

        logger.debug(f"Reporting WebSocket error: {error!r}")
        try:
            handler(error)
        except Exception as e:
            log_exception(logger, e, {"while": "running WebSocket error handler"})


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _preview(raw: str | bytes, limit: int = 200) -> str:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
    return text[:limit]


def _log_close_failure(task: "asyncio.Future[None]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(f"Error while closing KlingEx WebSocket: {error}")
