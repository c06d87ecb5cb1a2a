"""Order management endpoints (authenticated)."""

from __future__ import annotations

from typing import Any

from klingex.errors import KlingExError
from klingex.http import HttpClient
from klingex.models import (
    CancelAllOrdersResponse,
    CancelOrderResponse,
    Order,
    OrderHistory,
    OrderSide,
    OrderStatus,
    SubmitOrderResponse,
)


class OrdersEndpoint:
    """Submit, cancel and query orders.

    Quantities and prices are human-readable strings (``"1.5"``) unless
    ``raw_values=True`` is passed or the client was built with
    ``human_readable=False``.
    """

    def __init__(self, http: HttpClient, human_readable: bool = True) -> None:
        self._http = http
        self._human_readable = human_readable

    async def submit(
        self,
        symbol: str,
        trading_pair_id: int,
        side: OrderSide,
        quantity: str,
        price: str,
        raw_values: bool | None = None,
        slippage: float | None = None,
    ) -> SubmitOrderResponse:
        """Submit a new order.

        Args:
            symbol: Trading pair symbol, e.g. "BTC-USDT"
            trading_pair_id: Trading pair ID
            side: "buy" or "sell"
            quantity: Order quantity
            price: Limit price; "0" for a market order
            raw_values: Values are base units rather than human-readable
            slippage: Slippage tolerance for market orders (0-1)
        """
        if raw_values is None:
            raw_values = not self._human_readable

        body: dict[str, Any] = {
            "symbol": symbol,
            "tradingPairId": trading_pair_id,
            "side": side.upper(),
            "quantity": quantity,
            "price": price,
            "rawValues": raw_values,
        }
        if slippage is not None:
            body["slippage"] = slippage

        response = await self._http.post("/api/submit-order", body)
        return SubmitOrderResponse.model_validate(response)

    async def cancel(self, order_id: str, trading_pair_id: int) -> CancelOrderResponse:
        """Cancel an existing order."""
        response = await self._http.post(
            "/api/cancel-order",
            {"orderId": order_id, "tradingPairId": trading_pair_id},
        )
        return CancelOrderResponse.model_validate(response)

    async def cancel_all(self, trading_pair_id: int) -> CancelAllOrdersResponse:
        """Cancel all open orders for a trading pair."""
        response = await self._http.post("/api/cancel-all-orders", {"tradingPairId": trading_pair_id})
        return CancelAllOrdersResponse.model_validate(response)

    async def list(
        self,
        trading_pair_id: int | None = None,
        status: OrderStatus | None = None,
        limit: int = 50,
    ) -> list[Order]:
        """Get your open orders."""
        response = await self._http.get(
            "/api/user-orders",
            {"tradingPairId": trading_pair_id, "status": status, "limit": limit},
        )
        return [Order.model_validate(item) for item in response.get("orders") or []]

    async def history(
        self,
        trading_pair_id: int | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> OrderHistory:
        """Get order history including filled and cancelled orders."""
        response = await self._http.get(
            "/api/orders-history",
            {"tradingPairId": trading_pair_id, "status": status, "limit": limit, "offset": offset},
        )
        return OrderHistory.model_validate(response)

    async def get(self, order_id: str) -> Order:
        """Get a specific order by ID."""
        response = await self._http.get(f"/api/orders/{order_id}")
        if not response.get("data"):
            raise KlingExError("Order not found", code="NOT_FOUND")
        return Order.model_validate(response["data"])

    async def limit_buy(
        self, symbol: str, trading_pair_id: int, quantity: str, price: str
    ) -> SubmitOrderResponse:
        return await self.submit(symbol, trading_pair_id, "buy", quantity, price)

    async def limit_sell(
        self, symbol: str, trading_pair_id: int, quantity: str, price: str
    ) -> SubmitOrderResponse:
        return await self.submit(symbol, trading_pair_id, "sell", quantity, price)

    async def market_buy(
        self, symbol: str, trading_pair_id: int, quantity: str, slippage: float = 0.01
    ) -> SubmitOrderResponse:
        return await self.submit(symbol, trading_pair_id, "buy", quantity, "0", slippage=slippage)

    async def market_sell(
        self, symbol: str, trading_pair_id: int, quantity: str, slippage: float = 0.01
    ) -> SubmitOrderResponse:
        return await self.submit(symbol, trading_pair_id, "sell", quantity, "0", slippage=slippage)
