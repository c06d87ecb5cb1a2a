"""Market data endpoints (public)."""

from __future__ import annotations

from datetime import UTC, datetime

from klingex.errors import KlingExError
from klingex.http import HttpClient
from klingex.models import OHLCV, Market, Orderbook, OrderbookEntry, Ticker, Timeframe, Trade


class MarketsEndpoint:
    """Markets, tickers, orderbooks, candles and recent trades."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def list(self) -> list[Market]:
        """Get all available markets/trading pairs."""
        response = await self._http.get("/api/markets")
        return [Market.model_validate(item) for item in response.get("data") or []]

    async def get(self, market_id: int) -> Market:
        """Get a specific market by ID."""
        response = await self._http.get(f"/api/markets/{market_id}")
        if not response.get("data"):
            raise KlingExError("Market not found", code="NOT_FOUND")
        return Market.model_validate(response["data"])

    async def tickers(self) -> list[Ticker]:
        """Get all tickers with 24h price data."""
        response = await self._http.get("/api/tickers")
        return [Ticker.model_validate(item) for item in response.get("data") or []]

    async def ticker(self, symbol: str) -> Ticker | None:
        """Get the ticker for one symbol, or ``None`` if the exchange has none."""
        for ticker in await self.tickers():
            if symbol in (ticker.symbol, ticker.ticker_id):
                return ticker
        return None

    async def orderbook(self, symbol: str, limit: int = 50) -> Orderbook:
        """Get the orderbook for a trading pair.

        Levels arrive as ``[price, quantity]`` pairs and are reshaped into
        ``OrderbookEntry`` objects, best price first.
        """
        response = await self._http.get("/api/orderbook", {"symbol": symbol, "limit": limit})
        return Orderbook(
            symbol=symbol,
            bids=[OrderbookEntry(price=p, quantity=q) for p, q, *_ in response.get("bids") or []],
            asks=[OrderbookEntry(price=p, quantity=q) for p, q, *_ in response.get("asks") or []],
            timestamp=response.get("timestamp") or datetime.now(UTC).isoformat(),
        )

    async def ohlcv(
        self,
        market_id: int,
        timeframe: Timeframe,
        limit: int | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[OHLCV]:
        """Get candlestick data."""
        response = await self._http.get(
            "/api/ohlcv",
            {
                "marketId": market_id,
                "timeframe": timeframe,
                "limit": limit,
                "startDate": start_date,
                "endDate": end_date,
            },
        )
        return [OHLCV.model_validate(item) for item in response.get("data") or []]

    async def trades(self, symbol: str, limit: int = 50) -> list[Trade]:
        """Get recent public trades for a trading pair."""
        response = await self._http.get("/api/trades", {"symbol": symbol, "limit": limit})
        return [Trade.model_validate(item) for item in response.get("data") or []]
