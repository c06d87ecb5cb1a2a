#!/usr/bin/env python3
"""
KlingEx - Simple market maker demo

WARNING: for educational purposes only. Running this against a live account
can lose money.

Keeps one bid and one ask around the mid price taken from the orderbook
stream, and requotes when the mid moves by more than MIN_PRICE_MOVEMENT.
Requires KLINGEX_API_KEY.
"""

import asyncio
from decimal import Decimal

from klingex import InsufficientFundsError, KlingEx, KlingExError
from klingex.logging import get_logger, setup_logging

logger = get_logger("examples.market_maker")

SYMBOL = "BTC-USDT"
TRADING_PAIR_ID = 1
SPREAD = Decimal("0.005")  # each side of mid
ORDER_SIZE = "0.001"
MIN_PRICE_MOVEMENT = Decimal("0.001")
REQUOTE_INTERVAL = 10.0


class SimpleMarketMaker:
    def __init__(self, client: KlingEx):
        self.client = client
        self.mid: Decimal | None = None
        self.last_quoted_mid: Decimal | None = None

    def on_orderbook(self, data):
        bids = data.get("bids") or []
        asks = data.get("asks") or []
        if not bids or not asks:
            return
        self.mid = (Decimal(str(bids[0][0])) + Decimal(str(asks[0][0]))) / 2

    def on_error(self, error):
        logger.warning(f"Stream error: {error!r}")

    def needs_requote(self) -> bool:
        if self.mid is None:
            return False
        if self.last_quoted_mid is None:
            return True
        return abs(self.mid - self.last_quoted_mid) / self.last_quoted_mid >= MIN_PRICE_MOVEMENT

    async def requote(self):
        mid = self.mid
        bid_price = str((mid * (1 - SPREAD)).quantize(Decimal("0.01")))
        ask_price = str((mid * (1 + SPREAD)).quantize(Decimal("0.01")))
        print(f"Mid {mid:.2f}: quoting {bid_price} / {ask_price}")

        await self.cancel_all()
        await self.place("buy", bid_price)
        await self.place("sell", ask_price)
        self.last_quoted_mid = mid

    async def place(self, side: str, price: str):
        place_order = self.client.orders.limit_buy if side == "buy" else self.client.orders.limit_sell
        try:
            result = await place_order(SYMBOL, TRADING_PAIR_ID, ORDER_SIZE, price)
        except InsufficientFundsError:
            print(f"  insufficient funds for {side} order")
            return
        print(f"  {side.upper()} {ORDER_SIZE} @ {price} ({result.order_id})")

    async def cancel_all(self):
        try:
            result = await self.client.orders.cancel_all(TRADING_PAIR_ID)
        except KlingExError as e:
            logger.error(f"Error cancelling orders: {e}")
            return
        if result.cancelled_count:
            print(f"  cancelled {result.cancelled_count} orders")

    async def run(self):
        ws = self.client.ws
        ws.on_error(self.on_error)
        ws.orderbook(SYMBOL, self.on_orderbook)
        await ws.connect()

        print(f"Market making {SYMBOL}, spread {SPREAD * 100}% per side. Ctrl+C to stop.")
        try:
            while True:
                if self.needs_requote():
                    try:
                        await self.requote()
                    except KlingExError as e:
                        logger.error(f"Error updating orders: [{e.code}] {e.message}")
                await asyncio.sleep(REQUOTE_INTERVAL)
        finally:
            print("Shutting down, cancelling open orders...")
            await self.cancel_all()


async def main():
    setup_logging()

    async with KlingEx() as client:
        if not client.is_authenticated:
            print("Please set KLINGEX_API_KEY")
            return
        await SimpleMarketMaker(client).run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped")
