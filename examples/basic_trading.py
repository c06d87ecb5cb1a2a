#!/usr/bin/env python3
"""
KlingEx - REST API demo

Lists markets, shows the top of the book and, when KLINGEX_API_KEY is set,
prints wallet balances and open orders. Pass --place to submit (and then
cancel) a small limit order far below the market.
"""

import asyncio
import sys
from decimal import Decimal

from klingex import KlingEx, KlingExError, to_raw
from klingex.logging import setup_logging

SYMBOL = "BTC-USDT"


async def main(place_order: bool = False):
    setup_logging()

    async with KlingEx() as client:
        markets = await client.markets.list()
        print(f"{len(markets)} markets")
        market = next((m for m in markets if m.symbol == SYMBOL), None)
        if market is None:
            print(f"{SYMBOL} is not listed")
            return

        book = await client.markets.orderbook(SYMBOL, limit=5)
        if book.best_bid and book.best_ask:
            print(f"{SYMBOL} best bid {book.best_bid.price} / best ask {book.best_ask.price}")

        if not client.is_authenticated:
            print("Set KLINGEX_API_KEY to see account data")
            return

        for balance in await client.wallet.balances():
            print(f"  {balance.symbol:<6} available {balance.human_available} (locked {balance.human_locked})")

        for order in await client.orders.list(trading_pair_id=market.id):
            print(f"  open {order.side} {order.human_amount or order.amount} @ {order.human_price or order.price}")

        if not place_order or book.best_bid is None:
            return

        price = str(Decimal(book.best_bid.price) / 2)
        print(f"Placing limit buy 0.0001 {SYMBOL} @ {price}")
        if market.base_decimals is not None:
            print(f"  (raw quantity would be {to_raw('0.0001', market.base_decimals)})")
        try:
            placed = await client.orders.limit_buy(SYMBOL, market.id, quantity="0.0001", price=price)
        except KlingExError as e:
            print(f"Order rejected [{e.code}]: {e.message}")
            return

        cancelled = await client.orders.cancel(placed.order_id, market.id)
        print(f"Cancelled {placed.order_id}: {cancelled.message}")


if __name__ == "__main__":
    asyncio.run(main(place_order="--place" in sys.argv))
