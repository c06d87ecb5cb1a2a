#!/usr/bin/env python3
"""
KlingEx - WebSocket streaming demo

Subscribes to public market streams (and private ones when credentials are
configured via KLINGEX_API_KEY / KLINGEX_JWT), prints updates for a while,
then disconnects.
"""

import asyncio
import sys

from klingex import KlingEx, KlingExError, ReconnectExhaustedError
from klingex.logging import get_logger, setup_logging

logger = get_logger("examples.websocket_stream")

SYMBOL = sys.argv[1] if len(sys.argv) > 1 else "BTC-USDT"
RUN_SECONDS = 30


def print_header(text):
    print("\n" + "=" * 70)
    print(text)
    print("=" * 70)


def on_ticker(data):
    print(f"  ticker  {data.get('symbol')}: last={data.get('price')} bid={data.get('bid')} ask={data.get('ask')}")


def on_orderbook(data):
    bids = data.get("bids") or []
    asks = data.get("asks") or []
    best_bid = bids[0][0] if bids else "-"
    best_ask = asks[0][0] if asks else "-"
    print(f"  book    {data.get('symbol')}: {best_bid} / {best_ask}")


async def on_trade(data):
    # Async callbacks run as their own tasks.
    print(f"  trade   {data.get('side')} {data.get('quantity')} @ {data.get('price')}")


def on_error(error):
    if isinstance(error, ReconnectExhaustedError):
        logger.error("Stream gave up reconnecting; restart the demo")
    else:
        logger.warning(f"Stream error: {error!r}")


async def main():
    setup_logging()

    async with KlingEx() as client:
        ws = client.ws
        ws.on_error(on_error)

        print_header(f"KlingEx streams for {SYMBOL}")
        ws.ticker(SYMBOL, on_ticker)
        ws.orderbook(SYMBOL, on_orderbook)
        stop_trades = ws.trades(SYMBOL, on_trade)

        if client.is_authenticated:
            ws.user_orders(lambda order: print(f"  order   {order}"))
            ws.user_balances(lambda balance: print(f"  balance {balance}"))

        try:
            await ws.connect()
        except KlingExError as e:
            logger.error(f"Could not connect: {e}")
            return

        await asyncio.sleep(RUN_SECONDS / 2)
        print("\nDropping the trades stream...")
        stop_trades()
        await asyncio.sleep(RUN_SECONDS / 2)

    print_header("Disconnected")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nInterrupted")
