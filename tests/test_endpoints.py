"""Tests for the REST endpoint groups against a mocked transport."""

import json

import httpx
import pytest

from klingex.endpoints import InvoicesEndpoint, MarketsEndpoint, OrdersEndpoint, WalletEndpoint
from klingex.errors import KlingExError
from klingex.http import HttpClient


class Recorder:
    """MockTransport handler that records requests and serves canned JSON by path."""

    def __init__(self, routes: dict) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json=self.routes.get(request.url.path, {}))

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def last_params(self) -> dict:
        return dict(self.requests[-1].url.params)


def _http(recorder: Recorder) -> HttpClient:
    return HttpClient("https://api.test", api_key="key", transport=httpx.MockTransport(recorder))


class TestMarketsEndpoint:
    """Test market data endpoints."""

    @pytest.mark.asyncio
    async def test_list(self):
        recorder = Recorder(
            {
                "/api/markets": {
                    "data": [
                        {
                            "id": 1,
                            "base_asset_symbol": "BTC",
                            "quote_asset_symbol": "USDT",
                            "priceChange24h": "2.5",
                        }
                    ]
                }
            }
        )
        markets = await MarketsEndpoint(_http(recorder)).list()

        assert len(markets) == 1
        assert markets[0].symbol == "BTC-USDT"
        assert markets[0].price_change_24h == "2.5"

    @pytest.mark.asyncio
    async def test_get_missing_market(self):
        recorder = Recorder({"/api/markets/9": {"data": None}})
        with pytest.raises(KlingExError) as exc_info:
            await MarketsEndpoint(_http(recorder)).get(9)
        assert exc_info.value.code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_orderbook_reshapes_levels(self):
        recorder = Recorder(
            {
                "/api/orderbook": {
                    "bids": [["50000", "1.2"], ["49990", "0.5"]],
                    "asks": [["50010", "0.3"]],
                    "timestamp": "2024-01-01T00:00:00Z",
                }
            }
        )
        book = await MarketsEndpoint(_http(recorder)).orderbook("BTC-USDT", limit=10)

        assert recorder.last_params == {"symbol": "BTC-USDT", "limit": "10"}
        assert book.symbol == "BTC-USDT"
        assert [(b.price, b.quantity) for b in book.bids] == [("50000", "1.2"), ("49990", "0.5")]
        assert book.best_ask.price == "50010"
        assert book.timestamp == "2024-01-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_orderbook_empty_side(self):
        recorder = Recorder({"/api/orderbook": {"bids": [], "asks": None}})
        book = await MarketsEndpoint(_http(recorder)).orderbook("BTC-USDT")

        assert book.best_bid is None
        assert book.best_ask is None
        assert book.timestamp

    @pytest.mark.asyncio
    async def test_ticker_lookup(self):
        recorder = Recorder(
            {
                "/api/tickers": {
                    "data": [
                        {"ticker_id": "BTC_USDT", "last_price": "50000"},
                        {"symbol": "ETH-USDT", "last_price": "3000"},
                    ]
                }
            }
        )
        markets = MarketsEndpoint(_http(recorder))

        assert (await markets.ticker("BTC_USDT")).last_price == "50000"
        assert (await markets.ticker("ETH-USDT")).last_price == "3000"
        assert await markets.ticker("DOGE-USDT") is None

    @pytest.mark.asyncio
    async def test_ohlcv_params(self):
        recorder = Recorder({"/api/ohlcv": {"data": []}})
        await MarketsEndpoint(_http(recorder)).ohlcv(1, "1h", limit=100, start_date="2024-01-01")

        assert recorder.last_params == {
            "marketId": "1",
            "timeframe": "1h",
            "limit": "100",
            "startDate": "2024-01-01",
        }


class TestOrdersEndpoint:
    """Test order submission and management."""

    @pytest.mark.asyncio
    async def test_submit_body(self):
        recorder = Recorder({"/api/submit-order": {"message": "Order placed", "order_id": "o1"}})
        response = await OrdersEndpoint(_http(recorder)).limit_buy("BTC-USDT", 1, "0.5", "50000")

        assert response.order_id == "o1"
        assert recorder.last_body == {
            "symbol": "BTC-USDT",
            "tradingPairId": 1,
            "side": "BUY",
            "quantity": "0.5",
            "price": "50000",
            "rawValues": False,
        }

    @pytest.mark.asyncio
    async def test_market_sell_has_slippage(self):
        recorder = Recorder({"/api/submit-order": {"message": "ok", "order_id": "o2"}})
        await OrdersEndpoint(_http(recorder)).market_sell("BTC-USDT", 1, "0.1")

        body = recorder.last_body
        assert body["side"] == "SELL"
        assert body["price"] == "0"
        assert body["slippage"] == 0.01

    @pytest.mark.asyncio
    async def test_raw_values_default_follows_client_mode(self):
        recorder = Recorder({"/api/submit-order": {"message": "ok", "order_id": "o3"}})
        await OrdersEndpoint(_http(recorder), human_readable=False).submit(
            "BTC-USDT", 1, "buy", "50000000", "5000000000000"
        )
        assert recorder.last_body["rawValues"] is True

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        recorder = Recorder(
            {
                "/api/cancel-all-orders": {
                    "message": "Cancelled",
                    "cancelledCount": 2,
                    "totalOrders": 2,
                    "cancelledOrderIds": ["o1", "o2"],
                }
            }
        )
        response = await OrdersEndpoint(_http(recorder)).cancel_all(1)

        assert recorder.last_body == {"tradingPairId": 1}
        assert response.cancelled_count == 2
        assert response.cancelled_order_ids == ["o1", "o2"]

    @pytest.mark.asyncio
    async def test_list_open_orders(self):
        recorder = Recorder(
            {
                "/api/user-orders": {
                    "orders": [
                        {
                            "id": "o1",
                            "trading_pair_id": 1,
                            "side": "buy",
                            "price": "50000",
                            "amount": "1",
                            "status": "pending",
                        }
                    ]
                }
            }
        )
        orders = await OrdersEndpoint(_http(recorder)).list(trading_pair_id=1)

        assert recorder.last_params == {"tradingPairId": "1", "limit": "50"}
        assert orders[0].id == "o1"
        assert orders[0].filled_amount == "0"


class TestWalletEndpoint:
    """Test wallet endpoints."""

    BALANCES = {
        "/api/user-balances": {
            "data": [
                {
                    "id": 1,
                    "symbol": "BTC",
                    "decimals": 8,
                    "balance": "150000000",
                    "locked_balance": "50000000",
                },
                {"id": 2, "symbol": "USDT", "decimals": 6, "balance": "not-a-number"},
            ]
        }
    }

    @pytest.mark.asyncio
    async def test_balances_human_values(self):
        balances = await WalletEndpoint(_http(Recorder(self.BALANCES))).balances()
        btc = balances[0]

        assert btc.available_balance == "100000000"
        assert btc.human_balance == "1.5"
        assert btc.human_locked == "0.5"
        assert btc.human_available == "1"

    @pytest.mark.asyncio
    async def test_unparseable_balance_kept(self):
        balances = await WalletEndpoint(_http(Recorder(self.BALANCES))).balances()
        usdt = balances[1]

        assert usdt.balance == "not-a-number"
        assert usdt.human_balance is None

    @pytest.mark.asyncio
    async def test_balance_lookup_case_insensitive(self):
        wallet = WalletEndpoint(_http(Recorder(self.BALANCES)))
        assert (await wallet.balance("btc")).id == 1
        assert await wallet.balance("ETH") is None

    @pytest.mark.asyncio
    async def test_withdraw_sends_memo_as_destination_tag(self):
        recorder = Recorder(
            {"/api/submit-withdraw": {"message": "2FA required", "requires_2fa": True, "session_token": "s1"}}
        )
        response = await WalletEndpoint(_http(recorder)).withdraw(3, "XRP", "rAddr", "10", memo="12345")

        assert recorder.last_body["destinationTag"] == "12345"
        assert response.requires_2fa
        assert response.session_token == "s1"

    @pytest.mark.asyncio
    async def test_withdraw_without_memo_omits_destination_tag(self):
        recorder = Recorder({"/api/submit-withdraw": {"message": "Withdrawal submitted", "withdrawal_id": "w1"}})
        response = await WalletEndpoint(_http(recorder)).withdraw(1, "BTC", "bc1qaddr", "0.01")

        assert recorder.last_body == {
            "assetId": 1,
            "symbol": "BTC",
            "address": "bc1qaddr",
            "amount": "0.01",
        }
        assert response.withdrawal_id == "w1"

    @pytest.mark.asyncio
    async def test_deposit_address_missing(self):
        recorder = Recorder({"/api/deposit-address": {}})
        with pytest.raises(KlingExError):
            await WalletEndpoint(_http(recorder)).deposit_address(1)


class TestInvoicesEndpoint:
    """Test invoice endpoints."""

    INVOICE = {"id": "inv1", "amount": "100", "asset": "USDT", "status": "pending"}

    @pytest.mark.asyncio
    async def test_create_drops_unset_fields(self):
        recorder = Recorder({"/api/invoices": {"data": self.INVOICE}})
        invoice = await InvoicesEndpoint(_http(recorder)).create("100", "USDT", external_id="ord-7")

        assert recorder.last_body == {"amount": "100", "asset": "USDT", "external_id": "ord-7"}
        assert invoice.id == "inv1"

    @pytest.mark.asyncio
    async def test_list_page(self):
        recorder = Recorder({"/api/invoices": {"data": [self.INVOICE], "total": 1, "limit": 50, "offset": 0}})
        page = await InvoicesEndpoint(_http(recorder)).list(status="pending")

        assert recorder.last_params == {"limit": "50", "offset": "0", "status": "pending"}
        assert page.total == 1
        assert page.data[0].status == "pending"

    @pytest.mark.asyncio
    async def test_fees_default_to_zero(self):
        recorder = Recorder({"/api/invoices/fees": {}})
        fees = await InvoicesEndpoint(_http(recorder)).fees("USDT", "100")

        assert fees.total_fee == "0"
        assert fees.network_fee == "0"

    @pytest.mark.asyncio
    async def test_pdf_bytes(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"%PDF", headers={"content-type": "application/pdf"})

        http = HttpClient("https://api.test", transport=httpx.MockTransport(handler))
        assert await InvoicesEndpoint(http).pdf("inv1") == b"%PDF"
