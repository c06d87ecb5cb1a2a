"""KlingEx resource models.

Every model allows extra fields so server additions pass through untouched.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from klingex.units import to_human

OrderSide = Literal["buy", "sell", "BUY", "SELL"]
OrderStatus = Literal["pending", "partial", "filled", "cancelled", "rejected"]
OrderType = Literal["limit", "market"]
InvoiceStatus = Literal["pending", "paid", "expired", "cancelled", "overpaid", "underpaid"]
Timeframe = Literal["1m", "5m", "15m", "30m", "1h", "4h", "1d", "1w"]


class KlingExModel(BaseModel):
    """Base for all payload models."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# Markets


class Asset(KlingExModel):
    id: int
    symbol: str
    name: str
    decimals: int
    min_deposit: str | None = None
    min_withdrawal: str | None = None
    withdrawal_fee: str | None = None
    is_active: bool | None = None


class Market(KlingExModel):
    """Trading pair with 24h statistics."""

    id: int
    base_asset_id: int | None = None
    quote_asset_id: int | None = None
    min_trade_amount: str | None = None
    max_trade_amount: str | None = None
    tick_size: str | None = None
    step_size: str | None = None
    maker_fee_rate: str | None = None
    taker_fee_rate: str | None = None
    price_decimals: int | None = None
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None
    base_asset_symbol: str | None = None
    base_asset_name: str | None = None
    quote_asset_symbol: str | None = None
    quote_asset_name: str | None = None
    volume_24h: str | None = None
    price_change_24h: str | None = Field(default=None, alias="priceChange24h")
    last_price: str | None = None
    base_decimals: int | None = None
    quote_decimals: int | None = None
    volume_24h_human: str | None = None

    @property
    def symbol(self) -> str | None:
        if self.base_asset_symbol and self.quote_asset_symbol:
            return f"{self.base_asset_symbol}-{self.quote_asset_symbol}"
        return None


class Ticker(KlingExModel):
    ticker_id: str | None = None
    symbol: str | None = None
    base_currency: str | None = None
    target_currency: str | None = None
    last_price: str | None = None
    base_volume: str | None = None
    target_volume: str | None = None
    bid: str | None = None
    ask: str | None = None
    high: str | None = None
    low: str | None = None


class OrderbookEntry(KlingExModel):
    price: str
    quantity: str


class Orderbook(KlingExModel):
    symbol: str
    bids: list[OrderbookEntry] = Field(default_factory=list)
    asks: list[OrderbookEntry] = Field(default_factory=list)
    timestamp: str

    @property
    def best_bid(self) -> OrderbookEntry | None:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> OrderbookEntry | None:
        return self.asks[0] if self.asks else None


class OHLCV(KlingExModel):
    time_bucket: str
    open_price: str
    high_price: str
    low_price: str
    close_price: str
    volume: str
    number_of_trades: int = 0


class Trade(KlingExModel):
    id: str
    price: str
    quantity: str
    side: Literal["buy", "sell"]
    timestamp: str


# Orders


class Order(KlingExModel):
    id: str
    trading_pair_id: int
    side: Literal["buy", "sell"]
    type: OrderType = "limit"
    price: str
    amount: str
    filled_amount: str = "0"
    status: OrderStatus
    created_at: str | None = None
    updated_at: str | None = None
    human_price: str | None = None
    human_amount: str | None = None
    human_filled_amount: str | None = None
    human_remaining: str | None = None
    human_total: str | None = None


class SubmitOrderResponse(KlingExModel):
    message: str
    order_id: str


class CancelOrderResponse(KlingExModel):
    message: str
    released_balance: str | None = None


class CancelAllOrdersResponse(KlingExModel):
    message: str
    cancelled_count: int = Field(default=0, alias="cancelledCount")
    total_orders: int = Field(default=0, alias="totalOrders")
    cancelled_order_ids: list[str] = Field(default_factory=list, alias="cancelledOrderIds")
    total_released_balance: str | None = Field(default=None, alias="totalReleasedBalance")


class OrderHistory(KlingExModel):
    orders: list[Order] = Field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0


# Wallet


class Balance(KlingExModel):
    """Wallet balance for one asset; amounts are raw base units."""

    id: int
    symbol: str
    name: str | None = None
    decimals: int
    balance: str
    locked_balance: str = "0"
    wallet_id: str | None = None
    deposit_address: str | None = None
    min_deposit: str | None = None
    min_withdrawal: str | None = None
    withdrawal_fee: str | None = None
    available_balance: str | None = None
    human_balance: str | None = None
    human_locked: str | None = None
    human_available: str | None = None

    def with_human_values(self) -> "Balance":
        """Return a copy with available and human-readable amounts filled in."""
        available = int(self.balance) - int(self.locked_balance)
        return self.model_copy(
            update={
                "available_balance": str(available),
                "human_balance": to_human(self.balance, self.decimals),
                "human_locked": to_human(self.locked_balance, self.decimals),
                "human_available": to_human(available, self.decimals),
            }
        )


class DepositAddress(KlingExModel):
    address: str
    memo: str | None = None
    network: str | None = None


class WithdrawResponse(KlingExModel):
    message: str
    withdrawal_id: str | None = None
    requires_2fa: bool = False
    session_token: str | None = None


class Deposit(KlingExModel):
    id: str
    asset_id: int | None = None
    symbol: str
    amount: str
    address: str | None = None
    tx_hash: str | None = None
    status: str
    confirmations: int = 0
    created_at: str | None = None


class Withdrawal(KlingExModel):
    id: str
    asset_id: int | None = None
    symbol: str
    amount: str
    fee: str | None = None
    address: str | None = None
    tx_hash: str | None = None
    status: str
    created_at: str | None = None


class DepositHistory(KlingExModel):
    deposits: list[Deposit] = Field(default_factory=list)
    total: int = 0


class WithdrawalHistory(KlingExModel):
    withdrawals: list[Withdrawal] = Field(default_factory=list)
    total: int = 0


class Transaction(KlingExModel):
    id: str
    type: Literal["deposit", "withdrawal", "trade"]
    asset: str
    amount: str
    status: str
    created_at: str | None = None


# Invoices


class Invoice(KlingExModel):
    id: str
    amount: str
    asset: str
    status: InvoiceStatus
    description: str | None = None
    external_id: str | None = None
    payment_address: str | None = None
    payment_amount: str | None = None
    paid_at: str | None = None
    expires_at: str | None = None
    created_at: str | None = None
    webhook_url: str | None = None
    redirect_url: str | None = None


class InvoiceFees(KlingExModel):
    network_fee: str = "0"
    service_fee: str = "0"
    total_fee: str = "0"


class InvoiceStatusInfo(KlingExModel):
    status: str
    paid_amount: str | None = None
    confirmations: int | None = None


class InvoicePaymentPage(KlingExModel):
    invoice: Invoice
    qr_code: str | None = None
    payment_uri: str | None = None


class InvoicePage(KlingExModel):
    """Paginated invoice list."""

    data: list[Invoice] = Field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0


# Account


class Profile(KlingExModel):
    id: str
    email: str
    created_at: str | None = None
    two_fa_enabled: bool = False


class User(KlingExModel):
    id: str
    email: str
    is_active: bool = True
    is_email_verified: bool = False
    created_at: str | None = None


class ApiKeyStats(KlingExModel):
    total_keys: int = 0
    active_keys: int = 0
    last_used_at: str | None = None


# Streaming


class WebSocketMessage(KlingExModel):
    """Inbound data frame envelope."""

    channel: str
    event: str | None = None
    data: Any = None
    timestamp: str | None = None
