"""REST endpoint groups exposed on the ``KlingEx`` client."""

from .invoices import InvoicesEndpoint
from .markets import MarketsEndpoint
from .orders import OrdersEndpoint
from .wallet import WalletEndpoint

__all__ = ["InvoicesEndpoint", "MarketsEndpoint", "OrdersEndpoint", "WalletEndpoint"]
