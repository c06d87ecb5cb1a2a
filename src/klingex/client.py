"""KlingEx API client facade.

Example::

    async with KlingEx(api_key="...") as client:
        markets = await client.markets.list()
        await client.orders.limit_buy("BTC-USDT", 1, quantity="0.5", price="50000")

        await client.ws.connect()
        client.ws.orderbook("BTC-USDT", lambda book: print(book["bids"][:1]))
"""

from typing import Any

import httpx

from klingex.config import WebSocketOptions, settings
from klingex.endpoints import InvoicesEndpoint, MarketsEndpoint, OrdersEndpoint, WalletEndpoint
from klingex.http import HttpClient
from klingex.logging import get_logger
from klingex.models import ApiKeyStats, Profile, User
from klingex.websocket import KlingExWebSocket

logger = get_logger(__name__)


class KlingEx:
    """Entry point bundling REST endpoint groups and the streaming client."""

    def __init__(
        self,
        api_key: str | None = None,
        jwt: str | None = None,
        base_url: str | None = None,
        ws_url: str | None = None,
        timeout: float | None = None,
        human_readable: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client; unset arguments fall back to ``settings``.

        Args:
            api_key: API key (takes precedence over jwt)
            jwt: JWT bearer token
            base_url: REST API root
            ws_url: WebSocket endpoint
            timeout: HTTP timeout in seconds
            human_readable: Default value mode for order submission
            transport: Optional httpx transport, mainly for tests
        """
        self._api_key = api_key if api_key is not None else settings.api_key
        self._jwt = jwt if jwt is not None else settings.jwt
        self._base_url = (base_url or settings.base_url).rstrip("/")
        self._ws_url = ws_url or settings.ws_url
        self._timeout = timeout if timeout is not None else settings.timeout
        self._human_readable = (
            human_readable if human_readable is not None else settings.human_readable
        )

        self._http = HttpClient(
            self._base_url,
            api_key=self._api_key,
            jwt=self._jwt,
            timeout=self._timeout,
            transport=transport,
        )
        self._ws: KlingExWebSocket | None = None

        self.markets = MarketsEndpoint(self._http)
        self.orders = OrdersEndpoint(self._http, human_readable=self._human_readable)
        self.wallet = WalletEndpoint(self._http)
        self.invoices = InvoicesEndpoint(self._http)

    @property
    def ws(self) -> KlingExWebSocket:
        """Shared streaming client, created on first access."""
        if self._ws is None:
            self._ws = self.create_websocket()
        return self._ws

    def create_websocket(self, options: WebSocketOptions | None = None) -> KlingExWebSocket:
        """Build a new, independent streaming client with the current credentials."""
        return KlingExWebSocket(self._ws_url, api_key=self._api_key, jwt=self._jwt, options=options)

    def set_auth(self, api_key: str | None = None, jwt: str | None = None) -> None:
        """Update credentials for subsequent requests and new WebSocket clients."""
        if api_key:
            self._api_key = api_key
        if jwt:
            self._jwt = jwt
        self._http.set_auth(api_key=api_key, jwt=jwt)

    @property
    def is_authenticated(self) -> bool:
        return bool(self._api_key or self._jwt)

    @property
    def base_url(self) -> str:
        return self._base_url

    # Account endpoints

    async def get_profile(self) -> Profile:
        return Profile.model_validate(await self._http.get("/api/profile"))

    async def get_user(self) -> User:
        return User.model_validate(await self._http.get("/api/user"))

    async def get_api_key_stats(self) -> ApiKeyStats:
        return ApiKeyStats.model_validate(await self._http.get("/api/api-keys/stats"))

    async def aclose(self) -> None:
        """Close the streaming client (if any) and the HTTP connection pool."""
        if self._ws is not None:
            await self._ws.aclose()
        await self._http.aclose()
        logger.debug("KlingEx client closed")

    async def __aenter__(self) -> "KlingEx":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
