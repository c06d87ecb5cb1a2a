"""KlingEx HTTP API client."""

from typing import Any, Literal

import httpx

from klingex.errors import (
    AuthenticationError,
    InsufficientFundsError,
    KlingExError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ValidationError,
)
from klingex.logging import generate_request_id, get_logger, set_request_id

logger = get_logger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class HttpClient:
    """Thin async wrapper around ``httpx.AsyncClient`` with KlingEx auth and errors."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        jwt: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: API root, e.g. ``https://api.klingex.io``
            api_key: API key sent as ``X-API-Key`` (takes precedence over jwt)
            jwt: Bearer token sent as ``Authorization``
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._jwt = jwt
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_authenticated(self) -> bool:
        return bool(self._api_key or self._jwt)

    def set_auth(self, api_key: str | None = None, jwt: str | None = None) -> None:
        """Update credentials; ``None`` leaves the current value in place."""
        if api_key:
            self._api_key = api_key
        if jwt:
            self._jwt = jwt

    def _get_client(self) -> httpx.AsyncClient:
        if not self._client:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    def _auth_headers(self) -> dict[str, str]:
        if self._api_key:
            return {"X-API-Key": self._api_key}
        if self._jwt:
            return {"Authorization": f"Bearer {self._jwt}"}
        return {}

    async def request(
        self,
        endpoint: str,
        method: HttpMethod = "GET",
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make an HTTP request to the API.

        Args:
            endpoint: Path starting with ``/``, e.g. ``/api/markets``
            method: HTTP method
            body: JSON-serializable request body
            params: Query parameters; ``None`` values are dropped
            headers: Extra headers (auth headers are applied last)

        Returns:
            Decoded JSON, ``bytes`` for PDF responses, otherwise text

        Raises:
            AuthenticationError: HTTP 401
            RateLimitError: HTTP 429
            InsufficientFundsError / ValidationError: HTTP 400
            KlingExError: any other non-2xx status
            RequestTimeoutError: request timed out
            NetworkError: connection-level failure
        """
        request_id = generate_request_id()
        set_request_id(request_id)

        query = {k: v for k, v in (params or {}).items() if v is not None}
        request_headers = {"Content-Type": "application/json", **(headers or {})}
        request_headers.update(self._auth_headers())
        url = f"{self._base_url}{endpoint}"

        logger.debug(f"{method} {endpoint} params={query}")
        try:
            response = await self._get_client().request(
                method,
                url,
                params=query or None,
                json=body,
                headers=request_headers,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {endpoint} timed out after {self._timeout}s")
            raise RequestTimeoutError() from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e
        finally:
            set_request_id(None)

        data = _decode_body(response)

        if not response.is_success:
            logger.debug(f"{method} {endpoint} -> HTTP {response.status_code}")
            _raise_for_status(response.status_code, data)

        return data

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request(endpoint, method="GET", params=params)

    async def post(self, endpoint: str, body: Any = None) -> Any:
        return await self.request(endpoint, method="POST", body=body)

    async def put(self, endpoint: str, body: Any = None) -> Any:
        return await self.request(endpoint, method="PUT", body=body)

    async def delete(self, endpoint: str, body: Any = None) -> Any:
        return await self.request(endpoint, method="DELETE", body=body)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None


def _decode_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    if "application/pdf" in content_type:
        return response.content
    return response.text


def _extract_error_message(data: Any) -> str:
    if isinstance(data, str):
        return data or "Unknown error"
    if isinstance(data, dict):
        for field in ("error", "message", "detail"):
            if data.get(field):
                return str(data[field])
    return "Unknown error"


def _extract_retry_after(data: Any) -> float | None:
    if isinstance(data, dict):
        value = data.get("retry_after")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return None


def _raise_for_status(status: int, data: Any) -> None:
    """Map an error response onto the exception hierarchy."""
    message = _extract_error_message(data)

    if status == 401:
        raise AuthenticationError(message)
    if status == 429:
        raise RateLimitError(message, retry_after=_extract_retry_after(data))
    if status == 400:
        if "insufficient" in message.lower():
            raise InsufficientFundsError(message)
        raise ValidationError(message, details=data)
    raise KlingExError(message, code="API_ERROR", status_code=status, details=data)
