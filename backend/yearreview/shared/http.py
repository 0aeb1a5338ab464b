"""
HTTP fetch primitive shared by provider clients.

Wraps one lazily created ``httpx.AsyncClient`` per provider and maps
responses onto the error taxonomy:

- transport failures -> ProviderFetchError(status=None)
- 429, or 403 with an exhausted GitHub quota -> back off and retry
- other non-2xx -> ProviderFetchError(status)
- undecodable body -> MalformedResponseError
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from .errors import MalformedResponseError, ProviderFetchError, ProviderRateLimitError

logger = logging.getLogger(__name__)


Sleep = Callable[[float], Awaitable[None]]


class ApiClient:
    """
    Async JSON client for one provider API.

    Usage:
        api = ApiClient("github", "https://api.github.com")
        user = await api.request("GET", "/user", token=token)
        await api.close()
    """

    def __init__(
        self,
        provider: str,
        base_url: str,
        *,
        timeout: float = 30.0,
        default_headers: Optional[dict[str, str]] = None,
        max_rate_limit_retries: int = 2,
        max_rate_limit_wait: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.provider = provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = default_headers or {}
        self.max_rate_limit_retries = max_rate_limit_retries
        self.max_rate_limit_wait = max_rate_limit_wait
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _get_client(self, resource: str) -> httpx.AsyncClient:
        """Get or create the httpx client. A closed ApiClient stays closed."""
        if self._closed:
            raise ProviderFetchError(self.provider, resource, detail="client closed")
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.default_headers,
                transport=self._transport,
            )
        return self._client

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        auth_scheme: Optional[str] = "Bearer",
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        data: Optional[dict[str, Any]] = None,
        resource: Optional[str] = None,
    ) -> Any:
        """
        Make a request and return the decoded JSON payload.

        Args:
            token: Access credential borrowed for this call
            auth_scheme: Authorization prefix ("Bearer"); None sends the raw token
            resource: Label used in errors and logs (defaults to the path)

        Raises:
            ProviderRateLimitError: Rate limit still hit after retries
            ProviderFetchError: Non-success status or transport failure
            MalformedResponseError: Body is not JSON
        """
        resource = resource or path
        request_headers = dict(headers or {})
        if token:
            request_headers["Authorization"] = (
                f"{auth_scheme} {token}" if auth_scheme else token
            )

        attempt = 0
        while True:
            try:
                response = await self._get_client(resource).request(
                    method,
                    self._url(path),
                    headers=request_headers,
                    params=params,
                    json=json,
                    data=data,
                )
            except httpx.HTTPError as e:
                raise ProviderFetchError(
                    self.provider, resource, detail=str(e) or type(e).__name__
                ) from e

            if "X-RateLimit-Remaining" in response.headers:
                logger.debug(
                    f"{self.provider} rate limit remaining: "
                    f"{response.headers.get('X-RateLimit-Remaining')}"
                )

            wait = self._rate_limit_wait(response)
            if wait is None:
                break

            if attempt >= self.max_rate_limit_retries:
                raise ProviderRateLimitError(
                    self.provider, resource, status=response.status_code,
                    detail="rate limit exceeded"
                )
            attempt += 1
            logger.warning(
                f"{self.provider} rate limited on {resource}, "
                f"retrying in {wait:.1f}s (attempt {attempt})"
            )
            await self._sleep(wait)

        if not response.is_success:
            raise ProviderFetchError(
                self.provider, resource, status=response.status_code,
                detail=response.text[:200]
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                self.provider, resource, "response body is not JSON"
            ) from e

    def _rate_limit_wait(self, response: httpx.Response) -> Optional[float]:
        """Seconds to wait before retrying, or None if not rate limited."""
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            try:
                wait = float(retry_after) if retry_after is not None else 1.0
            except ValueError:
                wait = 1.0
            return min(max(wait, 0.0), self.max_rate_limit_wait)

        # GitHub signals an exhausted quota with 403 and a reset timestamp
        if (
            response.status_code == 403
            and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            try:
                reset = int(response.headers.get("X-RateLimit-Reset", "0"))
            except ValueError:
                reset = 0
            wait = max(0, reset - int(time.time())) + 1
            return min(float(wait), self.max_rate_limit_wait)

        return None

    async def close(self):
        """Close the underlying client; later requests fail."""
        self._closed = True
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
