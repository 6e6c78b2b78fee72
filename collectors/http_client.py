"""JSON API client wrapper with rate limiting and retries."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderUnavailableError,
)

logger = structlog.get_logger(__name__)


@dataclass
class RateLimiter:
    """Simple rate limiter enforcing a minimum interval between requests."""

    rate: float  # requests per second
    _last_request: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def acquire(self) -> None:
        """Wait if needed to respect rate limit."""
        if self.rate <= 0:
            return

        async with self._lock:
            min_interval = 1.0 / self.rate
            elapsed = time.monotonic() - self._last_request

            if elapsed < min_interval:
                await asyncio.sleep(min_interval - elapsed)

            self._last_request = time.monotonic()


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Map non-2xx responses onto the provider error taxonomy."""
    status = response.status_code
    if response.is_success:
        return
    if status == 401:
        raise ProviderAuthError(
            f"Invalid API key - check your {provider} credentials", status_code=status
        )
    if status == 429:
        raise ProviderRateLimitError(
            "Rate limit exceeded - upgrade your plan or try again later",
            status_code=status,
        )
    if status >= 500:
        raise ProviderUnavailableError(
            f"{provider} API is temporarily unavailable", status_code=status
        )
    raise ProviderError(
        f"{provider} API Error: {status} {response.reason_phrase}", status_code=status
    )


class JsonApiClient:
    """Async JSON client with bearer auth, rate limiting and retry support.

    Retries cover timeouts and network errors only; HTTP error statuses are
    mapped to ProviderError subclasses and raised immediately.
    """

    def __init__(
        self,
        base_url: str,
        *,
        provider: str = "API",
        api_key: str | None = None,
        timeout: float = 10.0,
        rate_limit: float = 0.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limiter = RateLimiter(rate=rate_limit)

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._headers = headers
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> JsonApiClient:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers=self._headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a path relative to base_url and decode the JSON body."""
        await self.rate_limiter.acquire()

        start_time = time.monotonic()
        response = await self._get_with_retry(path, params)
        duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            "provider request",
            provider=self.provider,
            path=path,
            status=response.status_code,
            duration_ms=round(duration_ms, 1),
        )

        raise_for_provider_status(response, self.provider)
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.provider} returned invalid JSON: {e}") from e

    async def _get_with_retry(
        self, path: str, params: dict[str, Any] | None
    ) -> httpx.Response:
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            reraise=True,
        )
        async def _do_get() -> httpx.Response:
            return await self._client.get(path, params=params)  # type: ignore

        try:
            return await _do_get()
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise ProviderUnavailableError(
                f"{self.provider} request failed: {e}"
            ) from e
