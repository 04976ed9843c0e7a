"""Base HTTP collaborator abstraction.

The service talks to three HTTP collaborators: the identity provider, the
place search API and the weather forecast API. They share the client
lifecycle, default headers and error translation defined here.

## Error translation

| Situation                     | Exception       | Status returned to caller |
|-------------------------------|-----------------|---------------------------|
| Network failure / timeout     | ProviderError   | 503                       |
| HTTP 429                      | RateLimitError  | 429                       |
| Any other HTTP status >= 400  | ProviderError   | 502                       |

## Retries

Only idempotent reads (`_fetch`) retry, on transport errors, 3 attempts with
exponential backoff. Writes (`_send`) are never retried.
"""

from __future__ import annotations

from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from weather_portal.errors import UpstreamError


class ProviderError(UpstreamError):
    """Base exception for collaborator errors.

    `provider_status` is the collaborator's HTTP status, `status_code` the
    one this service answers with.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(
            message,
            provider=provider,
            status_code=503 if status_code is None else 502,
            provider_status=status_code,
        )
        self.response_body = response_body


class RateLimitError(ProviderError):
    """Raised when provider rate limit is exceeded."""

    def __init__(
        self,
        provider: str,
        retry_after: int | None = None,
        status_code: int | None = 429,
    ):
        super().__init__(
            f"Rate limit exceeded for {provider}",
            provider=provider,
            status_code=status_code,
        )
        self.status_code = 429
        self.retry_after = retry_after


class HTTPCollaborator:
    """Shared plumbing for HTTP collaborators.

    Attributes:
        name: Human-readable provider name
        base_url: Base URL for the API

    Example:
        ```python
        class MyProvider(HTTPCollaborator):
            name = "my_provider"
            base_url = "https://api.example.com"

            async def lookup(self, query):
                response = await self._fetch(f"{self.base_url}/lookup", {"q": query})
                return response.json()
        ```
    """

    name: str
    base_url: str

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the collaborator.

        Args:
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests pass a MockTransport)
        """
        self.user_agent = user_agent or "weather-portal/0.1.0"
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HTTPCollaborator:
        """Enter async context manager."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate an HTTP error response into a ProviderError."""
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if response.status_code >= 400:
            raise ProviderError(
                f"API request failed: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

    async def _send(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a single request without retries.

        The response is returned whatever its status; network failures
        raise ProviderError.
        """
        client = self._get_client()
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        try:
            return await client.request(
                method, url, json=json, params=params, headers=request_headers
            )
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Unable to reach {self.name}: {e.__class__.__name__}",
                provider=self.name,
            ) from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _fetch_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str],
    ) -> httpx.Response:
        return await self._get_client().get(url, params=params, headers=headers)

    async def _fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """GET with retry logic.

        Args:
            url: Full URL to fetch
            params: Query parameters
            headers: Additional headers

        Returns:
            HTTP response with a status below 400

        Raises:
            ProviderError: If request fails after retries
            RateLimitError: If rate limit is exceeded
        """
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        try:
            response = await self._fetch_with_retry(url, params, request_headers)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Unable to reach {self.name}: {e.__class__.__name__}",
                provider=self.name,
            ) from e

        self._raise_for_status(response)
        return response
