"""
Retrying HTTP transport for the hosted boards API.

Provides:
- RetryConfig: Backoff policy, built from Settings for live sessions
- HTTPClient: Async client that retries transient failures and reports
  every other failure as HTTPClientError

Callers never see raw httpx exceptions: anything httpx raises is either
retried or wrapped, so the boards client only has one error type to
translate into the feedback taxonomy.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from feedback_portal.config.settings import Settings

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = frozenset({"GET", "POST", "PATCH", "DELETE"})

# Gateway and rate-limit responses from the edge functions
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

# Failures where the request may not have reached the backend at all
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.RemoteProtocolError,
)


@dataclass
class RetryConfig:
    """
    Backoff policy for boards API calls.

    Delay for attempt n is ``min(max_backoff, base_delay * 2**n)`` plus up to
    ``jitter_factor`` of that delay at random.
    """

    max_retries: int = 3
    max_backoff_seconds: float = 60.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryConfig":
        return cls(
            max_retries=settings.max_http_retries,
            max_backoff_seconds=settings.max_backoff_seconds,
        )

    def calculate_backoff(self, attempt: int) -> float:
        """Seconds to wait before retry ``attempt`` (0-indexed)."""
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        return delay + delay * self.jitter_factor * random.random()

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in RETRYABLE_STATUSES

    def is_retryable_exception(self, exc: Exception) -> bool:
        return isinstance(exc, RETRYABLE_EXCEPTIONS)


class HTTPClientError(Exception):
    """A request failed; ``status_code`` is None when no response arrived."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(HTTPClientError):
    """Still rate limited once retries ran out."""


class HTTPClient:
    """
    Async HTTP client with retries, used as an async context manager.

    Example:
        async with HTTPClient(RetryConfig.from_settings(settings)) as http:
            response = await http.request(
                "GET",
                f"{settings.base_url}/b1/feedback",
                params={"page": 1},
            )
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
    ):
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _backoff(self, attempt: int, reason: str, method: str, url: str) -> None:
        delay = self.retry_config.calculate_backoff(attempt)
        logger.warning(
            "%s on %s %s, attempt %d/%d, backing off %.2fs",
            reason,
            method,
            url,
            attempt + 1,
            self.retry_config.max_retries + 1,
            delay,
        )
        await asyncio.sleep(delay)

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Send one request, retrying transient failures.

        Returns:
            The first response with a non-error status.

        Raises:
            RateLimitError: Still 429 after the last retry.
            HTTPClientError: Any other error status, or any httpx failure
                (retried first when it is transient).
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        retries = self.retry_config.max_retries
        attempt = 0
        while True:
            try:
                response = await self._client.request(
                    method,
                    url,
                    params=params or None,
                    headers=headers or None,
                    json=json_body,
                )
            except httpx.HTTPError as e:
                if self.retry_config.is_retryable_exception(e) and attempt < retries:
                    await self._backoff(attempt, type(e).__name__, method, url)
                    attempt += 1
                    continue
                raise HTTPClientError(
                    f"Request failed after {attempt + 1} attempts: {type(e).__name__}: {e}",
                ) from e

            status = response.status_code
            if self.retry_config.is_retryable_status(status):
                if attempt < retries:
                    await self._backoff(attempt, f"Status {status}", method, url)
                    attempt += 1
                    continue
                error_cls = RateLimitError if status == 429 else HTTPClientError
                raise error_cls(
                    f"Request failed with status {status} after {attempt + 1} attempts",
                    status_code=status,
                    response_body=response.text,
                )

            if status >= 400:
                raise HTTPClientError(
                    f"Request failed with status {status}",
                    status_code=status,
                    response_body=response.text,
                )
            return response
