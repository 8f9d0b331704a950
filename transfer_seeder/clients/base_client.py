from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from .rate_limiter import APIRateLimiter

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class ApiClientError(Exception):
    """Custom exception for sports-API client errors."""

    pass


class AuthenticationError(ApiClientError):
    """Exception raised for authentication failures (401, 403)."""

    pass


class RateLimitError(ApiClientError):
    """Exception raised for rate limit errors (429)."""

    pass


class QuotaExhaustedError(RateLimitError):
    """The plan's request quota is used up; retrying will not help."""

    pass


class BaseApiClient:
    """Base class for JSON API clients with retries and request pacing."""

    name: str = "api"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        rate_limiter: Optional[APIRateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter or APIRateLimiter()
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )
        if headers:
            self.client.headers.update(headers)

    @retry(
        stop=stop_after_attempt(4),  # 3 retries after the first attempt
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(
            (httpx.RequestError, httpx.HTTPStatusError, RateLimitError)
        ),
        reraise=True,  # Reraise the exception after max attempts
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Makes a paced HTTP request, retrying network errors, 429 and 5xx."""
        url = f"{self.base_url}{endpoint}"
        await self.rate_limiter.wait_for_next_request()
        logger.debug(f"Making request {method} {url}", params=params)
        try:
            response = await self.client.request(method, url, params=params)

            if response.status_code in {401, 403}:
                logger.warning(
                    f"Authentication error ({response.status_code}) for {self.name} at {url}. Check the API key."
                )
                raise AuthenticationError(
                    f"Authentication failed ({response.status_code}) for {self.name}"
                )

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                logger.warning(
                    f"Rate limit hit (429) for {self.name} at {url}. Retry-After: {retry_after}"
                )
                raise RateLimitError(f"Rate limited by {self.name}")

            response.raise_for_status()  # Raises HTTPStatusError for 4xx/5xx
            logger.debug(f"Request successful: {response.status_code} for {url}")
            return response

        except ApiClientError:
            raise
        except httpx.HTTPStatusError as e:
            if e.response.status_code in RETRYABLE_STATUS_CODES:
                logger.warning(
                    f"Retrying request for {self.name} due to status {e.response.status_code}: {e}"
                )
                raise  # Re-raise to trigger tenacity retry
            logger.error(
                f"HTTP error during request for {self.name}: {e.response.status_code} - {e}"
            )
            raise ApiClientError(f"HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            # Network errors, timeouts etc. - these are retryable by default
            logger.warning(f"Request error for {self.name}, retrying: {e}")
            raise

    def get_rate_limit_stats(self) -> Dict[str, float]:
        return self.rate_limiter.get_stats()

    async def close(self) -> None:
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.info(f"Closed HTTP client for {self.name}")
