# transfer_seeder/clients/api_football.py
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from transfer_seeder.config.settings import AppSettings

from .base_client import (
    ApiClientError,
    AuthenticationError,
    BaseApiClient,
    QuotaExhaustedError,
)
from .rate_limiter import APIRateLimiter

DEFAULT_SEASON = 2024


class APIFootballClient(BaseApiClient):
    """Client for the API-Football v3 league and team endpoints."""

    name = "API-Football"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v3.football.api-sports.io",
        timeout: float = 30.0,
        rate_limiter: Optional[APIRateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            logger.error("API-Football key is not set in environment variables.")
            raise ApiClientError("Missing API-Football key configuration.")
        super().__init__(
            base_url,
            headers={"x-apisports-key": api_key},
            timeout=timeout,
            rate_limiter=rate_limiter,
            client=client,
        )

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "APIFootballClient":
        return cls(
            api_key=settings.api_football_key,
            base_url=str(settings.api_football_base_url),
            timeout=settings.request_timeout_seconds,
            rate_limiter=APIRateLimiter(
                settings.api_requests_per_second, settings.api_max_requests_per_hour
            ),
        )

    async def _get_response_list(
        self, endpoint: str, params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        response = await self._make_request("GET", endpoint, params=params)
        try:
            payload = response.json()
        except ValueError as e:
            raise ApiClientError(f"Invalid JSON from {endpoint}") from e

        # API-Football reports auth and quota problems in a 200 body
        errors = payload.get("errors")
        if errors and isinstance(errors, dict):
            message = "; ".join(f"{k}: {v}" for k, v in errors.items())
            if "token" in errors or "key" in errors:
                raise AuthenticationError(f"{self.name} rejected the API key: {message}")
            if "requests" in errors or "rateLimit" in errors:
                raise QuotaExhaustedError(f"{self.name} quota exhausted: {message}")
            raise ApiClientError(f"{self.name} error for {endpoint}: {message}")

        data = payload.get("response")
        if data is None:
            raise ApiClientError(f"No response payload from {endpoint} ({params})")
        return data

    async def get_league(self, league_id: int) -> Dict[str, Any]:
        """Fetch league information"""
        data = await self._get_response_list("/leagues", {"id": league_id})
        if not data:
            raise ApiClientError(f"No league found with ID: {league_id}")
        return data[0]

    async def get_teams(
        self, league_id: int, season: int = DEFAULT_SEASON
    ) -> List[Dict[str, Any]]:
        """Fetch teams and venues for a league season"""
        data = await self._get_response_list(
            "/teams", {"league": league_id, "season": season}
        )
        logger.debug(f"Fetched {len(data)} teams for league {league_id}, season {season}")
        return data
