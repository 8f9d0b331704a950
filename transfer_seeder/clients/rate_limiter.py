import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from loguru import logger

HOUR_SECONDS = 60 * 60


class APIRateLimiter:
    """Spaces requests evenly and enforces an hourly request cap."""

    def __init__(
        self,
        requests_per_second: float = 5.0,
        max_requests_per_hour: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.delay = 1.0 / requests_per_second
        self.max_requests_per_hour = max_requests_per_hour
        self._clock = clock
        self._sleep = sleep
        self.request_count = 0
        self.total_requests = 0
        self._last_request_at: Optional[float] = None
        self._window_start = clock()

    async def wait_for_next_request(self) -> None:
        now = self._clock()

        if now - self._window_start > HOUR_SECONDS:
            self.request_count = 0
            self._window_start = now

        if self.request_count >= self.max_requests_per_hour:
            wait_time = HOUR_SECONDS - (now - self._window_start)
            if wait_time > 0:
                logger.warning(
                    f"Hourly API limit reached. Waiting {wait_time:.0f} seconds..."
                )
                await self._sleep(wait_time)
            self.request_count = 0
            self._window_start = self._clock()
            now = self._window_start

        if self._last_request_at is not None:
            elapsed = now - self._last_request_at
            if elapsed < self.delay:
                await self._sleep(self.delay - elapsed)

        self.request_count += 1
        self.total_requests += 1
        self._last_request_at = self._clock()

    def get_stats(self) -> Dict[str, float]:
        now = self._clock()
        return {
            "requests_this_hour": self.request_count,
            "total_requests": self.total_requests,
            "max_requests_per_hour": self.max_requests_per_hour,
            "hourly_utilization": self.request_count
            / self.max_requests_per_hour
            * 100,
            "hour_progress": (now - self._window_start) / HOUR_SECONDS * 100,
            "delay_between_requests": self.delay,
        }
