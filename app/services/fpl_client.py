"""
Client for the public Fantasy Premier League API.

Wraps outbound GETs with a bounded retry/backoff loop, an outbound rate
limiter and a TTL cache keyed by logical resource name.
"""
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from app.core.config import settings
from app.core.exceptions import (
    UpstreamError, UpstreamHTTPError, EntryNotFound, InvalidEntryId, RateLimitExceeded
)
from app.services.rate_limiter import SlidingWindowRateLimiter
from app.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

USER_AGENT = "FPL-Company-Challenge/1.0"
BOOTSTRAP_CACHE_KEY = "bootstrap-static"
MAX_ENTRY_ID = 10_000_000


def parse_deadline(value: str) -> datetime:
    """Parse an FPL deadline such as '2024-08-16T17:30:00Z' into an aware datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class FplClient:

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        base_url: str = settings.FPL_API_BASE_URL,
        timeout: float = settings.FPL_API_TIMEOUT_SECONDS,
        max_retries: int = settings.FPL_MAX_RETRIES,
        bootstrap_ttl: int = settings.FPL_CACHE_TTL_SECONDS,
        history_ttl: int = settings.FPL_HISTORY_CACHE_TTL_SECONDS,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.session = session or requests.Session()
        self.cache = cache or TTLCache()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            max_requests=settings.FPL_OUTBOUND_REQUESTS,
            window_seconds=settings.FPL_OUTBOUND_WINDOW_SECONDS
        )
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.bootstrap_ttl = bootstrap_ttl
        self.history_ttl = history_ttl
        self._sleep = sleep

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #
    def fetch_with_retry(self, url: str) -> requests.Response:
        """
        GET `url`, retrying 429s, 5xx and network failures with exponential
        backoff (1s, 2s, ...). Other error statuses fail immediately.
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            if not self.rate_limiter.can_make_request("fpl"):
                raise RateLimitExceeded("Rate limit exceeded for FPL API calls")

            try:
                response = self.session.get(
                    url,
                    headers={"User-Agent": USER_AGENT},
                    timeout=self.timeout
                )
            except requests.RequestException as e:
                logger.warning(f"FPL request to {url} failed (attempt {attempt + 1}): {e}")
                last_error = e
            else:
                if response.ok:
                    return response

                if response.status_code == 429 or response.status_code >= 500:
                    logger.warning(
                        f"FPL API returned {response.status_code} for {url} (attempt {attempt + 1})"
                    )
                    last_error = UpstreamHTTPError(response.status_code)
                else:
                    raise UpstreamHTTPError(
                        response.status_code,
                        f"HTTP {response.status_code}: {response.reason}"
                    )

            if attempt < self.max_retries - 1:
                self._sleep(2 ** attempt)

        raise UpstreamError(f"Max retries exceeded for {url}: {last_error}") from last_error

    def fetch_json(self, url: str) -> Any:
        response = self.fetch_with_retry(url)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {url}") from e

    # ------------------------------------------------------------------ #
    # Resources
    # ------------------------------------------------------------------ #
    def get_bootstrap(self) -> Dict[str, Any]:
        """Season reference data: the list of gameweeks with flags and deadlines."""
        cached = self.cache.get(BOOTSTRAP_CACHE_KEY)
        if cached is not None:
            return cached

        data = self.fetch_json(f"{self.base_url}/bootstrap-static/")
        self.cache.set(BOOTSTRAP_CACHE_KEY, data, self.bootstrap_ttl)
        return data

    def get_current_event_id(self) -> int:
        events = self.get_bootstrap().get("events") or []
        current = (
            next((e for e in events if e.get("is_current")), None)
            or next((e for e in events if e.get("is_next")), None)
            or (events[0] if events else None)
        )
        if current is None:
            raise UpstreamError("No current gameweek found")
        return current["id"]

    def get_entry_history(self, entry_id: int) -> Dict[str, Any]:
        if not entry_id or entry_id < 1 or entry_id > MAX_ENTRY_ID:
            raise InvalidEntryId(f"Invalid entry ID provided: {entry_id}")

        cache_key = f"entry-history-{entry_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            data = self.fetch_json(f"{self.base_url}/entry/{entry_id}/history/")
        except UpstreamHTTPError as e:
            if e.status_code == 404:
                raise EntryNotFound(entry_id) from e
            raise

        self.cache.set(cache_key, data, self.history_ttl)
        return data

    def validate_entry_exists(self, entry_id: int) -> bool:
        try:
            self.get_entry_history(entry_id)
            return True
        except (EntryNotFound, InvalidEntryId):
            return False

    def get_gameweeks_in_range(self, start: datetime, end: datetime) -> List[int]:
        """Ids of gameweeks whose deadline falls in [start, end]."""
        events = self.get_bootstrap().get("events") or []
        return [
            event["id"]
            for event in events
            if event.get("deadline_time")
            and start <= parse_deadline(event["deadline_time"]) <= end
        ]

    def check_health(self) -> Dict[str, str]:
        try:
            self.get_bootstrap()
            return {"status": "ok", "message": "FPL API is responsive"}
        except Exception as e:
            logger.warning(f"FPL API health check failed: {e}")
            return {"status": "error", "message": f"FPL API health check failed: {e}"}

    def clear_cache(self) -> None:
        self.cache.clear()
