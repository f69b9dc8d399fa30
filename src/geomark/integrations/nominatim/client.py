"""
Nominatim geocoding API client.

Implements the free-text place search used when the search box input is
not a coordinate:
- ``GET /search?format=json&q=...``
- Rate limiting (Nominatim's usage policy allows 1 request per second)
- Retries with exponential backoff on transient failures
- In-memory cache of recent queries
"""

import asyncio
import hashlib
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from geomark.core.config import Settings
from geomark.core.errors import ConfigurationError, GeocodingError
from geomark.core.retry import async_retry
from geomark.integrations.nominatim.parser import SERVICE_NAME, NominatimResponseParser
from geomark.models.search import GeocodeRecord
from geomark.utils.logging import log_async_performance

logger = logging.getLogger(__name__)


class NominatimClientConfig(BaseModel):
    """Configuration for the Nominatim client."""

    base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL of the Nominatim service",
    )
    user_agent: str = Field(
        default="geomark/0.1",
        description="Identifying User-Agent, required by the usage policy",
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds", ge=1.0, le=60.0)
    max_retries: int = Field(default=2, description="Maximum number of retries", ge=0, le=10)
    retry_backoff_factor: float = Field(
        default=1.0, description="Exponential backoff factor", ge=0.0, le=10.0
    )
    rate_limit_calls: int = Field(default=1, description="Max calls per time window", ge=1)
    rate_limit_period: float = Field(default=1.0, description="Rate limit window in seconds", ge=0.1)
    result_limit: int = Field(default=10, description="Max places per search", ge=1, le=50)
    accept_language: Optional[str] = Field(
        default=None, description="Preferred language of display names"
    )
    cache_ttl: int = Field(default=3600, description="Query cache TTL in seconds", ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "NominatimClientConfig":
        """Build the client configuration from GEOMARK_* settings."""
        return cls(
            base_url=settings.geocoder_base_url,
            user_agent=settings.geocoder_user_agent,
            timeout=settings.geocoder_timeout,
            max_retries=settings.geocoder_max_retries,
            result_limit=settings.geocoder_result_limit,
        )


class RateLimiter:
    """
    Token bucket allowing ``calls`` requests per ``period`` seconds.

    The bucket starts full and refills continuously.
    """

    def __init__(self, calls: int, period: float) -> None:
        self.calls = calls
        self.period = period
        self.tokens = float(calls)
        self.last_update = time.monotonic()

    @property
    def _refill_rate(self) -> float:
        return self.calls / self.period

    def acquire(self) -> bool:
        """Take a token if one is available."""
        now = time.monotonic()
        self.tokens = min(float(self.calls), self.tokens + (now - self.last_update) * self._refill_rate)
        self.last_update = now

        if self.tokens < 1:
            return False
        self.tokens -= 1
        return True

    def wait_time(self) -> float:
        """Seconds until the next token, 0 when one is available."""
        return max(0.0, (1 - self.tokens) / self._refill_rate)

    async def wait(self) -> None:
        """Sleep until a token could be taken, then take it."""
        while not self.acquire():
            delay = self.wait_time()
            logger.debug(f"Rate limited, waiting {delay:.2f}s")
            await asyncio.sleep(delay)


class NominatimClient:
    """
    Client for the Nominatim search API.

    Satisfies the ``Geocoder`` protocol expected by LocationSearchResolver.
    """

    def __init__(
        self,
        config: Optional[NominatimClientConfig] = None,
        parser: Optional[NominatimResponseParser] = None,
    ) -> None:
        """
        Initialize the Nominatim client.

        Args:
            config: Client configuration
            parser: Response parser

        Raises:
            ConfigurationError: If no User-Agent is configured
        """
        self.config = config or NominatimClientConfig()
        if not self.config.user_agent.strip():
            raise ConfigurationError(
                "Nominatim requires an identifying User-Agent",
                config_key="geocoder_user_agent",
            )

        self.parser = parser or NominatimResponseParser()
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        )
        self.rate_limiter = RateLimiter(
            self.config.rate_limit_calls,
            self.config.rate_limit_period,
        )

        self._query_cache: Dict[str, Tuple[List[GeocodeRecord], float]] = {}

        logger.info(f"Nominatim client initialized with base URL: {self.config.base_url}")

    async def __aenter__(self) -> "NominatimClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def _generate_cache_key(self, **kwargs: Any) -> str:
        """SHA256 of the sorted query parameters."""
        key_string = str(sorted(kwargs.items()))
        return hashlib.sha256(key_string.encode()).hexdigest()

    def _get_from_cache(self, cache_key: str) -> Optional[List[GeocodeRecord]]:
        """Return cached records if present and not expired."""
        if cache_key in self._query_cache:
            records, timestamp = self._query_cache[cache_key]
            age = time.monotonic() - timestamp

            if age < self.config.cache_ttl:
                logger.debug(f"Query cache hit for key {cache_key[:8]}... (age: {age:.1f}s)")
                return list(records)

            logger.debug(f"Query cache expired for key {cache_key[:8]}... (age: {age:.1f}s)")
            del self._query_cache[cache_key]

        return None

    def _put_in_cache(self, cache_key: str, records: List[GeocodeRecord]) -> None:
        self._query_cache[cache_key] = (list(records), time.monotonic())

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """Single rate-limited GET returning decoded JSON."""
        await self.rate_limiter.wait()

        logger.debug(f"Making request to {url} with params: {params}")
        response = await self.client.get(url, params=params)
        response.raise_for_status()

        try:
            return response.json()
        except ValueError as e:
            raise GeocodingError(
                "Geocoder response is not valid JSON",
                service_name=SERVICE_NAME,
                details={"status_code": response.status_code},
            ) from e

    async def _make_request(self, url: str, params: Dict[str, Any]) -> Any:
        """
        Make HTTP request with rate limiting and retries.

        Raises:
            GeocodingError: On request failure after retries
        """
        fetch = async_retry(
            max_attempts=self.config.max_retries + 1,
            base_delay=self.config.retry_backoff_factor,
        )(self._get_json)

        try:
            return await fetch(url, params)
        except httpx.HTTPError as e:
            logger.error(f"Geocoder request to {url} failed: {e}")
            raise GeocodingError(
                f"Geocoder request failed: {e}",
                service_name=SERVICE_NAME,
                details={"url": url},
            ) from e

    @log_async_performance(threshold_ms=1000)
    async def geocode(self, query: str) -> List[GeocodeRecord]:
        """
        Search places matching free text.

        Args:
            query: Raw search text

        Returns:
            Places in the service's ranking order

        Raises:
            GeocodingError: On network failure or a malformed response
        """
        cache_key = self._generate_cache_key(
            q=query,
            limit=self.config.result_limit,
            lang=self.config.accept_language,
        )
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        url = f"{self.config.base_url.rstrip('/')}/search"
        params: Dict[str, Any] = {
            "format": "json",
            "q": query,
            "limit": self.config.result_limit,
        }
        if self.config.accept_language:
            params["accept-language"] = self.config.accept_language

        data = await self._make_request(url, params)
        records = self.parser.parse_search_response(data)

        self._put_in_cache(cache_key, records)
        logger.info(f"Geocoder returned {len(records)} places for {query!r}")
        return records

    def clear_cache(self) -> None:
        """Clear the in-memory query cache."""
        self._query_cache.clear()
        logger.info("Query cache cleared")
