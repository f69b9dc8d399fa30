"""
Nominatim (OpenStreetMap) geocoding integration.

Provides free-text place search for the map search box:
- Async HTTP client with rate limiting and retries
- Response validation into GeocodeRecord values
- In-memory query cache
"""

from geomark.integrations.nominatim.client import (
    NominatimClient,
    NominatimClientConfig,
    RateLimiter,
)
from geomark.integrations.nominatim.parser import NominatimResponseParser

__all__ = [
    "NominatimClient",
    "NominatimClientConfig",
    "NominatimResponseParser",
    "RateLimiter",
]
