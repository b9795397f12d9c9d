"""
Postcode geocoding via the Google Maps Geocoding API.

Resolves a postcode to latitude/longitude for practice registration and for
distance-based appointment search. Successful lookups are cached in Redis;
every failure surfaces as GeocodeError so callers never mistake an unresolved
location for "no results".
"""

import logging
from typing import Optional

import httpx

from ..cache import Cache, cache as default_cache, geocode_cache_key
from ..config import (
    GEOCODE_CACHE_SECONDS,
    GEOCODING_BASE_URL,
    GEOCODING_TIMEOUT_SECONDS,
    GOOGLE_MAPS_API_KEY,
)
from ..errors import GeocodeError
from ..shared.validators import normalize_postcode
from ..utils.geo import Coordinates

logger = logging.getLogger(__name__)


class GeocodingService:
    def __init__(
        self,
        api_key: Optional[str] = GOOGLE_MAPS_API_KEY,
        base_url: str = GEOCODING_BASE_URL,
        cache: Optional[Cache] = default_cache,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.cache = cache
        self.transport = transport

    async def geocode(self, postcode: str) -> Coordinates:
        """
        Resolve a postcode to coordinates.

        Raises:
            GeocodeError: blank postcode, service not configured, HTTP/transport
                failure, or no result for the postcode
        """
        normalized = normalize_postcode(postcode)
        if not normalized:
            raise GeocodeError(postcode or "", "Postcode is required")

        cache_key = geocode_cache_key(normalized)
        if self.cache:
            cached = self.cache.get(cache_key)
            if cached:
                return Coordinates(latitude=cached["latitude"], longitude=cached["longitude"])

        if not self.api_key:
            logger.error("❌ GOOGLE_MAPS_API_KEY not configured - cannot geocode postcodes")
            raise GeocodeError(normalized, "Location lookup is not configured")

        params = {"address": normalized, "key": self.api_key}

        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=GEOCODING_TIMEOUT_SECONDS
            ) as client:
                resp = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"❌ Geocoding request failed for {normalized}: {e}")
            raise GeocodeError(normalized, "Location lookup service temporarily unavailable") from e

        if resp.status_code >= 400:
            logger.warning(f"Geocoding API error {resp.status_code}: {resp.text[:200]}")
            raise GeocodeError(normalized, "Location lookup service temporarily unavailable")

        data = resp.json()
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.info(f"📍 No geocoding result for {normalized} (status={data.get('status')})")
            raise GeocodeError(normalized)

        location = results[0]["geometry"]["location"]
        coords = Coordinates(latitude=float(location["lat"]), longitude=float(location["lng"]))

        if self.cache:
            self.cache.set(
                cache_key,
                {"latitude": coords.latitude, "longitude": coords.longitude},
                GEOCODE_CACHE_SECONDS,
            )

        logger.info(f"📍 Geocoded {normalized} -> ({coords.latitude:.5f}, {coords.longitude:.5f})")
        return coords


def get_geocoding_service() -> GeocodingService:
    """Dependency injection for GeocodingService"""
    return GeocodingService()
