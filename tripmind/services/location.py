"""
Location Service - Geocoding and nearby-place lookups for in-trip side data.
Backed by OpenStreetMap (Nominatim) or a null provider that knows nothing.
"""
import httpx
from math import asin, cos, radians, sin, sqrt
from typing import Optional, Protocol
import logging

from ..config import settings

logger = logging.getLogger(__name__)


class LocationService(Protocol):
    """Location lookups. Implementations return empty results instead of raising."""

    async def geocode(self, place: str) -> Optional[tuple[float, float]]:
        """(lat, lon) for a place name."""
        ...

    async def nearby_places(self, location: str, category: str, limit: int = 5) -> list[str]:
        """Names of places of ``category`` near ``location``."""
        ...


class NullLocationService:
    """Used when no location provider is configured."""

    async def geocode(self, place: str) -> Optional[tuple[float, float]]:
        return None

    async def nearby_places(self, location: str, category: str, limit: int = 5) -> list[str]:
        return []


class OSMLocationService:
    """Location lookups against OpenStreetMap Nominatim."""

    SEARCH_URL = "https://nominatim.openstreetmap.org/search"

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Nominatim requires a user-agent
        self.headers = {"User-Agent": user_agent or settings.osm_user_agent}
        self.timeout = timeout
        self.transport = transport

    async def _search(self, query: str, limit: int) -> list[dict]:
        params = {
            "q": query,
            "format": "json",
            "limit": limit
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(self.SEARCH_URL, params=params, headers=self.headers)
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"OSM Error: {e}")
                return []

    async def geocode(self, place: str) -> Optional[tuple[float, float]]:
        results = await self._search(place, limit=1)
        if results:
            try:
                return float(results[0]["lat"]), float(results[0]["lon"])
            except (ValueError, KeyError):
                pass
        return None

    async def nearby_places(self, location: str, category: str, limit: int = 5) -> list[str]:
        results = await self._search(f"{category} near {location}", limit=limit)
        names = []
        for place in results:
            name = (place.get("display_name") or "").split(",")[0].strip()
            if name and name not in names:
                names.append(name)
        return names


def haversine_km(origin: tuple[float, float], target: tuple[float, float]) -> float:
    """Great-circle distance in kilometers between two (lat, lon) points."""
    lat1, lon1, lat2, lon2 = map(radians, [origin[0], origin[1], target[0], target[1]])
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * asin(sqrt(a)) * 6371


def get_location_service() -> LocationService:
    """Location service for the configured provider."""
    if settings.location_provider == "osm":
        return OSMLocationService()
    return NullLocationService()
