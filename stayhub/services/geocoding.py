"""
Geocoding service resolving free-text addresses to coordinates via OpenStreetMap Nominatim.
"""

import logging
from typing import NamedTuple, Optional, Tuple

from geopy.exc import GeocoderTimedOut, GeopyError
from geopy.geocoders import Nominatim
from starlette.concurrency import run_in_threadpool

from stayhub.config import Settings, settings as default_settings
from stayhub.utils.exceptions import GeocodingError

logger = logging.getLogger(__name__)


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


class GeocodingService:
    """
    Service for geocoding addresses to lat/lng coordinates.
    The geopy client is synchronous, so lookups run in the threadpool.
    """

    def __init__(
        self,
        user_agent: str,
        domain: str = "nominatim.openstreetmap.org",
        timeout: float = 10.0,
        service_area: Optional[Tuple[float, float, float, float]] = None
    ):
        self.geolocator = Nominatim(user_agent=user_agent, domain=domain)
        self.timeout = timeout
        self.service_area = service_area

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "GeocodingService":
        """Build the service from application settings."""
        return cls(
            user_agent=config.geocoding_user_agent,
            domain=config.geocoding_domain,
            timeout=config.geocoding_timeout,
            service_area=config.service_area,
        )

    async def geocode(self, address: str) -> Optional[Coordinates]:
        """
        Resolve an address to coordinates.

        Args:
            address: Free-text address

        Returns:
            Coordinates of the first match, or None when nothing matched

        Raises:
            GeocodingError: If the provider fails or times out
        """
        query = address.strip()
        if not query:
            return None

        try:
            location = await run_in_threadpool(self.geolocator.geocode, query, timeout=self.timeout)
        except GeocoderTimedOut as e:
            logger.error(f"Geocoding timeout for '{query}': {e}")
            raise GeocodingError(f"Lookup timed out for '{query}'")
        except GeopyError as e:
            logger.error(f"Geocoding service error for '{query}': {e}")
            raise GeocodingError(str(e))

        if location is None:
            logger.info(f"Could not geocode: {query}")
            return None

        coords = Coordinates(latitude=float(location.latitude), longitude=float(location.longitude))
        logger.debug(f"Geocoded '{query}' -> ({coords.latitude}, {coords.longitude})")
        return coords

    def is_within_service_area(self, coords: Coordinates) -> bool:
        """
        Check coordinates against the configured (south, west, north, east) box.
        Always true when no service area is configured.
        """
        if self.service_area is None:
            return True
        south, west, north, east = self.service_area
        return south <= coords.latitude <= north and west <= coords.longitude <= east
