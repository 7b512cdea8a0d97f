from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from journeyplan.core.config import settings
from journeyplan.core.errors import GeolocationError
from journeyplan.models.domain import Coordinate

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


@dataclass
class GoogleGeocodingResolver:
    """
    Resolver backed by the Google Geocoding web service.
    Successful forward lookups are cached per address.
    """

    api_key: Optional[str] = None
    base_url: str = GEOCODE_URL
    timeout: float = settings.geocoder_timeout_seconds
    transport: Optional[httpx.AsyncBaseTransport] = None
    _cache: Dict[str, Coordinate] = field(default_factory=dict, repr=False, init=False)

    def __post_init__(self) -> None:
        if self.api_key is None:
            self.api_key = settings.google_maps_api_key

    async def resolve(self, address: str) -> Coordinate:
        query = address.strip()
        if not query:
            raise GeolocationError("Cannot geocode an empty address")
        if query in self._cache:
            return self._cache[query]
        result = await self._first_result({"address": query, "language": "en"})
        try:
            loc = result["geometry"]["location"]
            coordinate = Coordinate(
                lat=float(loc["lat"]),
                lng=float(loc["lng"]),
                address=result.get("formatted_address") or query,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Malformed geocoding result for %s: %r", query, result)
            raise GeolocationError(f"Malformed geocoding result for {query!r}") from exc
        self._cache[query] = coordinate
        logger.debug("Geocoded %s to %s, %s", query, coordinate.lat, coordinate.lng)
        return coordinate

    async def reverse_resolve(self, coordinate: Coordinate) -> str:
        result = await self._first_result(
            {"latlng": f"{coordinate.lat},{coordinate.lng}", "language": "en"}
        )
        address = result.get("formatted_address")
        if not address or not isinstance(address, str):
            raise GeolocationError(f"No address found for {coordinate.label()}")
        return address

    async def _first_result(self, params: Dict[str, str]) -> dict:
        if not self.api_key:
            raise GeolocationError("No Google Maps API key configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(self.base_url, params={**params, "key": self.api_key})
                resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            logger.error("Geocoding request failed: %s", exc)
            raise GeolocationError(f"Geocoding request failed: {exc}") from exc
        except ValueError as exc:
            logger.error("Geocoding response was not JSON: %s", exc)
            raise GeolocationError("Geocoding response was not JSON") from exc

        if not isinstance(data, dict):
            raise GeolocationError("Geocoding response was not a JSON object")
        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results or not isinstance(results[0], dict):
            logger.warning("Geocoding returned %s for %s", status, params)
            raise GeolocationError(f"Geocoding failed: {status}")
        return results[0]
