from __future__ import annotations

import re
from typing import Dict, Optional

from journeyplan.core.errors import GeolocationError
from journeyplan.models.domain import Coordinate

_LATLNG_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")

DEFAULT_GAZETTEER: Dict[str, Coordinate] = {
    "central station": Coordinate(52.3791, 4.9003, "Central Station"),
    "city hall": Coordinate(52.3676, 4.9041, "City Hall"),
    "airport": Coordinate(52.3105, 4.7683, "Airport"),
    "harbor": Coordinate(52.3760, 4.9170, "Harbor"),
    "market square": Coordinate(52.3731, 4.8926, "Market Square"),
}


class StaticGeolocationResolver:
    """
    Offline resolver over a fixed gazetteer. Also accepts "lat, lng" text so
    stops can be placed without a network lookup.
    """

    def __init__(self, places: Optional[Dict[str, Coordinate]] = None):
        self.places = {k.lower(): v for k, v in (places or DEFAULT_GAZETTEER).items()}

    async def resolve(self, address: str) -> Coordinate:
        key = address.strip().lower()
        if key in self.places:
            return self.places[key]
        match = _LATLNG_RE.match(address)
        if match:
            return Coordinate(float(match.group(1)), float(match.group(2)), address.strip())
        raise GeolocationError(f"Unknown address: {address!r}")

    async def reverse_resolve(self, coordinate: Coordinate) -> str:
        for place in self.places.values():
            if abs(place.lat - coordinate.lat) < 1e-4 and abs(place.lng - coordinate.lng) < 1e-4:
                return place.address or place.label()
        raise GeolocationError(f"No known place at {coordinate.label()}")
