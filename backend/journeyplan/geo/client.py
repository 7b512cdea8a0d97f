from typing import Protocol

from journeyplan.models.domain import Coordinate


class GeolocationResolver(Protocol):
    """
    Address <-> coordinate lookups. Both directions raise
    ``GeolocationError`` when the address or coordinate cannot be resolved.
    """

    async def resolve(self, address: str) -> Coordinate:
        ...

    async def reverse_resolve(self, coordinate: Coordinate) -> str:
        ...
