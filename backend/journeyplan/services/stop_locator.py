from __future__ import annotations

import logging

from journeyplan.core.errors import GeolocationError, NotFoundError
from journeyplan.geo.client import GeolocationResolver
from journeyplan.models.domain import Coordinate, JourneyPlan, JourneyStop
from journeyplan.services.sequencing_service import ensure_editable

logger = logging.getLogger(__name__)


class StopLocator:
    """
    Applies geocoding results to stops. A failed lookup is not an error here:
    the stop simply stays unlocated and finalize will refuse it later.
    """

    def __init__(self, resolver: GeolocationResolver):
        self.resolver = resolver

    async def set_address(self, plan: JourneyPlan, stop_id: str, address: str) -> JourneyStop:
        stop = self._editable_stop(plan, stop_id)
        stop.address_input = address
        stop.location = None
        try:
            stop.location = await self.resolver.resolve(address)
        except GeolocationError as exc:
            logger.warning("Could not locate %s (%r) in journey %s: %s", stop.name, address, plan.id, exc)
        return stop

    async def place_at(self, plan: JourneyPlan, stop_id: str, coordinate: Coordinate) -> JourneyStop:
        stop = self._editable_stop(plan, stop_id)
        try:
            address = await self.resolver.reverse_resolve(coordinate)
        except GeolocationError as exc:
            logger.warning("Reverse geocoding failed for %s: %s", coordinate.label(), exc)
            stop.address_input = Coordinate(coordinate.lat, coordinate.lng).label()
            stop.location = None
            return stop
        stop.address_input = address
        stop.location = Coordinate(lat=coordinate.lat, lng=coordinate.lng, address=address)
        return stop

    @staticmethod
    def _editable_stop(plan: JourneyPlan, stop_id: str) -> JourneyStop:
        ensure_editable(plan)
        stop = plan.get_stop(stop_id)
        if stop is None:
            raise NotFoundError(f"Stop {stop_id} not found in journey {plan.id}")
        return stop
