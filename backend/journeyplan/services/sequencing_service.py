from __future__ import annotations

import logging
from typing import Optional

from journeyplan.core.errors import PlanLockedError
from journeyplan.models.domain import (
    MINIMUM_STOPS,
    JourneyPlan,
    JourneyStop,
    PlanStatus,
    new_stop_id,
    stop_name_for,
)

logger = logging.getLogger(__name__)


def ensure_editable(plan: JourneyPlan) -> None:
    if plan.status is not PlanStatus.draft:
        raise PlanLockedError(
            f"Journey {plan.id} is {plan.status.value} and can no longer be edited"
        )


class StopSequencingService:
    """
    Keeps a plan's stops ordered: Origin first, Final Destination last and
    "Stop N" in between, with ``sequence`` equal to the list position.
    """

    def add_stop(self, plan: JourneyPlan) -> JourneyStop:
        ensure_editable(plan)
        insert_at = len(plan.stops) - 1
        stop = JourneyStop(id=new_stop_id(), name="", sequence=insert_at)
        plan.stops.insert(insert_at, stop)
        self.resequence(plan)
        logger.debug("Added %s to journey %s", stop.name, plan.id)
        return stop

    def remove_stop(self, plan: JourneyPlan, stop_id: str) -> bool:
        ensure_editable(plan)
        if len(plan.stops) <= MINIMUM_STOPS:
            logger.warning(
                "Cannot remove origin or final destination of journey %s: only %d stops exist",
                plan.id,
                len(plan.stops),
            )
            return False
        index = plan.index_of(stop_id)
        if index < 0:
            logger.warning("Stop %s not found in journey %s", stop_id, plan.id)
            return False
        del plan.stops[index]
        self.resequence(plan)
        return True

    def update_stop(
        self,
        plan: JourneyPlan,
        stop_id: str,
        address_input: Optional[str] = None,
        notes: Optional[str] = None,
        estimated_arrival_time: Optional[str] = None,
        estimated_departure_time: Optional[str] = None,
    ) -> Optional[JourneyStop]:
        ensure_editable(plan)
        stop = plan.get_stop(stop_id)
        if stop is None:
            return None
        if address_input is not None and address_input != stop.address_input:
            stop.address_input = address_input
            # the old coordinate no longer describes the typed address
            stop.location = None
        if notes is not None:
            stop.notes = notes
        if estimated_arrival_time is not None:
            stop.estimated_arrival_time = estimated_arrival_time
        if estimated_departure_time is not None:
            stop.estimated_departure_time = estimated_departure_time
        return stop

    def rename_plan(self, plan: JourneyPlan, title: str) -> JourneyPlan:
        ensure_editable(plan)
        plan.title = title
        return plan

    @staticmethod
    def resequence(plan: JourneyPlan) -> None:
        count = len(plan.stops)
        for index, stop in enumerate(plan.stops):
            stop.sequence = index
            stop.name = stop_name_for(index, count)
