import logging
from typing import Any, Dict, List, Optional

from journeyplan.core.config import settings
from journeyplan.core.errors import NotFoundError, PlanLockedError
from journeyplan.geo.backends.google_backend import GoogleGeocodingResolver
from journeyplan.geo.backends.static_backend import StaticGeolocationResolver
from journeyplan.geo.client import GeolocationResolver
from journeyplan.llm.analyzer import MockAnalysisGateway
from journeyplan.llm.backends.ollama_backend import OllamaAnalysisGateway
from journeyplan.llm.client import AnalysisGateway
from journeyplan.models.domain import (
    ActionType,
    Coordinate,
    JourneyAction,
    JourneyPlan,
    JourneyStop,
    new_journey_plan,
)
from journeyplan.services.action_registry import ActionRegistry
from journeyplan.services.finalization_engine import FinalizationEngine, FinalizationResult
from journeyplan.services.sequencing_service import StopSequencingService, ensure_editable
from journeyplan.services.stop_locator import StopLocator
from journeyplan.storage.repository import InMemoryRepository, SubmittedRequest

logger = logging.getLogger(__name__)


def build_gateway() -> AnalysisGateway:
    if settings.llm_provider.lower() == "ollama":
        return OllamaAnalysisGateway()
    return MockAnalysisGateway()


def build_resolver() -> GeolocationResolver:
    if settings.geocoder_provider.lower() == "google":
        return GoogleGeocodingResolver()
    return StaticGeolocationResolver()


class JourneyService:
    def __init__(
        self,
        repository: InMemoryRepository,
        gateway: Optional[AnalysisGateway] = None,
        resolver: Optional[GeolocationResolver] = None,
    ):
        self.repository = repository
        self.gateway = gateway or build_gateway()
        self.locator = StopLocator(resolver or build_resolver())
        self.sequencing = StopSequencingService()
        self.registry = ActionRegistry()
        self.engines: Dict[str, FinalizationEngine] = {}

    def create_plan(self, requester_id: str, title: Optional[str] = None) -> JourneyPlan:
        plan = new_journey_plan(requester_id, title) if title else new_journey_plan(requester_id)
        logger.info("Created journey %s for requester %s", plan.id, requester_id)
        return self.repository.save_plan(plan)

    def get_plan(self, plan_id: str) -> JourneyPlan:
        plan = self.repository.get_plan(plan_id)
        if not plan:
            raise NotFoundError(f"Journey {plan_id} not found")
        return plan

    def rename_plan(self, plan_id: str, title: str) -> JourneyPlan:
        return self.sequencing.rename_plan(self._editable_plan(plan_id), title)

    def add_stop(self, plan_id: str) -> JourneyPlan:
        plan = self._editable_plan(plan_id)
        self.sequencing.add_stop(plan)
        return plan

    def remove_stop(self, plan_id: str, stop_id: str) -> JourneyPlan:
        plan = self._editable_plan(plan_id)
        self._get_stop(plan, stop_id)
        self.sequencing.remove_stop(plan, stop_id)
        return plan

    def update_stop(self, plan_id: str, stop_id: str, **changes: Optional[str]) -> JourneyStop:
        plan = self._editable_plan(plan_id)
        self._get_stop(plan, stop_id)
        return self.sequencing.update_stop(plan, stop_id, **changes)

    async def set_stop_address(self, plan_id: str, stop_id: str, address: str) -> JourneyStop:
        plan = self._editable_plan(plan_id)
        self._get_stop(plan, stop_id)
        return await self.locator.set_address(plan, stop_id, address)

    async def place_stop(self, plan_id: str, stop_id: str, lat: float, lng: float) -> JourneyStop:
        plan = self._editable_plan(plan_id)
        self._get_stop(plan, stop_id)
        return await self.locator.place_at(plan, stop_id, Coordinate(lat=lat, lng=lng))

    def save_action(
        self,
        plan_id: str,
        stop_id: str,
        action_type: ActionType,
        details: Optional[Dict[str, Any]] = None,
        action_id: Optional[str] = None,
    ) -> JourneyAction:
        plan = self._editable_plan(plan_id)
        stop = self._get_stop(plan, stop_id)
        return self.registry.configure(stop, action_type, details, action_id=action_id)

    def delete_action(self, plan_id: str, stop_id: str, action_id: str) -> JourneyStop:
        plan = self._editable_plan(plan_id)
        stop = self._get_stop(plan, stop_id)
        self.registry.delete(stop, action_id)
        return stop

    async def finalize(self, plan_id: str) -> FinalizationResult:
        plan = self._unlocked_plan(plan_id)
        engine = FinalizationEngine(self.gateway, sink=self.repository)
        self.engines[plan.id] = engine
        try:
            return await engine.finalize(plan)
        finally:
            if engine.result is None:
                del self.engines[plan.id]

    def list_requests(self, plan_id: str) -> List[SubmittedRequest]:
        plan = self.get_plan(plan_id)
        return self.repository.list_requests_for_journey(plan.id)

    def _unlocked_plan(self, plan_id: str) -> JourneyPlan:
        plan = self.get_plan(plan_id)
        engine = self.engines.get(plan.id)
        if engine is not None and engine.busy:
            raise PlanLockedError(f"Journey {plan.id} is being finalized")
        return plan

    def _editable_plan(self, plan_id: str) -> JourneyPlan:
        plan = self._unlocked_plan(plan_id)
        ensure_editable(plan)
        return plan

    @staticmethod
    def _get_stop(plan: JourneyPlan, stop_id: str) -> JourneyStop:
        stop = plan.get_stop(stop_id)
        if not stop:
            raise NotFoundError(f"Stop {stop_id} not found in journey {plan.id}")
        return stop
