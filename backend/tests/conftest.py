import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from journeyplan.core.errors import AnalysisError
from journeyplan.llm.client import AnalysisContext, AnalysisResult
from journeyplan.models.domain import (
    ActionType,
    Coordinate,
    JourneyAction,
    JourneyPlan,
    ServiceClassification,
    build_details,
    new_journey_plan,
)
from journeyplan.services.action_registry import ActionRegistry
from journeyplan.services.sequencing_service import StopSequencingService

LOC_A = Coordinate(52.3700, 4.8900, "A street 1")
LOC_B = Coordinate(52.3710, 4.8910, "B street 2")
LOC_C = Coordinate(52.3720, 4.8920, "C street 3")
LOC_D = Coordinate(52.3730, 4.8930, "D street 4")

ActionSpec = Tuple[ActionType, Dict]


def build_plan(
    stops: Sequence[Tuple[Optional[Coordinate], List[ActionSpec]]],
    title: str = "Test Journey",
) -> JourneyPlan:
    """Build a plan whose stops have the given locations and actions."""
    plan = new_journey_plan("requester-1", title)
    sequencing = StopSequencingService()
    registry = ActionRegistry()
    for _ in range(len(stops) - 2):
        sequencing.add_stop(plan)
    for stop, (location, actions) in zip(plan.stops, stops):
        stop.location = location
        if location is not None:
            stop.address_input = location.label()
        for index, (action_type, details) in enumerate(actions):
            registry.save(
                stop,
                JourneyAction(
                    id=f"{stop.name}-{index}",
                    type=action_type,
                    details=build_details(action_type, details),
                ),
            )
    return plan


class FailingGateway:
    def __init__(self) -> None:
        self.calls = 0

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        self.calls += 1
        raise AnalysisError("gateway unavailable")


class ScriptedGateway:
    """Answers after a per-call delay picked by a substring of the request text."""

    def __init__(self, delays: Optional[Dict[str, float]] = None, fail_on: Sequence[str] = ()):
        self.delays = delays or {}
        self.fail_on = fail_on
        self.contexts: List[AnalysisContext] = []
        self.completed: List[str] = []

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        self.contexts.append(context)
        for marker, delay in self.delays.items():
            if marker in context.text:
                await asyncio.sleep(delay)
        if any(marker in context.text for marker in self.fail_on):
            raise AnalysisError("scripted failure")
        self.completed.append(context.text)
        return AnalysisResult(
            classification=ServiceClassification.logistics,
            summary=f"refined: {context.text[-30:]}",
            entities={"refined": True},
            price_estimate=12.5,
        )


@pytest.fixture
def sequencing() -> StopSequencingService:
    return StopSequencingService()


@pytest.fixture
def registry() -> ActionRegistry:
    return ActionRegistry()
