from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

from journeyplan.core.config import settings
from journeyplan.core.errors import EngineStateError, ValidationError
from journeyplan.llm.client import AnalysisGateway
from journeyplan.models.domain import JourneyPlan, PlanStatus, ServiceRequestDraft
from journeyplan.services.draft_builder import (
    DraftContext,
    build_contexts,
    fallback_draft,
    refined_draft,
    split_eligible,
)

logger = logging.getLogger(__name__)


class RequestSink(Protocol):
    def submit(self, drafts: List[ServiceRequestDraft]) -> None:
        ...


class EngineState(str, Enum):
    idle = "idle"
    validating = "validating"
    finalizing = "finalizing"
    done = "done"


@dataclass
class DraftOutcome:
    draft: ServiceRequestDraft
    refined: bool
    error: Optional[str] = None


@dataclass
class FinalizationResult:
    journey_id: str
    outcomes: List[DraftOutcome] = field(default_factory=list)
    skipped_actions: int = 0

    @property
    def drafts(self) -> List[ServiceRequestDraft]:
        return [o.draft for o in self.outcomes]

    @property
    def draft_count(self) -> int:
        return len(self.outcomes)

    @property
    def refined_count(self) -> int:
        return sum(1 for o in self.outcomes if o.refined)

    @property
    def fallback_count(self) -> int:
        return self.draft_count - self.refined_count

    @property
    def message(self) -> str:
        if not self.outcomes:
            return "Journey finalized, but no actionable sub-requests were generated."
        if self.fallback_count:
            return (
                f"Journey finalized with some items using local analysis. "
                f"{self.draft_count} sub-request(s) created; "
                f"{self.fallback_count} may require manual review."
            )
        return f"Journey finalized! {self.draft_count} sub-request(s) created."


def validate_plan(plan: JourneyPlan) -> None:
    """Raise ``ValidationError`` unless the plan may be finalized."""
    if plan.status is not PlanStatus.draft:
        raise ValidationError(
            f"Journey {plan.id} has already been finalized (status: {plan.status.value})"
        )
    if not plan.has_minimum_stops():
        raise ValidationError(
            f"A journey needs at least 2 stops, found {len(plan.stops)}",
            offending_stops=[s.name for s in plan.stops],
        )
    unlocated = plan.unlocated_stops()
    if unlocated:
        names = [s.name for s in unlocated]
        raise ValidationError(
            f"All stops must have a valid location before finalizing. Missing: {', '.join(names)}",
            offending_stops=names,
        )
    empty = plan.empty_intermediate_stops()
    if empty:
        names = [s.name for s in empty]
        raise ValidationError(
            f"Intermediate stop(s) {', '.join(repr(n) for n in names)} have no actions. "
            "Please configure actions or remove the stop.",
            offending_stops=names,
        )


class FinalizationEngine:
    """
    Expands a journey plan into one service-request draft per eligible action.

    Every eligible action is analyzed concurrently; each analysis runs inside
    its own timeout and failure boundary, and a failed or slow analysis
    yields a draft built from the local description instead. Drafts come back
    in stop-then-action order regardless of which analysis finished first.

    An engine instance finalizes a single plan once.
    """

    def __init__(
        self,
        gateway: AnalysisGateway,
        sink: Optional[RequestSink] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.gateway = gateway
        self.sink = sink
        self.timeout_seconds = (
            settings.analysis_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.state = EngineState.idle
        self.result: Optional[FinalizationResult] = None

    @property
    def busy(self) -> bool:
        return self.state in (EngineState.validating, EngineState.finalizing)

    async def finalize(self, plan: JourneyPlan) -> FinalizationResult:
        if self.state is not EngineState.idle:
            raise EngineStateError(f"Engine already used (state: {self.state.value})")

        self.state = EngineState.validating
        try:
            validate_plan(plan)
        except ValidationError:
            self.state = EngineState.idle
            raise

        self.state = EngineState.finalizing
        try:
            contexts = build_contexts(plan)
            _, skipped = split_eligible(plan)
            logger.info(
                "Finalizing journey %s: %d eligible action(s), %d skipped",
                plan.id,
                len(contexts),
                skipped,
            )
            outcomes = await asyncio.gather(*(self._refine(ctx) for ctx in contexts))
        except BaseException:
            self.state = EngineState.idle
            raise

        result = FinalizationResult(
            journey_id=plan.id, outcomes=list(outcomes), skipped_actions=skipped
        )
        if result.outcomes:
            plan.status = PlanStatus.planned
            if self.sink is not None:
                self.sink.submit(result.drafts)

        logger.info(
            "Journey %s finalized: %d draft(s), %d refined, %d local",
            plan.id,
            result.draft_count,
            result.refined_count,
            result.fallback_count,
        )
        self.result = result
        self.state = EngineState.done
        return result

    async def _refine(self, ctx: DraftContext) -> DraftOutcome:
        try:
            analysis = await asyncio.wait_for(
                self.gateway.analyze(ctx.to_analysis_context()),
                timeout=self.timeout_seconds,
            )
            draft = refined_draft(ctx, analysis)
        except asyncio.TimeoutError:
            logger.warning(
                "Analysis timed out after %.1fs for %s at %s, using local analysis",
                self.timeout_seconds,
                ctx.action.type.value,
                ctx.stop.name,
            )
            return DraftOutcome(draft=fallback_draft(ctx), refined=False, error="timeout")
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Analysis failed for %s at %s, using local analysis: %s",
                ctx.action.type.value,
                ctx.stop.name,
                exc,
            )
            return DraftOutcome(draft=fallback_draft(ctx), refined=False, error=str(exc))
        return DraftOutcome(draft=draft, refined=True)
