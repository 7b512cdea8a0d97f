from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from journeyplan.llm.client import AnalysisContext, AnalysisResult
from journeyplan.models.domain import (
    ActionType,
    AssignTaskDetails,
    Coordinate,
    JourneyAction,
    JourneyPlan,
    JourneyStop,
    Party,
    PickupItemDetails,
    PickupPersonDetails,
    RecipientContext,
    ServiceClassification,
    ServiceRequestDraft,
    details_to_entities,
)

logger = logging.getLogger(__name__)

ELIGIBLE_ACTION_TYPES: FrozenSet[ActionType] = frozenset(
    {ActionType.pickup_person, ActionType.pickup_item, ActionType.assign_task}
)

DEFAULT_CLASSIFICATION: Dict[ActionType, ServiceClassification] = {
    ActionType.pickup_person: ServiceClassification.ride_delivery,
    ActionType.pickup_item: ServiceClassification.ride_delivery,
    ActionType.assign_task: ServiceClassification.professional_service,
}


def is_eligible(action: JourneyAction) -> bool:
    return action.type in ELIGIBLE_ACTION_TYPES


# Destination resolution, evaluated against the current plan snapshot.


def _next_stop_destination(plan: JourneyPlan, stop_index: int) -> Optional[Coordinate]:
    if stop_index + 1 < len(plan.stops):
        return plan.stops[stop_index + 1].location
    return plan.last_stop.location


def _item_dropoff_destination(plan: JourneyPlan, stop_index: int) -> Optional[Coordinate]:
    for stop in plan.stops[stop_index + 1:]:
        if stop.has_action_of_type(ActionType.dropoff_item):
            return stop.location
    return plan.last_stop.location


def _own_stop_destination(plan: JourneyPlan, stop_index: int) -> Optional[Coordinate]:
    return plan.stops[stop_index].location


_DESTINATION_RULES: Dict[ActionType, Callable[[JourneyPlan, int], Optional[Coordinate]]] = {
    ActionType.pickup_person: _next_stop_destination,
    ActionType.pickup_item: _item_dropoff_destination,
    ActionType.assign_task: _own_stop_destination,
}


def resolve_destination(
    plan: JourneyPlan, stop_index: int, action: JourneyAction
) -> Optional[Coordinate]:
    rule = _DESTINATION_RULES.get(action.type)
    if rule is None:
        raise ValueError(f"{action.type.value} actions do not produce service requests")
    return rule(plan, stop_index)


# Per-type rendering of action details into request text.


@dataclass
class _Rendering:
    text: str
    request_for: str = "self"
    recipient: Optional[RecipientContext] = None


def _render_pickup_person(details: PickupPersonDetails) -> _Rendering:
    text = (
        f" Pickup {details.passenger_count or 1} person(s)."
        f" Luggage: {details.luggage or 'N/A'}. For: {details.pickup_for.value}."
    )
    rendering = _Rendering(text=text)
    if details.pickup_for is Party.someone_else:
        rendering.text += f" Target: {details.target_name_or_id or 'Not specified'}."
        rendering.request_for = "someone_else"
        rendering.recipient = RecipientContext(
            name=details.target_name_or_id,
            contact=details.target_mobile,
            notes=details.notes,
        )
    if details.transportation_type:
        vehicle = " ".join(
            part for part in (details.transportation_type, details.vehicle_sub_type) if part
        )
        rendering.text += f" Vehicle: {vehicle}."
        if details.transportation_details:
            rendering.text += f" {details.transportation_details}"
    if details.notes and details.pickup_for is not Party.someone_else:
        rendering.text += f" Notes: {details.notes}."
    return rendering


def _render_pickup_item(details: PickupItemDetails) -> _Rendering:
    what = details.item_description or details.product_name_or_code or "unspecified item"
    text = (
        f" Pickup {details.quantity or 1} {details.unit or 'item(s)'}: {what}."
        f" From: {details.pickup_from.value}."
    )
    rendering = _Rendering(text=text)
    if details.pickup_from is Party.someone_else:
        place = details.company_name or "location"
        rendering.text += f" Contact: {details.name_or_user_id or 'Not specified'} at {place}."
        rendering.request_for = "someone_else"
        rendering.recipient = RecipientContext(
            name=details.name_or_user_id,
            contact=details.mobile,
            notes=f"Pickup from {place}",
        )
    if details.instructions_to_driver:
        rendering.text += f" Instructions: {details.instructions_to_driver}."
    return rendering


def _render_assign_task(details: AssignTaskDetails) -> _Rendering:
    rendering = _Rendering(
        text=f" Task: {details.task_details or 'Not specified'}. Assign to: {details.assign_to.value}."
    )
    delegated = details.assign_to is Party.someone_else and details.selected_person_id
    if delegated:
        rendering.text += f" Assigned Person: {details.selected_person_id}."
        rendering.request_for = "someone_else"
        rendering.recipient = RecipientContext(
            name=details.selected_person_id, notes=details.notes
        )
    if details.required_skills:
        rendering.text += f" Skills: {', '.join(details.required_skills)}."
    if details.tools_or_equipment:
        rendering.text += f" Equipment: {', '.join(details.tools_or_equipment)}."
    if details.notes and not delegated:
        rendering.text += f" Notes: {details.notes}."
    return rendering


_RENDERERS: Dict[ActionType, Callable[[Any], _Rendering]] = {
    ActionType.pickup_person: _render_pickup_person,
    ActionType.pickup_item: _render_pickup_item,
    ActionType.assign_task: _render_assign_task,
}


@dataclass
class DraftContext:
    """Everything needed to turn one eligible action into a draft."""

    plan_id: str
    stop: JourneyStop
    action: JourneyAction
    description: str
    origin: Coordinate
    destination: Optional[Coordinate]
    base_entities: Dict[str, Any] = field(default_factory=dict)
    request_for: str = "self"
    recipient: Optional[RecipientContext] = None

    @property
    def default_classification(self) -> ServiceClassification:
        return DEFAULT_CLASSIFICATION[self.action.type]

    def to_analysis_context(self) -> AnalysisContext:
        return AnalysisContext(
            text=self.description,
            origin_location=self.origin,
            destination_location=self.destination,
            recipient_context=self.recipient,
            request_for=self.request_for,
        )


def build_context(plan: JourneyPlan, stop_index: int, action: JourneyAction) -> DraftContext:
    stop = plan.stops[stop_index]
    details = action.resolved_details()
    rendering = _RENDERERS[action.type](details)
    description = (
        f'Journey Task: "{plan.title}" - Stop: "{stop.name}" '
        f"({stop.address_input or 'N/A'}) - Action: {action.type.label}."
        + rendering.text
    )
    base_entities: Dict[str, Any] = {
        "journey_context": f'Part of journey "{plan.title}" at stop "{stop.name}"',
    }
    base_entities.update(details_to_entities(details))
    return DraftContext(
        plan_id=plan.id,
        stop=stop,
        action=action,
        description=description,
        origin=stop.location,
        destination=resolve_destination(plan, stop_index, action),
        base_entities=base_entities,
        request_for=rendering.request_for,
        recipient=rendering.recipient,
    )


def build_contexts(plan: JourneyPlan) -> List[DraftContext]:
    """Contexts for every eligible action, in stop-then-action order."""
    contexts: List[DraftContext] = []
    for index, stop in enumerate(plan.stops):
        for action in stop.actions:
            if not is_eligible(action):
                logger.debug(
                    "Action %s at %s skipped for sub-request generation",
                    action.type.value,
                    stop.name,
                )
                continue
            contexts.append(build_context(plan, index, action))
    return contexts


def _draft(ctx: DraftContext, **overrides: Any) -> ServiceRequestDraft:
    values: Dict[str, Any] = dict(
        source_journey_id=ctx.plan_id,
        source_stop_id=ctx.stop.id,
        source_action_id=ctx.action.id,
        action_type=ctx.action.type,
        origin_location=ctx.origin,
        destination_location=ctx.destination,
        classification=ctx.default_classification,
        summary=ctx.description,
        description=ctx.description,
        entities=dict(ctx.base_entities),
        price_estimate=None,
        request_for=ctx.request_for,
        recipient_context=ctx.recipient,
    )
    values.update(overrides)
    return ServiceRequestDraft(**values)


def fallback_draft(ctx: DraftContext) -> ServiceRequestDraft:
    return _draft(ctx)


def refined_draft(ctx: DraftContext, result: AnalysisResult) -> ServiceRequestDraft:
    classification = result.classification
    if classification is ServiceClassification.unknown:
        classification = ctx.default_classification
    return _draft(
        ctx,
        classification=classification,
        summary=result.summary or ctx.description,
        entities={**ctx.base_entities, **(result.entities or {})},
        price_estimate=result.price_estimate,
    )


def split_eligible(plan: JourneyPlan) -> Tuple[int, int]:
    """Count (eligible, skipped) actions across the plan."""
    eligible = skipped = 0
    for stop in plan.stops:
        for action in stop.actions:
            if is_eligible(action):
                eligible += 1
            else:
                skipped += 1
    return eligible, skipped
