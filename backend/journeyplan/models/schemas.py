from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from journeyplan.models.domain import (
    ActionStatus,
    ActionType,
    Coordinate,
    JourneyAction,
    JourneyPlan,
    JourneyStop,
    PlanStatus,
    RecipientContext,
    ServiceClassification,
    ServiceRequestDraft,
    details_to_entities,
)


class CreateJourneyRequest(BaseModel):
    title: Optional[str] = None
    requester_id: Optional[str] = None


class RenameJourneyRequest(BaseModel):
    title: str = Field(min_length=1)


class UpdateStopRequest(BaseModel):
    address_input: Optional[str] = None
    notes: Optional[str] = None
    estimated_arrival_time: Optional[str] = None
    estimated_departure_time: Optional[str] = None


class StopAddressRequest(BaseModel):
    address: str = Field(min_length=1)


class StopPlacementRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ActionPayload(BaseModel):
    id: Optional[str] = None
    type: ActionType
    details: Dict[str, Any] = Field(default_factory=dict)


class CoordinateSchema(BaseModel):
    lat: float
    lng: float
    address: Optional[str] = None

    @classmethod
    def from_domain(cls, obj: Optional[Coordinate]) -> Optional["CoordinateSchema"]:
        if obj is None:
            return None
        return cls(lat=obj.lat, lng=obj.lng, address=obj.address)


class RecipientContextSchema(BaseModel):
    name: Optional[str] = None
    contact: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, obj: Optional[RecipientContext]) -> Optional["RecipientContextSchema"]:
        if obj is None:
            return None
        return cls(**asdict(obj))


class JourneyActionSchema(BaseModel):
    id: str
    type: ActionType
    details: Dict[str, Any]
    status: ActionStatus
    linked_request_id: Optional[str] = None

    @classmethod
    def from_domain(cls, obj: JourneyAction) -> "JourneyActionSchema":
        return cls(
            id=obj.id,
            type=obj.type,
            details=details_to_entities(obj.details) if obj.details else {},
            status=obj.status,
            linked_request_id=obj.linked_request_id,
        )


class JourneyStopSchema(BaseModel):
    id: str
    name: str
    address_input: str
    location: Optional[CoordinateSchema] = None
    sequence: int
    actions: List[JourneyActionSchema]
    notes: Optional[str] = None
    estimated_arrival_time: Optional[str] = None
    estimated_departure_time: Optional[str] = None

    @classmethod
    def from_domain(cls, obj: JourneyStop) -> "JourneyStopSchema":
        return cls(
            id=obj.id,
            name=obj.name,
            address_input=obj.address_input,
            location=CoordinateSchema.from_domain(obj.location),
            sequence=obj.sequence,
            actions=[JourneyActionSchema.from_domain(a) for a in obj.actions],
            notes=obj.notes,
            estimated_arrival_time=obj.estimated_arrival_time,
            estimated_departure_time=obj.estimated_departure_time,
        )


class JourneyPlanSchema(BaseModel):
    id: str
    requester_id: str
    title: str
    description: Optional[str] = None
    status: PlanStatus
    creation_date: datetime
    stops: List[JourneyStopSchema]
    can_finalize: bool

    @classmethod
    def from_domain(cls, obj: JourneyPlan) -> "JourneyPlanSchema":
        return cls(
            id=obj.id,
            requester_id=obj.requester_id,
            title=obj.title,
            description=obj.description,
            status=obj.status,
            creation_date=obj.creation_date,
            stops=[JourneyStopSchema.from_domain(s) for s in obj.stops],
            can_finalize=(
                obj.status is PlanStatus.draft
                and obj.has_minimum_stops()
                and obj.all_stops_located()
                and obj.all_intermediate_stops_have_actions()
            ),
        )


class ServiceRequestDraftSchema(BaseModel):
    source_journey_id: str
    source_stop_id: str
    source_action_id: str
    action_type: ActionType
    origin_location: CoordinateSchema
    destination_location: Optional[CoordinateSchema] = None
    classification: ServiceClassification
    summary: str
    description: str
    entities: Dict[str, Any]
    price_estimate: Optional[float] = None
    request_for: str
    recipient_context: Optional[RecipientContextSchema] = None

    @classmethod
    def from_domain(cls, obj: ServiceRequestDraft) -> "ServiceRequestDraftSchema":
        return cls(
            source_journey_id=obj.source_journey_id,
            source_stop_id=obj.source_stop_id,
            source_action_id=obj.source_action_id,
            action_type=obj.action_type,
            origin_location=CoordinateSchema.from_domain(obj.origin_location),
            destination_location=CoordinateSchema.from_domain(obj.destination_location),
            classification=obj.classification,
            summary=obj.summary,
            description=obj.description,
            entities=obj.entities,
            price_estimate=obj.price_estimate,
            request_for=obj.request_for,
            recipient_context=RecipientContextSchema.from_domain(obj.recipient_context),
        )


class DraftOutcomeSchema(BaseModel):
    draft: ServiceRequestDraftSchema
    refined: bool
    error: Optional[str] = None


class FinalizeResponse(BaseModel):
    journey_id: str
    status: PlanStatus
    draft_count: int
    refined_count: int
    fallback_count: int
    skipped_actions: int
    message: str
    outcomes: List[DraftOutcomeSchema]


class SubmittedRequestSchema(BaseModel):
    request_id: str
    submitted_at: datetime
    draft: ServiceRequestDraftSchema


class SubmittedRequestsResponse(BaseModel):
    requests: List[SubmittedRequestSchema]
