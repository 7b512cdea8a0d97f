from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, ClassVar, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

ORIGIN_NAME = "Origin"
FINAL_DESTINATION_NAME = "Final Destination"
MINIMUM_STOPS = 2


class PlanStatus(str, Enum):
    draft = "draft"
    planned = "planned"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class ActionType(str, Enum):
    pickup_person = "pickup_person"
    dropoff_person = "dropoff_person"
    pickup_item = "pickup_item"
    dropoff_item = "dropoff_item"
    assign_task = "assign_task"
    wait = "wait"
    other = "other"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class ActionStatus(str, Enum):
    pending = "pending"
    configured = "configured"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class Party(str, Enum):
    myself = "myself"
    someone_else = "someone_else"
    store_or_business = "store_or_business"


class ServiceClassification(str, Enum):
    ride_delivery = "ride_delivery"
    product_sale = "product_sale"
    professional_service = "professional_service"
    general_help = "general_help"
    information_request = "information_request"
    event_planning = "event_planning"
    logistics = "logistics"
    plumbing = "plumbing"
    electrical = "electrical"
    furniture_assembly = "furniture_assembly"
    appliance_repair = "appliance_repair"
    cleaning = "cleaning"
    landscaping = "landscaping"
    unknown = "unknown"


@dataclass
class Coordinate:
    lat: float
    lng: float
    address: Optional[str] = None

    def label(self) -> str:
        return self.address or f"{self.lat:.5f}, {self.lng:.5f}"


@dataclass
class RecipientContext:
    name: Optional[str] = None
    contact: Optional[str] = None
    notes: Optional[str] = None


# Action details: one variant per ActionType.


@dataclass
class PickupPersonDetails:
    action_type: ClassVar[ActionType] = ActionType.pickup_person

    passenger_count: int = 1
    luggage: Optional[str] = None
    pickup_for: Party = Party.myself
    target_name_or_id: Optional[str] = None
    target_mobile: Optional[str] = None
    notes: Optional[str] = None
    set_date_time: Optional[str] = None
    transportation_type: Optional[str] = None
    vehicle_sub_type: Optional[str] = None
    transportation_details: Optional[str] = None


@dataclass
class PickupItemDetails:
    action_type: ClassVar[ActionType] = ActionType.pickup_item

    product_name_or_code: Optional[str] = None
    item_description: Optional[str] = None
    quantity: float = 1
    unit: Optional[str] = None
    pickup_from: Party = Party.myself
    company_name: Optional[str] = None
    name_or_user_id: Optional[str] = None
    mobile: Optional[str] = None
    instructions_to_driver: Optional[str] = None
    set_date_time: Optional[str] = None


@dataclass
class DropoffPersonDetails:
    action_type: ClassVar[ActionType] = ActionType.dropoff_person

    passenger_selection: Optional[str] = None
    luggage: Optional[str] = None
    dropoff_to: Party = Party.myself
    target_name_or_id: Optional[str] = None
    notes: Optional[str] = None
    set_date_time: Optional[str] = None


@dataclass
class DropoffItemDetails:
    action_type: ClassVar[ActionType] = ActionType.dropoff_item

    item_selection: Optional[str] = None
    item_description: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    dropoff_to: Party = Party.myself
    target_name_or_id: Optional[str] = None
    company_name: Optional[str] = None
    mobile: Optional[str] = None
    notes: Optional[str] = None
    set_date_time: Optional[str] = None


@dataclass
class AssignTaskDetails:
    action_type: ClassVar[ActionType] = ActionType.assign_task

    task_details: str = ""
    assign_to: Party = Party.myself
    selected_person_id: Optional[str] = None
    required_skills: List[str] = field(default_factory=list)
    tools_or_equipment: List[str] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class WaitDetails:
    action_type: ClassVar[ActionType] = ActionType.wait

    duration_minutes: int = 0
    reason: Optional[str] = None


@dataclass
class OtherDetails:
    action_type: ClassVar[ActionType] = ActionType.other

    description: str = ""
    notes: Optional[str] = None


ActionDetails = Union[
    PickupPersonDetails,
    PickupItemDetails,
    DropoffPersonDetails,
    DropoffItemDetails,
    AssignTaskDetails,
    WaitDetails,
    OtherDetails,
]

DETAILS_BY_TYPE: Dict[ActionType, type] = {
    ActionType.pickup_person: PickupPersonDetails,
    ActionType.pickup_item: PickupItemDetails,
    ActionType.dropoff_person: DropoffPersonDetails,
    ActionType.dropoff_item: DropoffItemDetails,
    ActionType.assign_task: AssignTaskDetails,
    ActionType.wait: WaitDetails,
    ActionType.other: OtherDetails,
}


@lru_cache(maxsize=None)
def _details_adapter(details_cls: type) -> TypeAdapter:
    return TypeAdapter(details_cls)


def build_details(action_type: ActionType, data: Optional[Dict[str, Any]]) -> ActionDetails:
    """Build the details variant for ``action_type`` from a plain mapping.

    Unknown keys raise ``ValueError`` so a form cannot silently attach fields
    that belong to another action type. Field values are checked against the
    variant's annotations; a mismatch also raises ``ValueError``.
    """
    action_type = ActionType(action_type)
    details_cls = DETAILS_BY_TYPE[action_type]
    data = dict(data or {})
    known = {f.name for f in fields(details_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown fields for {action_type.value}: {', '.join(unknown)}")
    cleaned = {k: v for k, v in data.items() if v is not None}
    try:
        return _details_adapter(details_cls).validate_python(cleaned)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValueError(f"Invalid details for {action_type.value}: {problems}") from exc


def details_to_entities(details: ActionDetails) -> Dict[str, Any]:
    """Flatten a details variant into an entity bag, skipping empty fields."""
    entities: Dict[str, Any] = {}
    for f in fields(details):
        value = getattr(details, f.name)
        if value is None or value == [] or value == "":
            continue
        if isinstance(value, Enum):
            value = value.value
        entities[f.name] = value
    return entities


@dataclass
class JourneyAction:
    id: str
    type: ActionType
    details: Optional[ActionDetails] = None
    status: ActionStatus = ActionStatus.pending
    linked_request_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.type = ActionType(self.type)
        if self.details is not None and self.details.action_type is not self.type:
            raise ValueError(
                f"Details for {self.details.action_type.value} cannot be attached "
                f"to a {self.type.value} action"
            )

    def resolved_details(self) -> ActionDetails:
        if self.details is not None:
            return self.details
        return DETAILS_BY_TYPE[self.type]()


@dataclass
class JourneyStop:
    id: str
    name: str
    address_input: str = ""
    location: Optional[Coordinate] = None
    sequence: int = 0
    actions: List[JourneyAction] = field(default_factory=list)
    notes: Optional[str] = None
    estimated_arrival_time: Optional[str] = None
    estimated_departure_time: Optional[str] = None

    def find_action(self, action_id: str) -> Optional[JourneyAction]:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def has_action_of_type(self, action_type: ActionType) -> bool:
        return any(a.type is action_type for a in self.actions)


def stop_name_for(index: int, stop_count: int) -> str:
    if index == 0:
        return ORIGIN_NAME
    if index == stop_count - 1:
        return FINAL_DESTINATION_NAME
    return f"Stop {index}"


def new_stop_id() -> str:
    return f"stop-{uuid4()}"


@dataclass
class JourneyPlan:
    id: str
    requester_id: str
    title: str
    stops: List[JourneyStop] = field(default_factory=list)
    status: PlanStatus = PlanStatus.draft
    description: Optional[str] = None
    creation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_stop(self, stop_id: str) -> Optional[JourneyStop]:
        for stop in self.stops:
            if stop.id == stop_id:
                return stop
        return None

    def index_of(self, stop_id: str) -> int:
        for index, stop in enumerate(self.stops):
            if stop.id == stop_id:
                return index
        return -1

    @property
    def last_stop(self) -> JourneyStop:
        return self.stops[-1]

    def intermediate_stops(self) -> List[JourneyStop]:
        return self.stops[1:-1]

    # Finalize preconditions

    def has_minimum_stops(self) -> bool:
        return len(self.stops) >= MINIMUM_STOPS

    def unlocated_stops(self) -> List[JourneyStop]:
        return [s for s in self.stops if s.location is None]

    def all_stops_located(self) -> bool:
        return not self.unlocated_stops()

    def empty_intermediate_stops(self) -> List[JourneyStop]:
        return [s for s in self.intermediate_stops() if not s.actions]

    def all_intermediate_stops_have_actions(self) -> bool:
        return not self.empty_intermediate_stops()


def new_journey_plan(requester_id: str, title: str = "My New Journey") -> JourneyPlan:
    return JourneyPlan(
        id=f"journey-{uuid4()}",
        requester_id=requester_id,
        title=title,
        stops=[
            JourneyStop(id=new_stop_id(), name=ORIGIN_NAME, sequence=0),
            JourneyStop(id=new_stop_id(), name=FINAL_DESTINATION_NAME, sequence=1),
        ],
    )


@dataclass
class ServiceRequestDraft:
    source_journey_id: str
    source_stop_id: str
    source_action_id: str
    action_type: ActionType
    origin_location: Coordinate
    destination_location: Optional[Coordinate]
    classification: ServiceClassification
    summary: str
    description: str
    entities: Dict[str, Any] = field(default_factory=dict)
    price_estimate: Optional[float] = None
    request_for: str = "self"
    recipient_context: Optional[RecipientContext] = None
