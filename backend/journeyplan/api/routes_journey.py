from fastapi import APIRouter, Depends

from journeyplan.api import get_journey_service
from journeyplan.core.config import settings
from journeyplan.models.schemas import (
    ActionPayload,
    CreateJourneyRequest,
    DraftOutcomeSchema,
    FinalizeResponse,
    JourneyActionSchema,
    JourneyPlanSchema,
    JourneyStopSchema,
    RenameJourneyRequest,
    ServiceRequestDraftSchema,
    StopAddressRequest,
    StopPlacementRequest,
    SubmittedRequestSchema,
    SubmittedRequestsResponse,
    UpdateStopRequest,
)
from journeyplan.services.journey_service import JourneyService

router = APIRouter()


@router.post("/", response_model=JourneyPlanSchema, status_code=201)
def create_journey(
    body: CreateJourneyRequest,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyPlanSchema:
    plan = service.create_plan(
        requester_id=body.requester_id or settings.default_requester_id, title=body.title
    )
    return JourneyPlanSchema.from_domain(plan)


@router.get("/{journey_id}", response_model=JourneyPlanSchema)
def get_journey(
    journey_id: str, service: JourneyService = Depends(get_journey_service)
) -> JourneyPlanSchema:
    return JourneyPlanSchema.from_domain(service.get_plan(journey_id))


@router.patch("/{journey_id}", response_model=JourneyPlanSchema)
def rename_journey(
    journey_id: str,
    body: RenameJourneyRequest,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyPlanSchema:
    return JourneyPlanSchema.from_domain(service.rename_plan(journey_id, body.title))


@router.post("/{journey_id}/stops", response_model=JourneyPlanSchema)
def add_stop(
    journey_id: str, service: JourneyService = Depends(get_journey_service)
) -> JourneyPlanSchema:
    return JourneyPlanSchema.from_domain(service.add_stop(journey_id))


@router.delete("/{journey_id}/stops/{stop_id}", response_model=JourneyPlanSchema)
def remove_stop(
    journey_id: str,
    stop_id: str,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyPlanSchema:
    return JourneyPlanSchema.from_domain(service.remove_stop(journey_id, stop_id))


@router.patch("/{journey_id}/stops/{stop_id}", response_model=JourneyStopSchema)
def update_stop(
    journey_id: str,
    stop_id: str,
    body: UpdateStopRequest,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyStopSchema:
    stop = service.update_stop(journey_id, stop_id, **body.model_dump(exclude_none=True))
    return JourneyStopSchema.from_domain(stop)


@router.put("/{journey_id}/stops/{stop_id}/address", response_model=JourneyStopSchema)
async def set_stop_address(
    journey_id: str,
    stop_id: str,
    body: StopAddressRequest,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyStopSchema:
    stop = await service.set_stop_address(journey_id, stop_id, body.address)
    return JourneyStopSchema.from_domain(stop)


@router.put("/{journey_id}/stops/{stop_id}/location", response_model=JourneyStopSchema)
async def place_stop(
    journey_id: str,
    stop_id: str,
    body: StopPlacementRequest,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyStopSchema:
    stop = await service.place_stop(journey_id, stop_id, body.lat, body.lng)
    return JourneyStopSchema.from_domain(stop)


@router.put("/{journey_id}/stops/{stop_id}/actions", response_model=JourneyActionSchema)
def save_action(
    journey_id: str,
    stop_id: str,
    body: ActionPayload,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyActionSchema:
    action = service.save_action(
        journey_id, stop_id, body.type, details=body.details, action_id=body.id
    )
    return JourneyActionSchema.from_domain(action)


@router.delete(
    "/{journey_id}/stops/{stop_id}/actions/{action_id}", response_model=JourneyStopSchema
)
def delete_action(
    journey_id: str,
    stop_id: str,
    action_id: str,
    service: JourneyService = Depends(get_journey_service),
) -> JourneyStopSchema:
    return JourneyStopSchema.from_domain(service.delete_action(journey_id, stop_id, action_id))


@router.post("/{journey_id}/finalize", response_model=FinalizeResponse)
async def finalize_journey(
    journey_id: str, service: JourneyService = Depends(get_journey_service)
) -> FinalizeResponse:
    result = await service.finalize(journey_id)
    plan = service.get_plan(journey_id)
    return FinalizeResponse(
        journey_id=result.journey_id,
        status=plan.status,
        draft_count=result.draft_count,
        refined_count=result.refined_count,
        fallback_count=result.fallback_count,
        skipped_actions=result.skipped_actions,
        message=result.message,
        outcomes=[
            DraftOutcomeSchema(
                draft=ServiceRequestDraftSchema.from_domain(o.draft),
                refined=o.refined,
                error=o.error,
            )
            for o in result.outcomes
        ],
    )


@router.get("/{journey_id}/requests", response_model=SubmittedRequestsResponse)
def list_requests(
    journey_id: str, service: JourneyService = Depends(get_journey_service)
) -> SubmittedRequestsResponse:
    return SubmittedRequestsResponse(
        requests=[
            SubmittedRequestSchema(
                request_id=r.request_id,
                submitted_at=r.submitted_at,
                draft=ServiceRequestDraftSchema.from_domain(r.draft),
            )
            for r in service.list_requests(journey_id)
        ]
    )
