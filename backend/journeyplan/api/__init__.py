from fastapi import HTTPException
from starlette.requests import Request

from journeyplan.services.journey_service import JourneyService


def get_journey_service(request: Request) -> JourneyService:
    service = getattr(request.app.state, "journey_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Journey service not initialized")
    return service
