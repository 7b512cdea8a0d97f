from fastapi import APIRouter

from journeyplan.core.config import settings

router = APIRouter()


@router.get("/health")
def healthcheck() -> dict:
    return {
        "status": "ok",
        "environment": settings.environment,
        "llm_provider": settings.llm_provider,
        "geocoder_provider": settings.geocoder_provider,
    }
