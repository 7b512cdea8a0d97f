from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from journeyplan.api import routes_health, routes_journey
from journeyplan.core.config import settings
from journeyplan.core.errors import NotFoundError, PlanLockedError, ValidationError
from journeyplan.core.logging import configure_logging
from journeyplan.services.journey_service import JourneyService
from journeyplan.storage.repository import InMemoryRepository


def _error_response(status_code: int, exc: Exception, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), **extra})


def create_app(journey_service: JourneyService | None = None) -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    journey_service = journey_service or JourneyService(repository=InMemoryRepository())

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_journey.router, prefix="/journeys", tags=["journeys"])

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(422, exc, offending_stops=exc.offending_stops)

    @app.exception_handler(PlanLockedError)
    async def _locked(request: Request, exc: PlanLockedError) -> JSONResponse:
        return _error_response(409, exc)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, exc)

    @app.exception_handler(ValueError)
    async def _bad_payload(request: Request, exc: ValueError) -> JSONResponse:
        return _error_response(422, exc)

    # Shared state for dependencies
    app.state.journey_service = journey_service
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
