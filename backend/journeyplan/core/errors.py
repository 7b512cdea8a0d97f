from __future__ import annotations

from typing import List, Optional


class JourneyError(Exception):
    """Base class for journey planning errors."""


class ValidationError(JourneyError):
    """A journey plan does not satisfy the preconditions for finalize."""

    def __init__(self, message: str, offending_stops: Optional[List[str]] = None):
        super().__init__(message)
        self.offending_stops = offending_stops or []


class PlanLockedError(JourneyError):
    """The plan is being finalized or has already been finalized."""


class EngineStateError(JourneyError):
    pass


class GeolocationError(JourneyError):
    pass


class AnalysisError(JourneyError):
    pass


class NotFoundError(JourneyError):
    pass
