from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from journeyplan.models.domain import Coordinate, RecipientContext, ServiceClassification


@dataclass
class AnalysisContext:
    text: str
    origin_location: Coordinate
    destination_location: Optional[Coordinate] = None
    recipient_context: Optional[RecipientContext] = None
    request_for: str = "self"


@dataclass
class AnalysisResult:
    classification: ServiceClassification
    summary: str
    entities: Dict[str, Any] = field(default_factory=dict)
    price_estimate: Optional[float] = None


class AnalysisGateway(Protocol):
    """
    Turns a free-text request plus location hints into a classification,
    summary, entity bag and price estimate. Implementations raise
    ``AnalysisError`` (or any transport error) on failure; callers decide how
    to degrade.
    """

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        ...
