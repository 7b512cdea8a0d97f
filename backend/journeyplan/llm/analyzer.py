from __future__ import annotations

import logging
import math
import re
from typing import Dict, List, Optional, Tuple

from journeyplan.llm.client import AnalysisContext, AnalysisResult
from journeyplan.models.domain import Coordinate, ServiceClassification

logger = logging.getLogger(__name__)

_KEYWORDS: List[Tuple[ServiceClassification, Tuple[str, ...]]] = [
    (ServiceClassification.cleaning, ("clean", "wash", "vacuum", "tidy")),
    (ServiceClassification.plumbing, ("plumb", "leak", "pipe", "drain")),
    (ServiceClassification.electrical, ("electric", "wiring", "socket", "light fixture")),
    (ServiceClassification.furniture_assembly, ("assemble", "assembly", "furniture")),
    (ServiceClassification.appliance_repair, ("appliance", "fridge", "washer", "dryer")),
    (ServiceClassification.landscaping, ("garden", "lawn", "mow", "hedge")),
    (ServiceClassification.ride_delivery, ("pickup", "person(s)", "passenger", "deliver")),
]

_BASE_PRICES: Dict[ServiceClassification, float] = {
    ServiceClassification.ride_delivery: 8.0,
    ServiceClassification.cleaning: 40.0,
    ServiceClassification.plumbing: 75.0,
    ServiceClassification.electrical: 80.0,
    ServiceClassification.furniture_assembly: 50.0,
    ServiceClassification.appliance_repair: 70.0,
    ServiceClassification.landscaping: 45.0,
}

_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def _distance_km(a: Coordinate, b: Coordinate) -> float:
    # equirectangular approximation, good enough for a price hint
    x = math.radians(b.lng - a.lng) * math.cos(math.radians((a.lat + b.lat) / 2))
    y = math.radians(b.lat - a.lat)
    return 6371.0 * math.hypot(x, y)


class MockAnalysisGateway:
    """
    A deterministic gateway that simulates the AI analysis. It classifies by
    keyword, trims the text into a short summary and prices rides by the
    straight-line distance between origin and destination.
    """

    async def analyze(self, context: AnalysisContext) -> AnalysisResult:
        text = context.text.lower()
        classification = self._classify(text)
        summary = self._summarize(context.text)
        entities: Dict[str, object] = {"analyzed_by": "mock"}
        distance: Optional[float] = None
        if context.destination_location is not None:
            distance = _distance_km(context.origin_location, context.destination_location)
            entities["distance_km"] = round(distance, 2)
        price = self._price(classification, distance)
        logger.debug("Mock analysis classified request as %s", classification.value)
        return AnalysisResult(
            classification=classification,
            summary=summary,
            entities=entities,
            price_estimate=price,
        )

    @staticmethod
    def _classify(text: str) -> ServiceClassification:
        for classification, words in _KEYWORDS:
            if any(word in text for word in words):
                return classification
        return ServiceClassification.unknown

    @staticmethod
    def _summarize(text: str, max_words: int = 50) -> str:
        sentences = [s for s in _SENTENCE_RE.split(text.strip()) if s]
        # drop the journey preamble, keep the action specifics
        body = " ".join(sentences[1:]) if len(sentences) > 1 else text.strip()
        words = body.split()
        if len(words) > max_words:
            return " ".join(words[:max_words]) + "..."
        return body

    @staticmethod
    def _price(classification: ServiceClassification, distance: Optional[float]) -> Optional[float]:
        base = _BASE_PRICES.get(classification)
        if base is None:
            return None
        if classification is ServiceClassification.ride_delivery and distance is not None:
            return round(base + 1.5 * distance, 2)
        return base
