from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from journeyplan.models.domain import JourneyPlan, ServiceRequestDraft

logger = logging.getLogger(__name__)


@dataclass
class SubmittedRequest:
    request_id: str
    draft: ServiceRequestDraft
    submitted_at: datetime


class InMemoryRepository:
    def __init__(self) -> None:
        self.plans: Dict[str, JourneyPlan] = {}
        self.requests: Dict[str, SubmittedRequest] = {}

    def save_plan(self, plan: JourneyPlan) -> JourneyPlan:
        self.plans[plan.id] = plan
        return plan

    def get_plan(self, plan_id: str) -> Optional[JourneyPlan]:
        return self.plans.get(plan_id)

    def submit(self, drafts: List[ServiceRequestDraft]) -> None:
        """Request sink: store every draft as a submitted request with its own id."""
        for draft in drafts:
            record = SubmittedRequest(
                request_id=f"req-{uuid4()}",
                draft=draft,
                submitted_at=datetime.now(timezone.utc),
            )
            self.requests[record.request_id] = record
            logger.debug(
                "Submitted request %s for action %s", record.request_id, draft.source_action_id
            )

    def list_requests_for_journey(self, plan_id: str) -> List[SubmittedRequest]:
        return [r for r in self.requests.values() if r.draft.source_journey_id == plan_id]
