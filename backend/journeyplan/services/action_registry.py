from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from journeyplan.models.domain import (
    ActionStatus,
    ActionType,
    JourneyAction,
    JourneyStop,
    build_details,
)

logger = logging.getLogger(__name__)


class ActionRegistry:
    def save(self, stop: JourneyStop, action: JourneyAction) -> JourneyAction:
        """Insert ``action`` or replace the one with the same id, keeping its position."""
        if action.details is not None and action.status is ActionStatus.pending:
            action.status = ActionStatus.configured
        for index, existing in enumerate(stop.actions):
            if existing.id == action.id:
                stop.actions[index] = action
                logger.debug("Updated %s action %s at %s", action.type.value, action.id, stop.name)
                return action
        stop.actions.append(action)
        logger.debug("Added %s action %s at %s", action.type.value, action.id, stop.name)
        return action

    def delete(self, stop: JourneyStop, action_id: str) -> bool:
        before = len(stop.actions)
        stop.actions = [a for a in stop.actions if a.id != action_id]
        return len(stop.actions) != before

    def configure(
        self,
        stop: JourneyStop,
        action_type: ActionType,
        details: Optional[Dict[str, Any]] = None,
        action_id: Optional[str] = None,
    ) -> JourneyAction:
        action_type = ActionType(action_type)
        existing = stop.find_action(action_id) if action_id else None
        action = JourneyAction(
            id=action_id or f"action-{uuid4()}",
            type=action_type,
            details=build_details(action_type, details),
            status=existing.status if existing else ActionStatus.pending,
            linked_request_id=existing.linked_request_id if existing else None,
        )
        return self.save(stop, action)
