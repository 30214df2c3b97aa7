"""
In-memory record store

Keeps copies of saved records so callers can't mutate stored state without
going through save_*(). Suitable for tests and single-process local use.
"""

import logging
from typing import Dict, List, Optional, Tuple

from eduplay.models.achievement import ChildAchievementState
from eduplay.models.progress import ActivityProgressRecord
from eduplay.models.subscription import SubscriptionRecord

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """Dictionary-backed RecordStore"""

    def __init__(self):
        self._subscriptions: Dict[str, SubscriptionRecord] = {}
        self._progress: Dict[Tuple[str, str], ActivityProgressRecord] = {}
        self._achievement_states: Dict[Tuple[str, str], ChildAchievementState] = {}

    # Subscriptions (one non-deleted record per account)

    def get_subscription(self, account_id: str) -> Optional[SubscriptionRecord]:
        record = self._subscriptions.get(account_id)
        if record is None or record.is_deleted:
            return None
        return record.model_copy(deep=True)

    def save_subscription(self, record: SubscriptionRecord) -> None:
        self._subscriptions[record.account_id] = record.model_copy(deep=True)
        logger.debug(f"Saved subscription for account {record.account_id}")

    # Activity progress, unique by (child_id, activity_id)

    def get_progress(self, child_id: str, activity_id: str) -> Optional[ActivityProgressRecord]:
        record = self._progress.get((child_id, activity_id))
        return record.model_copy(deep=True) if record else None

    def save_progress(self, record: ActivityProgressRecord) -> None:
        self._progress[(record.child_id, record.activity_id)] = record.model_copy(deep=True)
        logger.debug(f"Saved progress {record.child_id}/{record.activity_id}")

    def list_progress(self, child_id: str) -> List[ActivityProgressRecord]:
        return [
            record.model_copy(deep=True)
            for (owner, _), record in self._progress.items()
            if owner == child_id
        ]

    # Achievement states, unique by (child_id, achievement_id)

    def get_achievement_state(self, child_id: str, achievement_id: str) -> Optional[ChildAchievementState]:
        state = self._achievement_states.get((child_id, achievement_id))
        return state.model_copy(deep=True) if state else None

    def save_achievement_state(self, state: ChildAchievementState) -> None:
        self._achievement_states[(state.child_id, state.achievement_id)] = state.model_copy(deep=True)
        logger.debug(f"Saved achievement state {state.child_id}/{state.achievement_id}")

    def list_achievement_states(self, child_id: str) -> List[ChildAchievementState]:
        return [
            state.model_copy(deep=True)
            for (owner, _), state in self._achievement_states.items()
            if owner == child_id
        ]
