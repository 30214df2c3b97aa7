"""Persistence collaborator interface"""
from typing import List, Optional, Protocol, runtime_checkable

from eduplay.models.achievement import ChildAchievementState
from eduplay.models.progress import ActivityProgressRecord
from eduplay.models.subscription import SubscriptionRecord


@runtime_checkable
class RecordStore(Protocol):
    """
    Load-by-key and save for the records the core mutates

    Writes are last-writer-wins; the core performs one read-modify-write
    per call and saves after every mutation.
    """

    def get_subscription(self, account_id: str) -> Optional[SubscriptionRecord]:
        ...

    def save_subscription(self, record: SubscriptionRecord) -> None:
        ...

    def get_progress(self, child_id: str, activity_id: str) -> Optional[ActivityProgressRecord]:
        ...

    def save_progress(self, record: ActivityProgressRecord) -> None:
        ...

    def list_progress(self, child_id: str) -> List[ActivityProgressRecord]:
        ...

    def get_achievement_state(self, child_id: str, achievement_id: str) -> Optional[ChildAchievementState]:
        ...

    def save_achievement_state(self, state: ChildAchievementState) -> None:
        ...

    def list_achievement_states(self, child_id: str) -> List[ChildAchievementState]:
        ...
