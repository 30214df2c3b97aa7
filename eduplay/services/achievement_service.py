"""
AchievementService - Achievement Business Logic

Loads a child's achievement states, runs the catalog against a progress
snapshot and persists whatever changed.
"""

import logging
from typing import Dict, List, Optional, Sequence

from eduplay.exceptions import RecordNotFoundError
from eduplay.gamification.achievement_system import AchievementEngine
from eduplay.models.achievement import (
    AchievementDefinition,
    AchievementProgressSummary,
    ChildAchievementState,
    ProgressSnapshot,
)
from eduplay.models.child import ChildProfile
from eduplay.storage.base import RecordStore

logger = logging.getLogger(__name__)


class AchievementService:
    """
    Service for achievements.

    Responsibilities:
    - Evaluating the catalog for a child and saving new or changed states
    - Listing the achievements a child should see
    - Celebration queue and acknowledgment
    """

    def __init__(self, store: RecordStore, engine: AchievementEngine, catalog: Sequence[AchievementDefinition]):
        self.store = store
        self.engine = engine
        self.catalog = list(catalog)
        self._by_id = {definition.id: definition for definition in self.catalog}
        logger.debug(f"AchievementService initialized with {len(self.catalog)} definitions")

    def get_definition(self, achievement_id: str) -> Optional[AchievementDefinition]:
        return self._by_id.get(achievement_id)

    def evaluate(
        self,
        child: ChildProfile,
        snapshot: ProgressSnapshot,
        crown_challenges_available: bool = False
    ) -> List[ChildAchievementState]:
        """
        Evaluate every catalog entry for a child and persist the results

        Args:
            child: Child profile
            snapshot: Aggregates from the reporting service
            crown_challenges_available: Whether the account has premium access

        Returns:
            States earned during this evaluation
        """
        states = self._load_states(child.child_id)
        before = {achievement_id: state.model_copy(deep=True) for achievement_id, state in states.items()}

        newly_earned = self.engine.evaluate_child(
            child,
            self.catalog,
            states,
            snapshot,
            crown_challenges_available=crown_challenges_available,
        )

        saved = 0
        for achievement_id, state in states.items():
            if before.get(achievement_id) != state:
                self.store.save_achievement_state(state)
                saved += 1

        logger.debug(f"Saved {saved} achievement state(s) for child {child.child_id}")
        return newly_earned

    def get_achievements(self, child: ChildProfile) -> List[AchievementProgressSummary]:
        """Summaries of the achievements the child should see, in catalog order"""
        states = self._load_states(child.child_id)
        summaries = []
        for definition in self.catalog:
            if not definition.is_available_for_child(child.age, child.is_advanced):
                continue
            state = states.get(definition.id) or self.engine.new_state(child.child_id, definition.id)
            summary = self.engine.get_progress_summary(state, definition, child.is_advanced)
            if summary.should_be_visible:
                summaries.append(summary)
        return summaries

    def pending_celebrations(self, child_id: str) -> List[ChildAchievementState]:
        return [
            state for state in self.store.list_achievement_states(child_id)
            if self.engine.should_show_celebration(state)
        ]

    def mark_celebration_shown(
        self,
        child_id: str,
        achievement_id: str,
        emotional_reaction: Optional[str] = None
    ) -> ChildAchievementState:
        state = self.store.get_achievement_state(child_id, achievement_id)
        if state is None:
            raise RecordNotFoundError(
                f"No achievement {achievement_id} for child {child_id}",
                record_type="ChildAchievement",
                record_id=f"{child_id}/{achievement_id}",
                child_id=child_id,
                operation="mark_celebration_shown"
            )
        self.engine.mark_celebration_shown(state, emotional_reaction)
        self.store.save_achievement_state(state)
        return state

    def reset_repeatable(self, child_id: str, achievement_id: str) -> bool:
        """Start a new earning cycle for a repeatable achievement"""
        definition = self.get_definition(achievement_id)
        state = self.store.get_achievement_state(child_id, achievement_id)
        if definition is None or state is None:
            return False
        if not self.engine.reset_progress(state, definition):
            return False
        self.store.save_achievement_state(state)
        return True

    def total_points(self, child_id: str) -> int:
        return sum(state.points_earned for state in self.store.list_achievement_states(child_id))

    def _load_states(self, child_id: str) -> Dict[str, ChildAchievementState]:
        return {state.achievement_id: state for state in self.store.list_achievement_states(child_id)}
