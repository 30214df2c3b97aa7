"""
Achievement System

Evaluates a child's aggregated learning data against the achievement
catalog and manages per-child achievement state:
- Progress tracking for locked achievements
- Earning (with rarity and bonus multipliers on points)
- Visibility of hidden and crown-challenge achievements
- One-shot celebration acknowledgment

The engine reads caller-supplied snapshots only; it never aggregates
progress records itself and never holds references to other engines.
"""

from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Union
import logging
import math

from eduplay import config
from eduplay.gamification.criteria import evaluate_criteria, measure_progress
from eduplay.models.achievement import (
    AchievementDefinition,
    AchievementProgressSummary,
    ChildAchievementState,
    ProgressSnapshot,
)
from eduplay.models.audit import AuditFields
from eduplay.models.child import ChildProfile
from eduplay.utils.datetime_helpers import Clock, now_utc

logger = logging.getLogger(__name__)


def load_catalog(
    entries: Iterable[Union[Dict[str, Any], AchievementDefinition]],
    strict: bool = False
) -> List[AchievementDefinition]:
    """
    Build the achievement catalog from content data

    Args:
        entries: Raw definition mappings (or ready definitions)
        strict: Raise on the first definition with malformed criteria

    Returns:
        Definitions sorted by display order. With strict=False, definitions
        with malformed criteria are kept (they can never be earned) and the
        problem is logged.

    Raises:
        CriteriaError: strict=True and a criteria payload failed to parse
    """
    catalog = []
    for entry in entries:
        definition = entry if isinstance(entry, AchievementDefinition) else AchievementDefinition.model_validate(entry)
        if definition.criteria_error is not None:
            if strict:
                raise definition.criteria_error
            logger.warning(
                f"Achievement {definition.id} loaded with unusable criteria: "
                f"{definition.criteria_error.message}"
            )
        catalog.append(definition)

    catalog.sort(key=lambda d: d.display_order)
    logger.info(f"Loaded {len(catalog)} achievement definitions")
    return catalog


def calculate_progress_percentage(current: int, target: int) -> int:
    """min(100, round(current / target * 100)); 0 when target is 0"""
    if target <= 0:
        return 0
    return min(100, round(current / target * 100))


def _cap_unsatisfied(current: int, target: int) -> int:
    """Largest progress value whose percentage stays below 100"""
    capped = min(current, max(target - 1, 0))
    while capped > 0 and calculate_progress_percentage(capped, target) >= 100:
        capped -= 1
    return capped


class AchievementEngine:
    """
    Per-child achievement state management.

    All methods mutate the state passed in; the caller persists it.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or now_utc

    def new_state(self, child_id: str, achievement_id: str) -> ChildAchievementState:
        now = self.clock()
        return ChildAchievementState(
            child_id=child_id,
            achievement_id=achievement_id,
            audit=AuditFields.at(now),
        )

    # ============================================
    # Progress & earning
    # ============================================

    def evaluate_criteria(self, definition: AchievementDefinition, snapshot: ProgressSnapshot) -> bool:
        return evaluate_criteria(definition, snapshot)

    def update_progress(
        self,
        state: ChildAchievementState,
        definition: AchievementDefinition,
        new_progress: int,
        target: int
    ) -> ChildAchievementState:
        """
        Record progress toward an achievement, earning it at 100%

        Args:
            state: Child's state for this achievement
            definition: Catalog entry (needed for points and repeatability)
            new_progress: Current raw progress (stars, streak days, ...)
            target: Value required to earn
        """
        now = self.clock()
        state.current_progress = new_progress
        state.target_progress = target
        if target > 0:
            state.progress_percentage = calculate_progress_percentage(new_progress, target)

        state.is_in_progress = state.progress_percentage > 0 and not state.is_earned

        if state.progress_started_at is None and new_progress > 0:
            state.progress_started_at = now

        if state.progress_percentage >= 100 and not state.is_earned:
            self.earn_achievement(state, definition)

        self._mark_changed(state)
        return state

    def earn_achievement(
        self,
        state: ChildAchievementState,
        definition: AchievementDefinition,
        bonus_multiplier: float = 1.0,
        context: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Mark the achievement earned and queue its celebration

        Returns:
            False when already earned and the achievement is not repeatable
        """
        if state.is_earned and not definition.is_repeatable:
            return False

        state.is_earned = True
        state.earned_at = self.clock()
        state.earned_count += 1
        state.bonus_multiplier = bonus_multiplier
        state.earned_context = context
        state.celebration_shown = False
        state.is_in_progress = False
        state.progress_percentage = 100
        state.points_earned = int(definition.points * bonus_multiplier * definition.rarity_multiplier)
        self._mark_changed(state)

        logger.info(
            f"Child {state.child_id} earned achievement {definition.id} "
            f"({definition.name}) +{state.points_earned} points "
            f"(x{state.earned_count})"
        )
        return True

    def reset_progress(self, state: ChildAchievementState, definition: AchievementDefinition) -> bool:
        """
        Start a new earning cycle for a repeatable achievement

        Earned count and points from earlier cycles are kept.
        """
        if not definition.is_repeatable:
            return False

        state.current_progress = 0
        state.progress_percentage = 0
        state.is_in_progress = False
        state.is_earned = False
        state.progress_started_at = None
        self._mark_changed(state)
        logger.debug(f"Reset progress of repeatable achievement {definition.id} for child {state.child_id}")
        return True

    def evaluate_child(
        self,
        child: ChildProfile,
        definitions: Iterable[AchievementDefinition],
        states: Dict[str, ChildAchievementState],
        snapshot: ProgressSnapshot,
        crown_challenges_available: bool = False
    ) -> List[ChildAchievementState]:
        """
        Run the catalog against a child's snapshot

        States are created lazily (only once progress is observed) and added
        to the states mapping, keyed by achievement id.

        Args:
            child: Child profile (age and advanced flag)
            definitions: Achievement catalog
            states: Existing states for this child, updated in place
            snapshot: Aggregates assembled by the reporting collaborator
            crown_challenges_available: Premium flag from the entitlement engine

        Returns:
            States earned during this evaluation
        """
        newly_earned = []

        for definition in definitions:
            if not definition.is_available_for_child(child.age, child.is_advanced):
                continue
            if definition.is_crown_challenge and not crown_challenges_available:
                continue

            measured = measure_progress(definition, snapshot)
            if measured is None:
                continue
            current, target = measured
            satisfied = self.evaluate_criteria(definition, snapshot)

            state = states.get(definition.id)
            if state is None:
                if current <= 0 and not satisfied:
                    continue
                state = self.new_state(child.child_id, definition.id)
                states[definition.id] = state

            # Earned states keep their final progress until reset
            if not state.is_earned:
                if satisfied:
                    self.update_progress(state, definition, max(current, target), target)
                    if not state.is_earned:
                        self.earn_achievement(state, definition)
                else:
                    # Percentage rounding must not earn an unsatisfied achievement
                    self.update_progress(state, definition, _cap_unsatisfied(current, target), target)
                if state.is_earned:
                    newly_earned.append(state)

            state.is_visible = self.should_be_visible(state, definition, child.is_advanced)

        if newly_earned:
            logger.info(f"Child {child.child_id} earned {len(newly_earned)} achievement(s)")
        return newly_earned

    # ============================================
    # Presentation helpers
    # ============================================

    def should_be_visible(
        self,
        state: ChildAchievementState,
        definition: AchievementDefinition,
        is_advanced: bool
    ) -> bool:
        """
        Earned achievements are always shown, hidden ones only from 80%
        progress, and crown challenges only to advanced children.
        """
        if definition.is_crown_challenge and not is_advanced:
            return False
        if state.is_earned:
            return True
        if not definition.is_hidden:
            return True
        return state.progress_percentage >= config.HIDDEN_ACHIEVEMENT_REVEAL_PERCENT

    def should_show_celebration(self, state: ChildAchievementState) -> bool:
        return state.is_earned and not state.celebration_shown

    def mark_celebration_shown(self, state: ChildAchievementState, emotional_reaction: Optional[str] = None) -> None:
        """Acknowledge the celebration for the current earn event"""
        state.celebration_shown = True
        state.emotional_reaction = emotional_reaction
        self._mark_changed(state)

    def get_estimated_days_to_completion(
        self,
        state: ChildAchievementState,
        average_progress_per_day: float
    ) -> Optional[int]:
        if state.is_earned or average_progress_per_day <= 0 or state.target_progress <= 0:
            return None
        remaining = state.target_progress - state.current_progress
        if remaining <= 0:
            return 0
        return math.ceil(remaining / average_progress_per_day)

    def is_expiring_soon(self, state: ChildAchievementState, warning_days: Optional[int] = None) -> bool:
        if warning_days is None:
            warning_days = config.ACHIEVEMENT_EXPIRY_WARNING_DAYS
        if state.expires_at is None or state.is_earned:
            return False
        return self.clock() + timedelta(days=warning_days) >= state.expires_at

    def calculate_bonus_points(self, state: ChildAchievementState, speed_bonus: int = 0, streak_bonus: int = 0) -> int:
        """Points with percentage bonuses applied (10 = +10%)"""
        total_bonus = speed_bonus + streak_bonus
        return int(state.points_earned * (1 + total_bonus / 100.0))

    def get_progress_summary(
        self,
        state: ChildAchievementState,
        definition: AchievementDefinition,
        is_advanced: bool
    ) -> AchievementProgressSummary:
        return AchievementProgressSummary(
            achievement_id=definition.id,
            name=definition.name,
            is_earned=state.is_earned,
            progress_percentage=state.progress_percentage,
            current_progress=state.current_progress,
            target_progress=state.target_progress,
            is_in_progress=state.is_in_progress,
            should_be_visible=self.should_be_visible(state, definition, is_advanced),
            should_show_celebration=self.should_show_celebration(state),
            earned_at=state.earned_at if state.is_earned else None,
            points_earned=state.points_earned,
            earned_count=state.earned_count,
            is_expiring_soon=self.is_expiring_soon(state),
            expires_at=state.expires_at,
            emotional_reaction=state.emotional_reaction,
        )

    def _mark_changed(self, state: ChildAchievementState) -> None:
        state.audit.touch(self.clock())
        state.needs_sync = True
