"""Achievement models for gamification"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from eduplay.exceptions import CriteriaError
from eduplay.models.audit import AuditFields
from eduplay.models.criteria import Criteria, parse_criteria


class AchievementCategory(str, Enum):
    """Achievement categories"""
    SUBJECT = "Subject"
    PROGRESS = "Progress"
    STREAK = "Streak"
    CROWN = "Crown"
    SPECIAL = "Special"
    MILESTONE = "Milestone"


class AchievementType(str, Enum):
    """Selects the criteria evaluator"""
    SUBJECT_MASTER = "SubjectMaster"
    STAR_COLLECTOR = "StarCollector"
    STREAK_KEEPER = "StreakKeeper"
    CROWN_CHAMPION = "CrownChampion"
    FIRST_STEP = "FirstStep"
    SPEED_LEARNER = "SpeedLearner"


class AchievementRarity(str, Enum):
    """Achievement rarity tiers"""
    COMMON = "Common"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


RARITY_MULTIPLIERS: dict[AchievementRarity, float] = {
    AchievementRarity.COMMON: 1.0,
    AchievementRarity.RARE: 1.5,
    AchievementRarity.EPIC: 2.0,
    AchievementRarity.LEGENDARY: 3.0,
}


class AchievementDefinition(BaseModel):
    """
    Static catalog entry supplied by the content collaborator

    The criteria payload is parsed once when the definition is built. A
    payload that fails to parse is logged and leaves parsed_criteria as None,
    which every evaluator treats as "not satisfied".
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    category: AchievementCategory
    achievement_type: AchievementType
    criteria: Optional[Union[str, dict[str, Any]]] = None
    rarity: AchievementRarity = AchievementRarity.COMMON
    points: int = Field(default=0, ge=0, le=1000)
    min_age: int = Field(default=3, ge=3, le=8)
    max_age: int = Field(default=8, ge=3, le=8)
    subject_id: Optional[str] = None
    is_active: bool = True
    is_hidden: bool = False
    is_crown_challenge: bool = False
    is_repeatable: bool = False
    display_order: int = 0
    badge_icon: Optional[str] = None
    badge_color: Optional[str] = None
    celebration_message: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    _parsed_criteria: Optional[Criteria] = PrivateAttr(default=None)
    _criteria_error: Optional[CriteriaError] = PrivateAttr(default=None)

    @model_validator(mode="after")
    def check_age_window(self) -> "AchievementDefinition":
        if self.min_age > self.max_age:
            raise ValueError(f"min_age ({self.min_age}) must not exceed max_age ({self.max_age})")
        return self

    def model_post_init(self, __context: Any) -> None:
        try:
            self._parsed_criteria = parse_criteria(self.achievement_type.value, self.criteria, self.id)
        except CriteriaError as e:
            self._criteria_error = e

    @property
    def parsed_criteria(self) -> Optional[Criteria]:
        return self._parsed_criteria

    @property
    def criteria_error(self) -> Optional[CriteriaError]:
        return self._criteria_error

    @property
    def rarity_multiplier(self) -> float:
        return RARITY_MULTIPLIERS.get(self.rarity, 1.0)

    def is_age_appropriate(self, child_age: int) -> bool:
        return self.min_age <= child_age <= self.max_age

    def is_available_for_child(self, child_age: int, is_advanced: bool) -> bool:
        """Active, age-appropriate, and (for crown challenges) only for advanced children"""
        if not self.is_active or not self.is_age_appropriate(child_age):
            return False
        if self.is_crown_challenge and not is_advanced:
            return False
        return True


class ChildAchievementState(BaseModel):
    """A child's progress toward (and history with) one achievement"""
    model_config = ConfigDict(validate_assignment=True)

    child_id: str
    achievement_id: str
    current_progress: int = Field(default=0, ge=0)
    target_progress: int = Field(default=0, ge=0)
    progress_percentage: int = Field(default=0, ge=0, le=100)
    is_in_progress: bool = False
    is_earned: bool = False
    earned_at: Optional[datetime] = None
    earned_count: int = Field(default=0, ge=0)
    earned_context: Optional[dict[str, Any]] = None
    celebration_shown: bool = False
    emotional_reaction: Optional[str] = None  # Excited, Happy, Proud, Surprised, ...
    is_visible: bool = True
    points_earned: int = Field(default=0, ge=0)
    bonus_multiplier: float = Field(default=1.0, ge=0)
    progress_started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    needs_sync: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    audit: AuditFields = Field(default_factory=AuditFields)


class AchievementProgressSummary(BaseModel):
    """Read-only view of a ChildAchievementState for achievement galleries"""
    achievement_id: str
    name: str
    is_earned: bool
    progress_percentage: int
    current_progress: int
    target_progress: int
    is_in_progress: bool
    should_be_visible: bool
    should_show_celebration: bool
    earned_at: Optional[datetime] = None
    points_earned: int
    earned_count: int
    is_expiring_soon: bool
    expires_at: Optional[datetime] = None
    emotional_reaction: Optional[str] = None


class SubjectProgress(BaseModel):
    """Per-subject aggregate assembled by the reporting collaborator"""
    subject_id: str
    activities_total: int = Field(default=0, ge=0)
    activities_completed: int = Field(default=0, ge=0)
    # Fewest stars on any completed activity of the subject; None before the first
    lowest_stars: Optional[int] = Field(default=None, ge=0, le=3)

    def completed_with_min_stars(self, min_stars: int) -> bool:
        """Every activity of the subject completed with at least min_stars"""
        if self.activities_total <= 0 or self.activities_completed < self.activities_total:
            return False
        return self.lowest_stars is not None and self.lowest_stars >= min_stars


class ProgressSnapshot(BaseModel):
    """
    Aggregates for one child, assembled by the caller

    None means the aggregate was not supplied; evaluators that need it
    report "not satisfied".
    """
    child_id: Optional[str] = None
    total_stars: Optional[int] = Field(default=None, ge=0)
    learning_streak: Optional[int] = Field(default=None, ge=0)
    crown_challenges_completed: Optional[int] = Field(default=None, ge=0)
    activities_completed: Optional[int] = Field(default=None, ge=0)
    average_completion_time: Optional[float] = Field(default=None, ge=0)
    subject_progress: dict[str, SubjectProgress] = Field(default_factory=dict)
