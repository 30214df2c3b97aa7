"""Activity progress models"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from eduplay.models.audit import AuditFields


class DifficultyLevel(str, Enum):
    """Difficulty in effect while the activity was played"""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class ActivityProgressRecord(BaseModel):
    """
    Progress of one child on one activity

    Unique by (child_id, activity_id). stars_earned is only meaningful once
    is_completed is true and is always produced by the star rating function.
    """
    model_config = ConfigDict(validate_assignment=True)

    child_id: str
    activity_id: str
    is_completed: bool = False
    stars_earned: int = Field(default=0, ge=0, le=3)
    total_score: int = Field(default=0, ge=0)
    max_possible_score: int = Field(default=0, ge=0)
    attempt_count: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    total_questions: int = Field(default=0, ge=0)
    time_spent_seconds: int = Field(default=0, ge=0)
    hints_used: int = Field(default=0, ge=0)
    needed_extra_help: bool = False
    first_attempt_at: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    difficulty_level: DifficultyLevel = DifficultyLevel.EASY
    is_crown_challenge: bool = False
    needs_sync: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    audit: AuditFields = Field(default_factory=AuditFields)


class PerformanceSummary(BaseModel):
    """Read-only view of a progress record"""
    child_id: str
    activity_id: str
    is_completed: bool
    stars_earned: int
    accuracy: float
    score_percentage: float
    time_spent_seconds: int
    attempts: int
    hints_used: int
    needed_extra_help: bool
    completed_at: Optional[datetime] = None
    crown_challenge_eligible: bool
    needs_additional_support: bool
