"""Child profile model"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChildProfile(BaseModel):
    """
    The child fields read by the engines

    Profiles are owned by another part of the app; the engines only read them
    (the learning streak helper is the one writer in this package).
    """
    child_id: str
    account_id: str
    name: str = ""
    age: int = Field(ge=3, le=8)
    is_advanced: bool = False
    needs_extra_help: bool = False
    learning_streak: int = Field(default=0, ge=0)
    total_stars_earned: int = Field(default=0, ge=0)
    current_level: int = Field(default=1, ge=1)
    last_activity_at: Optional[datetime] = None

    @property
    def age_group(self) -> str:
        if self.age <= 4:
            return "PreK"
        if self.age == 5:
            return "Kindergarten"
        return "Primary"

    def should_receive_crown_challenges(self) -> bool:
        """Advanced learners with more than 50 stars from level 3 upwards"""
        return self.is_advanced and self.total_stars_earned > 50 and self.current_level >= 3

    def calculate_overall_progress(self, completed_activities: int, total_activities_for_age: int) -> float:
        """Percentage of the age-appropriate activities completed"""
        if total_activities_for_age == 0:
            return 0.0
        return round(completed_activities / total_activities_for_age * 100, 1)
