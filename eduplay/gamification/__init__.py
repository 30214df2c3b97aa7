"""
Gamification core for EduPlay

This package implements the learning-progress side of the app:
- Per-activity progress and star ratings
- Learning streaks
- Declarative achievement criteria
- Achievement progress, earning and celebrations
"""

from eduplay.gamification.progress_tracker import (
    ProgressTracker,
    calculate_star_rating,
    crown_challenge_eligible,
    needs_additional_support,
)
from eduplay.gamification.streak_system import update_learning_streak
from eduplay.gamification.criteria import evaluate_criteria, measure_progress
from eduplay.gamification.achievement_system import AchievementEngine, load_catalog

__all__ = [
    "ProgressTracker",
    "calculate_star_rating",
    "crown_challenge_eligible",
    "needs_additional_support",
    "update_learning_streak",
    "evaluate_criteria",
    "measure_progress",
    "AchievementEngine",
    "load_catalog",
]
