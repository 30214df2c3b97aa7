"""
Learning Streak Tracking

Maintains a child's consecutive-days learning streak, which feeds the
StreakKeeper achievements through the progress snapshot.

Logic:
- First activity ever: streak starts at 1
- Same calendar day (UTC): no change
- Next calendar day: streak + 1
- Gap of more than one day: streak resets to 1
"""

from datetime import datetime
from typing import Any, Dict, Optional
import logging

from eduplay.models.child import ChildProfile
from eduplay.utils.datetime_helpers import to_utc

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (3, 7, 14, 30, 100)


def update_learning_streak(child: ChildProfile, activity_at: datetime) -> Dict[str, Any]:
    """
    Update the child's learning streak for an activity

    Args:
        child: Child profile, updated in place
        activity_at: When the activity happened

    Returns:
        {
            'current_streak': int,
            'old_streak': int,
            'milestone_reached': Optional[int],
            'message': str
        }
    """
    activity_at = to_utc(activity_at)
    old_streak = child.learning_streak
    last: Optional[datetime] = to_utc(child.last_activity_at) if child.last_activity_at else None

    if last is None:
        child.learning_streak = 1
        message = "Streak started! Day 1"
    else:
        gap_days = (activity_at.date() - last.date()).days
        if gap_days <= 0:
            message = f"Streak continues! Day {child.learning_streak}"
        elif gap_days == 1:
            child.learning_streak += 1
            message = f"Streak continues! Day {child.learning_streak}"
        else:
            child.learning_streak = 1
            message = f"Streak reset. Previous: {old_streak} days. Starting fresh! Day 1"
            logger.info(
                f"Child {child.child_id} streak broken. "
                f"Was {old_streak}, gap was {gap_days} days"
            )

    if last is None or activity_at > last:
        child.last_activity_at = activity_at

    milestone_reached = None
    if child.learning_streak != old_streak and child.learning_streak in STREAK_MILESTONES:
        milestone_reached = child.learning_streak
        message += f"\n{milestone_reached}-day milestone reached!"

    logger.debug(
        f"Updated learning streak for child {child.child_id}: "
        f"{old_streak} -> {child.learning_streak} days"
    )

    return {
        "current_streak": child.learning_streak,
        "old_streak": old_streak,
        "milestone_reached": milestone_reached,
        "message": message,
    }
