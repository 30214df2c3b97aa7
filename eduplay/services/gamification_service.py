"""
GamificationService - Learning Flow Orchestration

Runs the full pipeline for an activity attempt:
progress record -> stars -> learning streak -> snapshot -> achievements.

The engines stay independent of each other; this service is the only
place where their results are combined.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from eduplay.models.child import ChildProfile
from eduplay.models.progress import DifficultyLevel
from eduplay.gamification.streak_system import update_learning_streak
from eduplay.services.achievement_service import AchievementService
from eduplay.services.entitlement_service import EntitlementService
from eduplay.services.progress_service import ProgressService
from eduplay.services.reporting_service import ReportingService

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for the child-facing learning loop.

    Responsibilities:
    - Recording attempts and star ratings
    - Learning streak updates on completion
    - Achievement evaluation with premium-gated crown challenges
    - Building the child-facing result message
    """

    def __init__(
        self,
        progress_service: ProgressService,
        achievement_service: AchievementService,
        entitlement_service: EntitlementService,
        reporting_service: ReportingService
    ):
        """
        Initialize GamificationService.

        Args:
            progress_service: Activity progress
            achievement_service: Achievement evaluation and celebrations
            entitlement_service: Premium checks
            reporting_service: Snapshot aggregation
        """
        self.progress = progress_service
        self.achievements = achievement_service
        self.entitlements = entitlement_service
        self.reporting = reporting_service
        logger.debug("GamificationService initialized")

    def process_activity_attempt(
        self,
        child: ChildProfile,
        activity_id: str,
        total_questions: int,
        questions_answered: int,
        correct_in_attempt: int,
        time_spent_seconds: int,
        hints_used: int = 0,
        difficulty_level: DifficultyLevel = DifficultyLevel.EASY,
        is_crown_challenge: bool = False,
        activity_subjects: Optional[Mapping[str, str]] = None,
        subject_activity_counts: Optional[Mapping[str, int]] = None
    ) -> Dict[str, Any]:
        """
        Process gamification for one activity attempt.

        The child profile is updated in place (streak, stars, last activity);
        the caller owns persisting it.

        Args:
            child: Child playing the activity
            activity_id: Activity identifier
            total_questions: Questions in the activity
            questions_answered: Questions answered in this attempt
            correct_in_attempt: Correct answers in this attempt
            time_spent_seconds: Seconds spent in this attempt
            hints_used: Hints used in this attempt
            difficulty_level: Difficulty in effect
            is_crown_challenge: Whether the activity is a crown challenge
            activity_subjects: activity_id -> subject_id, for subject achievements
            subject_activity_counts: subject_id -> activity count, for subject achievements

        Returns:
            {
                'completed': bool,
                'newly_completed': bool,
                'stars_earned': int,
                'needed_extra_help': bool,
                'current_streak': int,
                'milestone_reached': Optional[int],
                'achievements_unlocked': list,   # [{'id', 'name', 'points'}]
                'points_awarded': int,
                'message': str                   # Child-facing message
            }
        """
        try:
            result = self._empty_result()

            previous = self.progress.find_progress(child.child_id, activity_id)
            was_completed = previous.is_completed if previous else False
            previous_stars = previous.stars_earned if was_completed else 0

            record = self.progress.record_attempt(
                child_id=child.child_id,
                activity_id=activity_id,
                total_questions=total_questions,
                questions_answered=questions_answered,
                correct_in_attempt=correct_in_attempt,
                time_spent_seconds=time_spent_seconds,
                hints_used=hints_used,
                difficulty_level=difficulty_level,
                is_crown_challenge=is_crown_challenge,
            )

            result['completed'] = record.is_completed
            result['newly_completed'] = record.is_completed and not was_completed
            result['stars_earned'] = record.stars_earned
            result['needed_extra_help'] = record.needed_extra_help
            result['current_streak'] = child.learning_streak

            if not record.is_completed:
                result['message'] = "Keep going! You're doing great."
                return result

            child.total_stars_earned += record.stars_earned - previous_stars
            if record.needed_extra_help:
                child.needs_extra_help = True

            streak_result = update_learning_streak(child, record.completed_at or record.last_attempt_at)
            result['current_streak'] = streak_result['current_streak']
            result['milestone_reached'] = streak_result['milestone_reached']

            snapshot = self.reporting.build_snapshot(child, activity_subjects, subject_activity_counts)
            crown_available = self._crown_challenges_available(child.account_id)
            newly_earned = self.achievements.evaluate(child, snapshot, crown_challenges_available=crown_available)

            for state in newly_earned:
                definition = self.achievements.get_definition(state.achievement_id)
                result['achievements_unlocked'].append({
                    'id': state.achievement_id,
                    'name': definition.name if definition else state.achievement_id,
                    'points': state.points_earned,
                })
                result['points_awarded'] += state.points_earned

            result['message'] = self._build_message(result, streak_result['message'])
            return result

        except Exception as e:
            logger.error(
                f"Error processing activity {activity_id} for child {child.child_id}: {e}",
                exc_info=True
            )
            raise

    def _crown_challenges_available(self, account_id: str) -> bool:
        if self.entitlements.find_subscription(account_id) is None:
            logger.debug(f"No subscription for account {account_id}; crown challenges unavailable")
            return False
        return self.entitlements.crown_challenges_available(account_id)

    def _build_message(self, result: Dict[str, Any], streak_message: str) -> str:
        stars = result['stars_earned']
        lines = [f"Activity complete! {'⭐' * stars}" if stars else "Activity complete!"]
        lines.append(streak_message)
        for unlocked in result['achievements_unlocked']:
            lines.append(f"🏆 New badge: {unlocked['name']} (+{unlocked['points']} points)")
        return "\n".join(lines)

    def _empty_result(self) -> Dict[str, Any]:
        return {
            'completed': False,
            'newly_completed': False,
            'stars_earned': 0,
            'needed_extra_help': False,
            'current_streak': 0,
            'milestone_reached': None,
            'achievements_unlocked': [],
            'points_awarded': 0,
            'message': ''
        }
