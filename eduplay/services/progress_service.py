"""
ProgressService - Activity Progress Business Logic

Creates the (child, activity) progress record on the first attempt and
folds every later attempt into it through the ProgressTracker.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from eduplay.exceptions import RecordNotFoundError, ValidationError
from eduplay.gamification.progress_tracker import ProgressTracker
from eduplay.models.progress import ActivityProgressRecord, DifficultyLevel, PerformanceSummary
from eduplay.storage.base import RecordStore

logger = logging.getLogger(__name__)


class ProgressService:
    """Service for per-activity progress and star ratings"""

    def __init__(self, store: RecordStore, tracker: ProgressTracker):
        self.store = store
        self.tracker = tracker
        logger.debug("ProgressService initialized")

    def record_attempt(
        self,
        child_id: str,
        activity_id: str,
        total_questions: int,
        questions_answered: int,
        correct_in_attempt: int,
        time_spent_seconds: int,
        hints_used: int = 0,
        difficulty_level: DifficultyLevel = DifficultyLevel.EASY,
        is_crown_challenge: bool = False
    ) -> ActivityProgressRecord:
        """
        Record one attempt on an activity.

        Args:
            child_id: Child identifier
            activity_id: Activity identifier
            total_questions: Question count supplied by the content collaborator
            questions_answered: Questions answered in this attempt
            correct_in_attempt: Correct answers in this attempt
            time_spent_seconds: Seconds spent in this attempt
            hints_used: Hints used in this attempt
            difficulty_level: Difficulty in effect (used when the record is created)
            is_crown_challenge: Whether the activity is a crown challenge

        Returns:
            The saved progress record

        Raises:
            ValidationError: Negative counts or times in the attempt
        """
        record = self.store.get_progress(child_id, activity_id)
        try:
            if record is None:
                record = self.tracker.start_progress(
                    child_id,
                    activity_id,
                    total_questions,
                    difficulty_level=difficulty_level,
                    is_crown_challenge=is_crown_challenge,
                )

            self.tracker.record_attempt(
                record,
                questions_answered=questions_answered,
                correct_in_attempt=correct_in_attempt,
                time_spent_seconds=time_spent_seconds,
                hints_used=hints_used,
            )
        except PydanticValidationError as e:
            # Nothing is saved for a rejected attempt
            raise ValidationError.from_pydantic(e, child_id=child_id, operation="record_attempt")
        self.store.save_progress(record)
        return record

    def complete_activity(self, child_id: str, activity_id: str, final_score: int, max_score: int) -> ActivityProgressRecord:
        record = self.get_progress(child_id, activity_id)
        self.tracker.complete_activity(record, final_score, max_score)
        self.store.save_progress(record)
        return record

    def get_progress(self, child_id: str, activity_id: str) -> ActivityProgressRecord:
        record = self.store.get_progress(child_id, activity_id)
        if record is None:
            raise RecordNotFoundError(
                f"No progress for child {child_id} on activity {activity_id}",
                record_type="ActivityProgress",
                record_id=f"{child_id}/{activity_id}",
                child_id=child_id,
                operation="get_progress"
            )
        return record

    def find_progress(self, child_id: str, activity_id: str) -> Optional[ActivityProgressRecord]:
        return self.store.get_progress(child_id, activity_id)

    def get_performance_summary(self, child_id: str, activity_id: str) -> PerformanceSummary:
        return self.tracker.get_performance_summary(self.get_progress(child_id, activity_id))
