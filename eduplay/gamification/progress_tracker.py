"""
Activity Progress Tracker

Records attempts on a learning activity and derives:
- accuracy and score percentage
- star rating (0 errors = 3 stars, 1-2 errors = 2 stars, otherwise 1 star)
- whether the child needed extra help (latched once true)
- crown challenge eligibility
- whether additional support should be offered

Completion is one-way: once a record is completed it never reverts.
"""

from typing import Optional
import logging

from eduplay.models.audit import AuditFields
from eduplay.models.progress import ActivityProgressRecord, DifficultyLevel, PerformanceSummary
from eduplay.utils.datetime_helpers import Clock, now_utc

logger = logging.getLogger(__name__)

# Thresholds
CROWN_CHALLENGE_MIN_ACCURACY = 90.0
SUPPORT_MAX_ACCURACY = 60.0
EXTRA_HELP_MAX_ATTEMPTS = 2
SUPPORT_MAX_ATTEMPTS = 3


def calculate_star_rating(total_questions: int, correct_answers: int) -> int:
    """
    Star rating for a completed activity

    Args:
        total_questions: Questions in the activity
        correct_answers: Best correct-answer count

    Returns:
        3 with no errors, 2 with one or two errors, 1 otherwise
    """
    errors = total_questions - correct_answers
    if errors <= 0:
        return 3
    if errors <= 2:
        return 2
    return 1


def get_accuracy(record: ActivityProgressRecord) -> float:
    """Correct answers as a percentage of total questions (0 when there are none)"""
    if record.total_questions == 0:
        return 0.0
    return round(record.correct_answers / record.total_questions * 100, 1)


def get_score_percentage(record: ActivityProgressRecord) -> float:
    if record.max_possible_score == 0:
        return 0.0
    return round(record.total_score / record.max_possible_score * 100, 1)


def crown_challenge_eligible(record: ActivityProgressRecord) -> bool:
    """Completed with 3 stars, at least 90% accuracy, no hints, no extra help"""
    return (
        record.is_completed
        and record.stars_earned >= 3
        and get_accuracy(record) >= CROWN_CHALLENGE_MIN_ACCURACY
        and record.hints_used == 0
        and not record.needed_extra_help
    )


def needs_additional_support(record: ActivityProgressRecord) -> bool:
    """Weak signal that the child is struggling with this activity"""
    return (
        record.attempt_count > SUPPORT_MAX_ATTEMPTS
        or record.hints_used > record.total_questions
        or (record.is_completed and get_accuracy(record) < SUPPORT_MAX_ACCURACY)
        or record.needed_extra_help
    )


class ProgressTracker:
    """
    Mutates ActivityProgressRecords as attempts come in.

    The tracker never loads or saves records; the caller persists the record
    after each call.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or now_utc

    def start_progress(
        self,
        child_id: str,
        activity_id: str,
        total_questions: int,
        difficulty_level: DifficultyLevel = DifficultyLevel.EASY,
        is_crown_challenge: bool = False
    ) -> ActivityProgressRecord:
        """New record for a (child, activity) pair, before the first attempt"""
        now = self.clock()
        return ActivityProgressRecord(
            child_id=child_id,
            activity_id=activity_id,
            total_questions=total_questions,
            difficulty_level=difficulty_level,
            is_crown_challenge=is_crown_challenge,
            audit=AuditFields.at(now),
        )

    def record_attempt(
        self,
        record: ActivityProgressRecord,
        questions_answered: int,
        correct_in_attempt: int,
        time_spent_seconds: int,
        hints_used: int = 0
    ) -> ActivityProgressRecord:
        """
        Fold one attempt into the record

        Time and hints accumulate; the correct-answer count keeps the best
        attempt. Completion is detected when every question was answered.

        Args:
            record: Progress record to update
            questions_answered: Questions answered in this attempt
            correct_in_attempt: Correct answers in this attempt
            time_spent_seconds: Time spent in this attempt
            hints_used: Hints used in this attempt

        Returns:
            The same record, updated
        """
        now = self.clock()
        was_completed = record.is_completed

        record.attempt_count += 1
        record.last_attempt_at = now
        if record.first_attempt_at is None:
            record.first_attempt_at = now

        record.time_spent_seconds += time_spent_seconds
        record.hints_used += hints_used
        record.correct_answers = max(record.correct_answers, correct_in_attempt)

        if questions_answered >= record.total_questions and not record.is_completed:
            record.is_completed = True
            record.completed_at = now

        # Stars follow the best attempt; correct_answers never decreases so
        # neither do stars
        if record.is_completed:
            record.stars_earned = calculate_star_rating(record.total_questions, record.correct_answers)

        if record.hints_used * 2 > record.total_questions or record.attempt_count > EXTRA_HELP_MAX_ATTEMPTS:
            record.needed_extra_help = True

        self._mark_changed(record)

        if record.is_completed and not was_completed:
            logger.info(
                f"Child {record.child_id} completed activity {record.activity_id} "
                f"with {record.stars_earned} stars after {record.attempt_count} attempt(s)"
            )
        else:
            logger.debug(
                f"Child {record.child_id} attempt {record.attempt_count} on activity "
                f"{record.activity_id}: {correct_in_attempt}/{questions_answered} correct"
            )
        return record

    def complete_activity(self, record: ActivityProgressRecord, final_score: int, max_score: int) -> ActivityProgressRecord:
        """Record the final score of an activity and mark it completed"""
        now = self.clock()
        if not record.is_completed:
            record.is_completed = True
            record.completed_at = now
        record.total_score = final_score
        record.max_possible_score = max_score
        record.stars_earned = calculate_star_rating(record.total_questions, record.correct_answers)
        self._mark_changed(record)
        return record

    def get_performance_summary(self, record: ActivityProgressRecord) -> PerformanceSummary:
        return PerformanceSummary(
            child_id=record.child_id,
            activity_id=record.activity_id,
            is_completed=record.is_completed,
            stars_earned=record.stars_earned,
            accuracy=get_accuracy(record),
            score_percentage=get_score_percentage(record),
            time_spent_seconds=record.time_spent_seconds,
            attempts=record.attempt_count,
            hints_used=record.hints_used,
            needed_extra_help=record.needed_extra_help,
            completed_at=record.completed_at,
            crown_challenge_eligible=crown_challenge_eligible(record),
            needs_additional_support=needs_additional_support(record),
        )

    def _mark_changed(self, record: ActivityProgressRecord) -> None:
        record.audit.touch(self.clock())
        record.needs_sync = True
