"""Unit tests for activity progress and star ratings (eduplay/gamification/progress_tracker.py)"""
import pytest
from datetime import timedelta

from eduplay.gamification.progress_tracker import (
    calculate_star_rating,
    crown_challenge_eligible,
    get_accuracy,
    get_score_percentage,
    needs_additional_support,
)
from eduplay.models.progress import DifficultyLevel


@pytest.fixture
def record(tracker):
    return tracker.start_progress("child-1", "counting-1", total_questions=10)


# ============================================================================
# Star Rating Tests
# ============================================================================

@pytest.mark.parametrize("total,correct,stars", [
    (10, 10, 3),
    (10, 9, 2),
    (10, 8, 2),
    (10, 7, 1),
    (10, 0, 1),
    (1, 1, 3),
    (0, 0, 3),
])
def test_calculate_star_rating(total, correct, stars):
    assert calculate_star_rating(total, correct) == stars


# ============================================================================
# Attempt Recording Tests
# ============================================================================

class TestRecordAttempt:
    """Folding attempts into a progress record"""

    def test_perfect_first_attempt(self, tracker, clock, record):
        tracker.record_attempt(record, questions_answered=10, correct_in_attempt=10, time_spent_seconds=120)

        assert record.is_completed is True
        assert record.stars_earned == 3
        assert record.attempt_count == 1
        assert record.completed_at == clock()
        assert record.first_attempt_at == clock()
        assert crown_challenge_eligible(record) is True
        assert needs_additional_support(record) is False

    def test_partial_attempt_does_not_complete(self, tracker, record):
        tracker.record_attempt(record, questions_answered=5, correct_in_attempt=5, time_spent_seconds=60)

        assert record.is_completed is False
        assert record.stars_earned == 0
        assert record.completed_at is None

    def test_time_and_hints_accumulate(self, tracker, record):
        tracker.record_attempt(record, 5, 4, time_spent_seconds=60, hints_used=1)
        tracker.record_attempt(record, 10, 9, time_spent_seconds=90, hints_used=2)

        assert record.time_spent_seconds == 150
        assert record.hints_used == 3
        assert record.attempt_count == 2

    def test_stars_follow_best_attempt(self, tracker, record):
        tracker.record_attempt(record, 10, 7, time_spent_seconds=100)
        assert record.stars_earned == 1

        tracker.record_attempt(record, 10, 10, time_spent_seconds=80)
        assert record.stars_earned == 3

        tracker.record_attempt(record, 10, 5, time_spent_seconds=80)
        assert record.stars_earned == 3
        assert record.correct_answers == 10

    def test_completion_is_one_way(self, tracker, clock, record):
        tracker.record_attempt(record, 10, 10, time_spent_seconds=100)
        completed_at = record.completed_at

        clock.advance(hours=1)
        tracker.record_attempt(record, 3, 3, time_spent_seconds=20)

        assert record.is_completed is True
        assert record.completed_at == completed_at
        assert record.last_attempt_at == completed_at + timedelta(hours=1)

    def test_marks_record_changed(self, tracker, clock, record):
        clock.advance(minutes=5)
        tracker.record_attempt(record, 1, 1, time_spent_seconds=10)

        assert record.needs_sync is True
        assert record.audit.updated_at == clock()


class TestExtraHelp:
    """Extra-help flag is latched once set"""

    def test_many_hints_need_extra_help(self, tracker, record):
        tracker.record_attempt(record, 10, 8, time_spent_seconds=100, hints_used=6)
        assert record.needed_extra_help is True
        assert crown_challenge_eligible(record) is False

    def test_half_the_hints_is_not_extra_help(self, tracker, record):
        tracker.record_attempt(record, 10, 8, time_spent_seconds=100, hints_used=5)
        assert record.needed_extra_help is False

    def test_third_attempt_needs_extra_help(self, tracker, record):
        tracker.record_attempt(record, 2, 2, time_spent_seconds=20)
        tracker.record_attempt(record, 2, 2, time_spent_seconds=20)
        assert record.needed_extra_help is False

        tracker.record_attempt(record, 2, 2, time_spent_seconds=20)
        assert record.needed_extra_help is True

    def test_flag_never_resets(self, tracker, record):
        tracker.record_attempt(record, 10, 3, time_spent_seconds=100, hints_used=8)
        tracker.record_attempt(record, 10, 10, time_spent_seconds=60)
        assert record.needed_extra_help is True


# ============================================================================
# Derived Metrics Tests
# ============================================================================

class TestDerivedMetrics:
    """Accuracy, support signals and summaries"""

    def test_accuracy_without_questions(self, tracker):
        empty = tracker.start_progress("child-1", "intro", total_questions=0)
        assert get_accuracy(empty) == 0.0

    def test_low_accuracy_needs_support(self, tracker, record):
        tracker.record_attempt(record, 10, 5, time_spent_seconds=100)
        assert get_accuracy(record) == 50.0
        assert needs_additional_support(record) is True

    def test_many_attempts_need_support(self, tracker, record):
        for _ in range(4):
            tracker.record_attempt(record, 1, 1, time_spent_seconds=10)
        assert needs_additional_support(record) is True

    def test_complete_activity_records_score(self, tracker, record):
        tracker.record_attempt(record, 5, 5, time_spent_seconds=60)
        tracker.complete_activity(record, final_score=80, max_score=100)

        assert record.is_completed is True
        assert record.total_score == 80
        assert get_score_percentage(record) == 80.0

    def test_performance_summary(self, tracker, clock):
        record = tracker.start_progress(
            "child-1", "shapes-3", total_questions=4,
            difficulty_level=DifficultyLevel.HARD, is_crown_challenge=True
        )
        tracker.record_attempt(record, 4, 4, time_spent_seconds=45)

        summary = tracker.get_performance_summary(record)

        assert summary.is_completed is True
        assert summary.stars_earned == 3
        assert summary.accuracy == 100.0
        assert summary.attempts == 1
        assert summary.crown_challenge_eligible is True
        assert summary.needs_additional_support is False
        assert record.difficulty_level == DifficultyLevel.HARD
