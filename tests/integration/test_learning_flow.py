"""
Integration tests for the full learning loop

Trial -> activities -> stars -> streaks -> achievements -> premium gating,
wired through the ServiceContainer with the in-memory store.
"""
import pytest

from eduplay.models.child import ChildProfile
from eduplay.models.subscription import BillingCycle, SubscriptionStatus


SUBJECTS = {"add-1": "math", "add-2": "math"}
SUBJECT_COUNTS = {"math": 2}


def _play(container, child, activity_id, correct=10, seconds=90, crown=False):
    return container.gamification_service.process_activity_attempt(
        child=child,
        activity_id=activity_id,
        total_questions=10,
        questions_answered=10,
        correct_in_attempt=correct,
        time_spent_seconds=seconds,
        is_crown_challenge=crown,
        activity_subjects=SUBJECTS,
        subject_activity_counts=SUBJECT_COUNTS,
    )


@pytest.fixture
def learner(container):
    child = ChildProfile(child_id="child-1", account_id="account-1", name="Mia", age=5)
    container.entitlement_service.start_trial("account-1")
    return child


def test_first_activity_unlocks_first_step(container, learner):
    result = _play(container, learner, "add-1")

    assert result["completed"] is True
    assert result["newly_completed"] is True
    assert result["stars_earned"] == 3
    assert result["current_streak"] == 1
    assert [a["id"] for a in result["achievements_unlocked"]] == ["first-step"]
    assert result["points_awarded"] == 10
    assert "First Step" in result["message"]
    assert learner.total_stars_earned == 3


def test_incomplete_attempt_skips_achievements(container, learner):
    result = container.gamification_service.process_activity_attempt(
        child=learner,
        activity_id="add-1",
        total_questions=10,
        questions_answered=4,
        correct_in_attempt=4,
        time_spent_seconds=20,
    )

    assert result["completed"] is False
    assert result["achievements_unlocked"] == []
    assert container.achievement_service.pending_celebrations("child-1") == []


def test_subject_and_streak_over_three_days(container, clock, learner):
    _play(container, learner, "add-1")

    clock.advance(days=1)
    second = _play(container, learner, "add-2", correct=9)
    assert "math-master" in [a["id"] for a in second["achievements_unlocked"]]
    assert second["current_streak"] == 2

    clock.advance(days=1)
    third = _play(container, learner, "count-1")
    assert third["current_streak"] == 3
    assert third["milestone_reached"] == 3
    assert "streak-3" in [a["id"] for a in third["achievements_unlocked"]]

    assert learner.total_stars_earned == 8
    pending = {s.achievement_id for s in container.achievement_service.pending_celebrations("child-1")}
    assert pending == {"first-step", "math-master", "streak-3"}


def test_replaying_activity_adds_only_new_stars(container, learner):
    _play(container, learner, "add-1", correct=7)
    assert learner.total_stars_earned == 1

    result = _play(container, learner, "add-1", correct=10)

    assert result["newly_completed"] is False
    assert result["stars_earned"] == 3
    assert learner.total_stars_earned == 3
    assert result["achievements_unlocked"] == []


def test_crown_challenges_follow_subscription(container, clock):
    child = ChildProfile(child_id="child-2", account_id="account-2", age=7, is_advanced=True)
    entitlements = container.entitlement_service
    entitlements.start_trial("account-2")

    # Trial lapses before the crown challenge is played
    clock.advance(days=5)
    lapsed = _play(container, child, "crown-1", crown=True)
    assert "crown-champion" not in [a["id"] for a in lapsed["achievements_unlocked"]]

    entitlements.upgrade_to_premium("account-2", "premium_monthly", 499, BillingCycle.MONTHLY, "Apple_App_Store")
    premium = _play(container, child, "crown-2", crown=True)

    unlocked = {a["id"]: a["points"] for a in premium["achievements_unlocked"]}
    assert unlocked["crown-champion"] == 400


def test_payment_failure_grace_keeps_crown_access(container, clock):
    entitlements = container.entitlement_service
    entitlements.start_trial("account-1")
    entitlements.upgrade_to_premium("account-1", "premium_monthly", 499, BillingCycle.MONTHLY, "Stripe")

    record = entitlements.get_subscription("account-1")
    clock.set(record.period_end)
    entitlements.handle_payment_failure("account-1")

    clock.advance(days=1)
    assert entitlements.crown_challenges_available("account-1") is True

    clock.advance(days=5)
    assert entitlements.crown_challenges_available("account-1") is False
    assert entitlements.sync_expired_status("account-1") is True
    assert entitlements.get_subscription("account-1").status == SubscriptionStatus.EXPIRED


def test_achievement_gallery_after_play(container, learner):
    _play(container, learner, "add-1", seconds=30)

    gallery = {s.achievement_id: s for s in container.achievement_service.get_achievements(learner)}

    assert gallery["first-step"].is_earned is True
    assert gallery["star-collector-50"].progress_percentage == 6
    # Speed badge earned on the first fast completion, so no longer hidden
    assert gallery["secret-speedster"].is_earned is True
    assert "crown-champion" not in gallery


def test_celebration_acknowledged(container, learner):
    _play(container, learner, "add-1")
    service = container.achievement_service

    service.mark_celebration_shown("child-1", "first-step", emotional_reaction="Excited")

    assert [s.achievement_id for s in service.pending_celebrations("child-1")] == []
    assert service.total_points("child-1") == 10
    assert service.store.get_achievement_state("child-1", "first-step").earned_at == container.clock()


def test_subject_master_needs_min_stars_on_every_activity(container, learner):
    _play(container, learner, "add-1", correct=3)
    second = _play(container, learner, "add-2", correct=3)
    assert "math-master" not in [a["id"] for a in second["achievements_unlocked"]]

    gallery = {s.achievement_id: s for s in container.achievement_service.get_achievements(learner)}
    assert gallery["math-master"].is_earned is False
    assert gallery["math-master"].progress_percentage < 100

    # One weak activity still blocks the badge
    first_replay = _play(container, learner, "add-1", correct=10)
    assert "math-master" not in [a["id"] for a in first_replay["achievements_unlocked"]]

    replay = _play(container, learner, "add-2", correct=10)

    assert "math-master" in [a["id"] for a in replay["achievements_unlocked"]]


def test_crown_challenge_without_subscription(container):
    child = ChildProfile(child_id="child-3", account_id="no-account", age=7, is_advanced=True)

    result = _play(container, child, "crown-1", crown=True)

    assert result["completed"] is True
    assert "crown-champion" not in [a["id"] for a in result["achievements_unlocked"]]
    assert container.entitlement_service.find_subscription("no-account") is None
