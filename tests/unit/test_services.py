"""Unit tests for the service layer (eduplay/services/)"""
import pytest
from datetime import timedelta

from eduplay.exceptions import RecordNotFoundError, ValidationError
from eduplay.models.subscription import BillingCycle, SubscriptionStatus
from eduplay.services import container as container_module
from eduplay.services.container import ServiceContainer, get_container, init_container


def _complete(progress_service, activity_id, correct=10, seconds=60, crown=False, child_id="child-1"):
    return progress_service.record_attempt(
        child_id=child_id,
        activity_id=activity_id,
        total_questions=10,
        questions_answered=10,
        correct_in_attempt=correct,
        time_spent_seconds=seconds,
        is_crown_challenge=crown,
    )


# ============================================================================
# EntitlementService Tests
# ============================================================================

class TestEntitlementService:
    """Subscription reads and billing events through the store"""

    def test_start_trial_is_idempotent(self, container, store):
        service = container.entitlement_service

        first = service.start_trial("account-1")
        second = service.start_trial("account-1")

        assert first.status == SubscriptionStatus.TRIAL
        assert second.start_date == first.start_date
        assert store.get_subscription("account-1") is not None

    def test_missing_subscription(self, container):
        with pytest.raises(RecordNotFoundError) as exc_info:
            container.entitlement_service.get_subscription("nobody")
        assert exc_info.value.record_id == "nobody"

    def test_upgrade_is_persisted(self, container, store):
        service = container.entitlement_service
        service.start_trial("account-1")

        service.upgrade_to_premium("account-1", "premium_annual", 3999, BillingCycle.ANNUAL, "Stripe")

        assert store.get_subscription("account-1").status == SubscriptionStatus.ACTIVE
        assert service.is_premium("account-1") is True
        assert service.daily_activity_limit("account-1") is None
        assert service.get_entitlements("account-1").formatted_price == "$39.99"

    def test_rejected_transition_not_saved(self, container, store):
        service = container.entitlement_service
        service.start_trial("account-1")
        before = store.get_subscription("account-1")

        assert service.renew("account-1") is False
        assert store.get_subscription("account-1") == before

    def test_payment_failure_and_restore(self, container, store):
        service = container.entitlement_service
        service.start_trial("account-1")
        service.upgrade_to_premium("account-1", "premium_monthly", 499, BillingCycle.MONTHLY, "Google_Play")

        assert service.handle_payment_failure("account-1", grace_days=5) is True
        assert store.get_subscription("account-1").status == SubscriptionStatus.PAYMENT_FAILED
        assert service.crown_challenges_available("account-1") is True

        assert service.restore_subscription("account-1", transaction_id="txn_9") is True
        assert store.get_subscription("account-1").last_transaction_id == "txn_9"

    def test_cancel_and_expire(self, container, store, clock):
        service = container.entitlement_service
        service.start_trial("account-1")
        service.upgrade_to_premium("account-1", "premium_monthly", 499, BillingCycle.MONTHLY, "Stripe")

        assert service.cancel("account-1", "moving_apps") is True
        assert service.renewal_reminder_due("account-1") is False

        clock.advance(days=40)
        assert service.sync_expired_status("account-1") is True
        assert store.get_subscription("account-1").status == SubscriptionStatus.EXPIRED

    def test_find_subscription_tolerates_missing(self, container):
        service = container.entitlement_service
        assert service.find_subscription("nobody") is None

        service.start_trial("account-1")
        assert service.find_subscription("account-1").status == SubscriptionStatus.TRIAL

    def test_invalid_upgrade_rejected(self, container, store):
        service = container.entitlement_service
        service.start_trial("account-1")

        with pytest.raises(ValidationError) as exc_info:
            service.upgrade_to_premium("account-1", "premium_monthly", -499, BillingCycle.MONTHLY, "Stripe")

        assert exc_info.value.field == "price_cents"
        assert exc_info.value.account_id == "account-1"
        assert store.get_subscription("account-1").status == SubscriptionStatus.TRIAL


# ============================================================================
# ProgressService Tests
# ============================================================================

class TestProgressService:
    """Attempts persisted per (child, activity)"""

    def test_first_attempt_creates_record(self, container, store):
        record = _complete(container.progress_service, "counting-1")

        assert record.stars_earned == 3
        assert store.get_progress("child-1", "counting-1").is_completed is True

    def test_later_attempts_update_record(self, container):
        service = container.progress_service
        _complete(service, "counting-1", correct=6)
        record = _complete(service, "counting-1", correct=9)

        assert record.attempt_count == 2
        assert record.stars_earned == 2
        assert record.time_spent_seconds == 120

    def test_complete_activity(self, container):
        service = container.progress_service
        service.record_attempt("child-1", "shapes-1", 5, 3, 3, 30)

        record = service.complete_activity("child-1", "shapes-1", final_score=60, max_score=100)

        assert record.is_completed is True
        assert service.get_performance_summary("child-1", "shapes-1").score_percentage == 60.0

    def test_missing_progress(self, container):
        with pytest.raises(RecordNotFoundError):
            container.progress_service.get_progress("child-1", "nothing")

    def test_invalid_attempt_not_saved(self, container, store):
        with pytest.raises(ValidationError) as exc_info:
            container.progress_service.record_attempt("child-1", "counting-1", 10, 10, 10, -30)

        assert exc_info.value.field == "time_spent_seconds"
        assert exc_info.value.operation == "record_attempt"
        assert store.get_progress("child-1", "counting-1") is None


# ============================================================================
# ReportingService Tests
# ============================================================================

class TestReportingService:
    """Snapshot aggregation from stored progress"""

    def test_build_snapshot(self, container, test_child):
        progress = container.progress_service
        _complete(progress, "add-1", correct=10, seconds=40)
        _complete(progress, "add-2", correct=9, seconds=80)
        _complete(progress, "crown-1", correct=10, seconds=30, crown=True)
        progress.record_attempt("child-1", "read-1", 10, 4, 4, 50)
        test_child.learning_streak = 4

        snapshot = container.reporting_service.build_snapshot(
            test_child,
            activity_subjects={"add-1": "math", "add-2": "math", "read-1": "reading"},
            subject_activity_counts={"math": 2, "reading": 3},
        )

        assert snapshot.total_stars == 8
        assert snapshot.activities_completed == 3
        assert snapshot.crown_challenges_completed == 1
        assert snapshot.average_completion_time == 50.0
        assert snapshot.learning_streak == 4
        assert snapshot.subject_progress["math"].lowest_stars == 2
        assert snapshot.subject_progress["math"].completed_with_min_stars(2) is True
        assert snapshot.subject_progress["reading"].activities_completed == 0
        assert snapshot.subject_progress["reading"].lowest_stars is None

    def test_subject_lowest_stars(self, container, test_child):
        progress = container.progress_service
        _complete(progress, "add-1", correct=10)
        _complete(progress, "add-2", correct=9)

        snapshot = container.reporting_service.build_snapshot(
            test_child,
            activity_subjects={"add-1": "math", "add-2": "math"},
            subject_activity_counts={"math": 2},
        )

        math = snapshot.subject_progress["math"]
        assert math.lowest_stars == 2
        assert math.completed_with_min_stars(3) is False

    def test_empty_snapshot(self, container, test_child):
        snapshot = container.reporting_service.build_snapshot(test_child)

        assert snapshot.total_stars == 0
        assert snapshot.activities_completed == 0
        assert snapshot.average_completion_time is None


# ============================================================================
# AchievementService Tests
# ============================================================================

class TestAchievementService:
    """Achievement evaluation persisted through the store"""

    def test_evaluate_saves_states(self, container, store, test_child, make_snapshot):
        service = container.achievement_service

        earned = service.evaluate(test_child, make_snapshot(activities_completed=1, total_stars=3))

        assert [s.achievement_id for s in earned] == ["first-step"]
        assert store.get_achievement_state("child-1", "first-step").is_earned is True
        assert store.get_achievement_state("child-1", "star-collector-50").current_progress == 3
        assert service.total_points("child-1") == 10

    def test_celebrations(self, container, test_child, make_snapshot):
        service = container.achievement_service
        service.evaluate(test_child, make_snapshot(activities_completed=1))

        pending = service.pending_celebrations("child-1")
        assert [s.achievement_id for s in pending] == ["first-step"]

        state = service.mark_celebration_shown("child-1", "first-step", emotional_reaction="Proud")
        assert state.celebration_shown is True
        assert service.pending_celebrations("child-1") == []

    def test_mark_unknown_celebration(self, container):
        with pytest.raises(RecordNotFoundError):
            container.achievement_service.mark_celebration_shown("child-1", "first-step")

    def test_gallery_hides_secret_and_crown(self, container, test_child):
        summaries = container.achievement_service.get_achievements(test_child)

        ids = [s.achievement_id for s in summaries]
        assert ids == ["first-step", "star-collector-50", "streak-3", "math-master"]

    def test_reset_repeatable_rejects_one_shot(self, container, test_child, make_snapshot):
        service = container.achievement_service
        service.evaluate(test_child, make_snapshot(activities_completed=1))

        assert service.reset_repeatable("child-1", "first-step") is False
        assert service.reset_repeatable("child-1", "unknown") is False


# ============================================================================
# ServiceContainer Tests
# ============================================================================

class TestServiceContainer:
    """Lazy wiring and the global container"""

    def test_services_are_cached(self, container):
        assert container.entitlement_service is container.entitlement_service
        assert container.gamification_service.progress is container.progress_service
        assert container.achievement_service.engine is container.achievement_engine

    def test_shared_clock(self, container, clock):
        clock.advance(days=1)
        record = container.entitlement_service.start_trial("account-1")
        assert record.start_date == clock()
        assert record.trial_end == clock() + timedelta(days=3)

    def test_get_container_before_init(self, monkeypatch):
        monkeypatch.setattr(container_module, "_container", None)
        with pytest.raises(RuntimeError):
            get_container()

    def test_init_container(self, monkeypatch, store, clock):
        monkeypatch.setattr(container_module, "_container", None)

        created = init_container(store, clock=clock)

        assert isinstance(created, ServiceContainer)
        assert get_container() is created
        assert created.achievement_service.catalog == []
