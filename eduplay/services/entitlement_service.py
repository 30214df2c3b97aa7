"""
EntitlementService - Subscription Business Logic

Entry point for the billing collaborator (upgrade, renew, payment failure,
restore, cancel) and for premium checks by the rest of the app. Every call
is one read-modify-write against the record store.
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from eduplay.entitlement.engine import EntitlementEngine
from eduplay.exceptions import RecordNotFoundError, ValidationError
from eduplay.models.subscription import BillingCycle, EntitlementSummary, SubscriptionRecord
from eduplay.storage.base import RecordStore

logger = logging.getLogger(__name__)


class EntitlementService:
    """
    Service for subscription lifecycle and entitlements.

    Responsibilities:
    - Creating the trial subscription for a new parent account
    - Applying billing events through the EntitlementEngine
    - Answering premium-access questions (always via EntitlementEngine.is_active)
    """

    def __init__(self, store: RecordStore, engine: EntitlementEngine):
        """
        Initialize EntitlementService.

        Args:
            store: Persistence collaborator
            engine: Subscription state machine
        """
        self.store = store
        self.engine = engine
        logger.debug("EntitlementService initialized")

    def start_trial(self, account_id: str) -> SubscriptionRecord:
        """Create the account's trial, or return the existing subscription"""
        existing = self.store.get_subscription(account_id)
        if existing is not None:
            logger.debug(f"Account {account_id} already has a subscription ({existing.status.value})")
            return existing

        record = self.engine.create_trial(account_id)
        self.store.save_subscription(record)
        return record

    def get_subscription(self, account_id: str) -> SubscriptionRecord:
        record = self.store.get_subscription(account_id)
        if record is None:
            raise RecordNotFoundError(
                f"No subscription for account {account_id}",
                record_type="Subscription",
                record_id=account_id,
                account_id=account_id,
                operation="get_subscription"
            )
        return record

    def find_subscription(self, account_id: str) -> Optional[SubscriptionRecord]:
        return self.store.get_subscription(account_id)

    # ============================================
    # Billing events
    # ============================================

    def upgrade_to_premium(
        self,
        account_id: str,
        plan_type: str,
        price_cents: int,
        billing_cycle: BillingCycle,
        payment_provider: str,
        external_subscription_id: Optional[str] = None
    ) -> SubscriptionRecord:
        record = self.get_subscription(account_id)
        try:
            self.engine.upgrade_to_premium(
                record,
                plan_type=plan_type,
                price_cents=price_cents,
                billing_cycle=billing_cycle,
                payment_provider=payment_provider,
                external_subscription_id=external_subscription_id,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, account_id=account_id, operation="upgrade_to_premium")
        self.store.save_subscription(record)
        return record

    def renew(self, account_id: str, transaction_id: Optional[str] = None) -> bool:
        return self._apply(account_id, lambda record: self.engine.renew(record, transaction_id))

    def cancel(self, account_id: str, reason: str, immediate: bool = False) -> bool:
        return self._apply(account_id, lambda record: self.engine.cancel(record, reason, immediate))

    def handle_payment_failure(self, account_id: str, grace_days: Optional[int] = None) -> bool:
        return self._apply(account_id, lambda record: self.engine.handle_payment_failure(record, grace_days))

    def restore_subscription(self, account_id: str, transaction_id: Optional[str] = None) -> bool:
        return self._apply(account_id, lambda record: self.engine.restore_subscription(record, transaction_id))

    def sync_expired_status(self, account_id: str) -> bool:
        return self._apply(account_id, self.engine.sync_expired_status)

    # ============================================
    # Entitlement reads
    # ============================================

    def is_premium(self, account_id: str) -> bool:
        return self.engine.is_active(self.get_subscription(account_id))

    def crown_challenges_available(self, account_id: str) -> bool:
        return self.engine.crown_challenges_available(self.get_subscription(account_id))

    def daily_activity_limit(self, account_id: str) -> Optional[int]:
        return self.engine.daily_activity_limit(self.get_subscription(account_id))

    def renewal_reminder_due(self, account_id: str, window_days: Optional[int] = None) -> bool:
        return self.engine.renewal_reminder_due(self.get_subscription(account_id), window_days)

    def get_entitlements(self, account_id: str) -> EntitlementSummary:
        return self.engine.get_subscription_summary(self.get_subscription(account_id))

    def _apply(self, account_id: str, transition) -> bool:
        """Load, transition, and save only when the transition was applied"""
        record = self.get_subscription(account_id)
        applied = transition(record)
        if applied:
            self.store.save_subscription(record)
        return applied
