"""
Entitlement Engine

Subscription lifecycle state machine for the freemium model:
3-day free trial, then monthly or annual premium access.

States: Trial, Active, Payment_Failed, Cancelled, Expired

Transitions:
- create_trial:            (new) -> Trial
- upgrade_to_premium:      any -> Active
- renew:                   Active -> Active (period extended by one cycle)
- cancel:                  immediate -> Cancelled, otherwise auto-renew off
- handle_payment_failure:  any -> Payment_Failed (grace period starts)
- restore_subscription:    Payment_Failed -> Active
- sync_expired_status:     lapsed Trial/Active/Payment_Failed/Cancelled -> Expired

Expiry is otherwise a computed read: is_active() is the single authority
for premium access and every other component must go through it.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from eduplay import config
from eduplay.exceptions import InvalidTransitionError
from eduplay.models.audit import AuditFields
from eduplay.models.subscription import (
    BillingCycle,
    EntitlementSummary,
    FeatureAccess,
    SubscriptionRecord,
    SubscriptionStatus,
)
from eduplay.utils.datetime_helpers import Clock, add_months, add_years, now_utc, whole_days_between

logger = logging.getLogger(__name__)


CURRENCY_FORMATS = {
    "USD": "${price:.2f}",
    "EUR": "€{price:.2f}",
    "MXN": "${price:.2f} MXN",
}


def advance_one_cycle(moment: datetime, billing_cycle: BillingCycle) -> datetime:
    """Add one billing cycle; anything other than annual counts as monthly"""
    if billing_cycle == BillingCycle.ANNUAL:
        return add_years(moment, 1)
    return add_months(moment, 1)


def format_price(price_cents: int, currency: str) -> str:
    """
    Format a price in cents for display

    Examples:
        format_price(0, "USD")   -> "Free"
        format_price(499, "USD") -> "$4.99"
        format_price(499, "GBP") -> "4.99 GBP"
    """
    if price_cents == 0:
        return "Free"
    price = price_cents / 100.0
    template = CURRENCY_FORMATS.get(currency)
    if template is None:
        return f"{price:.2f} {currency}"
    return template.format(price=price)


class EntitlementEngine:
    """
    Subscription state machine and entitlement checks.

    All date comparisons use the injected clock. Transition methods mutate the
    record in place and return True when applied; a rejected transition leaves
    the record untouched and returns False (or raises InvalidTransitionError
    in strict mode).
    """

    def __init__(self, clock: Optional[Clock] = None, strict: Optional[bool] = None):
        """
        Initialize EntitlementEngine.

        Args:
            clock: Callable returning the current aware datetime (defaults to UTC now)
            strict: Raise on invalid transitions (defaults to config.STRICT_TRANSITIONS)
        """
        self.clock = clock or now_utc
        self.strict = config.STRICT_TRANSITIONS if strict is None else strict

    # ============================================
    # Transitions
    # ============================================

    def create_trial(self, account_id: str, currency: Optional[str] = None) -> SubscriptionRecord:
        """Create the initial subscription: a free trial ending TRIAL_DAYS from now"""
        now = self.clock()
        trial_end = now + timedelta(days=config.TRIAL_DAYS)
        record = SubscriptionRecord(
            account_id=account_id,
            plan_type="free_trial",
            status=SubscriptionStatus.TRIAL,
            start_date=now,
            trial_end=trial_end,
            period_end=trial_end,
            currency=currency or config.DEFAULT_CURRENCY,
            grace_period_days=config.DEFAULT_GRACE_PERIOD_DAYS,
            audit=AuditFields.at(now),
        )
        logger.info(f"Account {account_id} started free trial ending {trial_end.isoformat()}")
        return record

    def upgrade_to_premium(
        self,
        record: SubscriptionRecord,
        plan_type: str,
        price_cents: int,
        billing_cycle: BillingCycle,
        payment_provider: str,
        external_subscription_id: Optional[str] = None
    ) -> bool:
        """
        Upgrade to a paid plan

        Args:
            record: Subscription to upgrade
            plan_type: e.g. "premium_monthly", "premium_annual"
            price_cents: Price in cents (499 = $4.99)
            billing_cycle: Monthly or Annual
            payment_provider: Apple_App_Store, Google_Play, Stripe, ...
            external_subscription_id: Provider-side subscription reference

        Returns:
            True (upgrade is accepted from any status)
        """
        now = self.clock()
        billing_cycle = BillingCycle(billing_cycle)

        record.plan_type = plan_type
        record.status = SubscriptionStatus.ACTIVE
        record.price_cents = price_cents
        record.billing_cycle = billing_cycle
        record.payment_provider = payment_provider
        record.external_subscription_id = external_subscription_id
        record.last_payment_at = now
        record.period_end = advance_one_cycle(now, billing_cycle)
        record.next_billing_date = record.period_end
        self._mark_changed(record, now)

        logger.info(
            f"Account {record.account_id} upgraded to {plan_type} "
            f"({billing_cycle.value}, {format_price(price_cents, record.currency)}) "
            f"until {record.period_end.isoformat()}"
        )
        return True

    def renew(self, record: SubscriptionRecord, transaction_id: Optional[str] = None) -> bool:
        """Extend an active subscription by one billing cycle"""
        if record.status != SubscriptionStatus.ACTIVE:
            return self._reject(record, "renew")

        now = self.clock()
        record.last_payment_at = now
        record.last_transaction_id = transaction_id
        record.payment_retry_attempts = 0
        record.grace_period_end = None
        record.period_end = advance_one_cycle(record.period_end, record.billing_cycle)
        record.next_billing_date = record.period_end
        self._mark_changed(record, now)

        logger.info(f"Account {record.account_id} renewed until {record.period_end.isoformat()}")
        return True

    def cancel(self, record: SubscriptionRecord, reason: str, immediate: bool = False) -> bool:
        """
        Cancel the subscription

        Immediate cancellation ends access now. Otherwise auto-renew is turned
        off and access continues until period_end passes.
        """
        now = self.clock()
        record.cancelled_at = now
        record.cancellation_reason = reason
        record.auto_renew = False

        if immediate:
            record.status = SubscriptionStatus.CANCELLED
            record.period_end = now

        self._mark_changed(record, now)
        logger.info(
            f"Account {record.account_id} cancelled subscription "
            f"(reason={reason}, immediate={immediate})"
        )
        return True

    def handle_payment_failure(self, record: SubscriptionRecord, grace_days: Optional[int] = None) -> bool:
        """Move to Payment_Failed and open a grace period of grace_days"""
        now = self.clock()
        if grace_days is None:
            grace_days = config.DEFAULT_GRACE_PERIOD_DAYS

        record.status = SubscriptionStatus.PAYMENT_FAILED
        record.payment_retry_attempts += 1
        record.last_payment_retry_at = now
        record.grace_period_days = grace_days
        record.grace_period_end = now + timedelta(days=grace_days)
        self._mark_changed(record, now)

        logger.warning(
            f"Payment failed for account {record.account_id} "
            f"(attempt {record.payment_retry_attempts}), grace period until "
            f"{record.grace_period_end.isoformat()}"
        )
        return True

    def restore_subscription(self, record: SubscriptionRecord, transaction_id: Optional[str] = None) -> bool:
        """Return a Payment_Failed subscription to Active once payment succeeds"""
        if record.status != SubscriptionStatus.PAYMENT_FAILED:
            return self._reject(record, "restore_subscription")

        now = self.clock()
        record.status = SubscriptionStatus.ACTIVE
        record.last_payment_at = now
        record.last_transaction_id = transaction_id
        record.payment_retry_attempts = 0
        record.grace_period_end = None
        self._mark_changed(record, now)

        logger.info(f"Account {record.account_id} subscription restored")
        return True

    def sync_expired_status(self, record: SubscriptionRecord) -> bool:
        """Store Expired for a record whose computed state has lapsed"""
        if record.status == SubscriptionStatus.EXPIRED or not self.is_expired(record):
            return False

        previous = record.status
        record.status = SubscriptionStatus.EXPIRED
        self._mark_changed(record, self.clock())
        logger.info(f"Account {record.account_id} subscription expired (was {previous.value})")
        return True

    # ============================================
    # Reads
    # ============================================

    def is_active(self, record: SubscriptionRecord) -> bool:
        """Whether the account currently has premium access"""
        now = self.clock()
        if record.status == SubscriptionStatus.ACTIVE:
            return now <= record.period_end
        if record.status == SubscriptionStatus.TRIAL:
            return now <= record.trial_end
        if record.status == SubscriptionStatus.PAYMENT_FAILED and record.grace_period_end is not None:
            return now <= record.grace_period_end
        return False

    def is_in_trial(self, record: SubscriptionRecord) -> bool:
        return record.status == SubscriptionStatus.TRIAL and self.clock() <= record.trial_end

    def is_expired(self, record: SubscriptionRecord) -> bool:
        """Computed expiry; see module docstring"""
        now = self.clock()
        status = record.status
        if status == SubscriptionStatus.EXPIRED:
            return True
        if status == SubscriptionStatus.CANCELLED:
            return record.cancelled_at is not None and now > record.period_end
        if status == SubscriptionStatus.ACTIVE:
            return now > record.period_end
        if status == SubscriptionStatus.TRIAL:
            return now > record.trial_end
        if status == SubscriptionStatus.PAYMENT_FAILED:
            if record.grace_period_end is not None:
                return now > record.grace_period_end
            return now > record.period_end + timedelta(days=record.grace_period_days)
        return False

    def get_days_remaining(self, record: SubscriptionRecord) -> int:
        """Whole days left in the current trial or billing period (0 once expired)"""
        if self.is_expired(record):
            return 0
        expiry = record.trial_end if record.status == SubscriptionStatus.TRIAL else record.period_end
        return max(0, whole_days_between(self.clock(), expiry))

    def daily_activity_limit(self, record: SubscriptionRecord) -> Optional[int]:
        """None (unlimited) with premium access, else the free-tier limit"""
        if self.is_active(record):
            return None
        return config.FREE_DAILY_ACTIVITY_LIMIT

    def crown_challenges_available(self, record: SubscriptionRecord) -> bool:
        return self.is_active(record)

    def renewal_reminder_due(self, record: SubscriptionRecord, window_days: Optional[int] = None) -> bool:
        """Active, auto-renewing subscriptions ending within window_days"""
        if window_days is None:
            window_days = config.RENEWAL_REMINDER_DAYS
        if record.status != SubscriptionStatus.ACTIVE or not record.auto_renew:
            return False
        remaining = record.period_end - self.clock()
        return timedelta(0) < remaining <= timedelta(days=window_days)

    def get_subscription_summary(self, record: SubscriptionRecord) -> EntitlementSummary:
        """Effective entitlement view for the presentation layer"""
        is_active = self.is_active(record)
        return EntitlementSummary(
            account_id=record.account_id,
            plan_type=record.plan_type,
            status=record.status,
            is_active=is_active,
            is_in_trial=self.is_in_trial(record),
            is_expired=self.is_expired(record),
            days_remaining=self.get_days_remaining(record),
            formatted_price=format_price(record.price_cents, record.currency),
            billing_cycle=record.billing_cycle,
            trial_end=record.trial_end,
            period_end=record.period_end,
            next_billing_date=record.next_billing_date,
            auto_renew=record.auto_renew,
            cancelled_at=record.cancelled_at,
            cancellation_reason=record.cancellation_reason,
            features=FeatureAccess(
                unlimited_activities=is_active,
                crown_challenges=self.crown_challenges_available(record),
                daily_activity_limit=self.daily_activity_limit(record),
            ),
        )

    # ============================================
    # Helpers
    # ============================================

    def _mark_changed(self, record: SubscriptionRecord, now: datetime) -> None:
        record.audit.touch(now)
        record.needs_sync = True

    def _reject(self, record: SubscriptionRecord, transition: str) -> bool:
        message = (
            f"Cannot {transition} subscription for account {record.account_id} "
            f"in status {record.status.value}"
        )
        if self.strict:
            raise InvalidTransitionError(
                message,
                transition=transition,
                status=record.status.value,
                account_id=record.account_id,
                operation=transition
            )
        logger.warning(f"{message}; ignoring")
        return False
