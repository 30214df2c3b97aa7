"""Subscription models"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from eduplay.models.audit import AuditFields


class SubscriptionStatus(str, Enum):
    """Stored subscription status"""
    TRIAL = "Trial"
    ACTIVE = "Active"
    PAYMENT_FAILED = "Payment_Failed"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"


class BillingCycle(str, Enum):
    """Billing cycle for recurring plans"""
    MONTHLY = "Monthly"
    ANNUAL = "Annual"
    ONE_TIME = "One_Time"


class SubscriptionRecord(BaseModel):
    """
    One subscription per parent account

    Fields are only changed through EntitlementEngine transitions.
    """
    model_config = ConfigDict(validate_assignment=True)

    account_id: str
    plan_type: str = "free_trial"  # free_trial, premium_monthly, premium_annual
    status: SubscriptionStatus = SubscriptionStatus.TRIAL
    start_date: datetime
    trial_end: datetime
    period_end: datetime
    price_cents: int = Field(default=0, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    next_billing_date: Optional[datetime] = None
    last_payment_at: Optional[datetime] = None

    # Billing provider references (App Store, Google Play, Stripe, ...)
    payment_provider: Optional[str] = None
    external_subscription_id: Optional[str] = None
    last_transaction_id: Optional[str] = None

    auto_renew: bool = True
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    grace_period_days: int = Field(default=3, ge=0)
    grace_period_end: Optional[datetime] = None
    payment_retry_attempts: int = Field(default=0, ge=0)
    last_payment_retry_at: Optional[datetime] = None

    is_deleted: bool = False
    needs_sync: bool = False
    subscription_version: int = 1
    metadata: dict[str, Any] = Field(default_factory=dict)
    audit: AuditFields = Field(default_factory=AuditFields)


class FeatureAccess(BaseModel):
    """Premium features derived from the subscription"""
    unlimited_activities: bool
    crown_challenges: bool
    daily_activity_limit: Optional[int]  # None = unlimited


class EntitlementSummary(BaseModel):
    """Read-only subscription view for the presentation layer"""
    account_id: str
    plan_type: str
    status: SubscriptionStatus
    is_active: bool
    is_in_trial: bool
    is_expired: bool
    days_remaining: int
    formatted_price: str
    billing_cycle: BillingCycle
    trial_end: datetime
    period_end: datetime
    next_billing_date: Optional[datetime] = None
    auto_renew: bool
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    features: FeatureAccess
