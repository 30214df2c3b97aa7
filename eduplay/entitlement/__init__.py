"""Subscription lifecycle and premium entitlements"""

from eduplay.entitlement.engine import EntitlementEngine, format_price

__all__ = [
    "EntitlementEngine",
    "format_price",
]
