"""
Runtime Verification Module

Checks the subscription and rating invariants of the core.
"""

from channelhub.verification.subscription_invariants import (
    InvariantViolationType,
    SubscriptionInvariantMonitor,
    assert_subscription_invariant,
)

__all__ = [
    "SubscriptionInvariantMonitor",
    "assert_subscription_invariant",
    "InvariantViolationType",
]
