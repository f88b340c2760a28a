"""Per-entity locking and single-flight guards."""

from channelhub.concurrency.locking import (
    ConcurrencyError,
    EntityLockManager,
    SingleFlight,
    channel_key,
    get_lock_manager,
    user_key,
)

__all__ = [
    "ConcurrencyError",
    "EntityLockManager",
    "SingleFlight",
    "channel_key",
    "user_key",
    "get_lock_manager",
]
