"""
Concurrency Control: Per-Entity Locking

Single-writer-per-entity discipline for the in-memory stores. Every mutable
entity (channel, user) has one logical asyncio lock addressed by a resource
key. Locks are re-entrant for the task that owns them, so a multi-entity
operation can take every lock it needs up front and still call the stores'
own locking mutators.

Ordering rule: a task only ever acquires keys in increasing sort order
(``channel:*`` sorts before ``user:*``). ``hold`` sorts its arguments and
rejects acquisitions that would invert the order, which rules out deadlock
between operations that touch overlapping entities.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import structlog

logger = structlog.get_logger(__name__)


class ConcurrencyError(Exception):
    """Raised when a lock cannot be taken safely."""


def channel_key(channel_id: UUID) -> str:
    return f"channel:{channel_id}"


def user_key(user_id: UUID) -> str:
    return f"user:{user_id}"


class Lock:
    """
    Exclusive lock on one resource.

    Tracks the owning task and the re-entry depth.
    """

    def __init__(self, resource_id: str):
        """
        Initialize lock.

        Args:
            resource_id: Resource being locked
        """
        self.resource_id = resource_id
        self.lock_id: UUID | None = None
        self.owner: asyncio.Task | None = None
        self.depth = 0
        self.acquired_at: datetime | None = None
        self._lock = asyncio.Lock()

    def is_held(self) -> bool:
        return self.owner is not None

    def held_by(self, task: asyncio.Task | None) -> bool:
        return task is not None and self.owner is task


class EntityLockManager:
    """
    Manages per-entity locks for the stores.

    Locks are created lazily on first use and kept for the lifetime of the
    manager.
    """

    def __init__(self):
        """Initialize lock manager."""
        self._locks: dict[str, Lock] = {}
        self._held: dict[asyncio.Task, set[str]] = {}
        logger.info("Entity lock manager initialized")

    def _get(self, resource_id: str) -> Lock:
        lock = self._locks.get(resource_id)
        if lock is None:
            lock = Lock(resource_id)
            self._locks[resource_id] = lock
        return lock

    async def acquire_lock(self, resource_id: str, wait_timeout: float | None = None) -> Lock:
        """
        Acquire the lock on a resource for the current task.

        Args:
            resource_id: Resource to lock
            wait_timeout: Maximum seconds to wait (None = wait indefinitely)

        Returns:
            The held Lock

        Raises:
            ConcurrencyError: On lock-order inversion or wait timeout
        """
        task = asyncio.current_task()
        lock = self._get(resource_id)

        if lock.held_by(task):
            lock.depth += 1
            return lock

        held = self._held.get(task, set()) if task is not None else set()
        higher = [key for key in held if key > resource_id]
        if higher:
            raise ConcurrencyError(
                f"Lock order violation: {resource_id} requested while holding {max(higher)}"
            )

        try:
            if wait_timeout is None:
                await lock._lock.acquire()
            else:
                await asyncio.wait_for(lock._lock.acquire(), timeout=wait_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Lock acquisition timeout",
                resource_id=resource_id,
                wait_timeout=wait_timeout,
            )
            raise ConcurrencyError(f"Timed out waiting for lock on {resource_id}") from None

        lock.owner = task
        lock.depth = 1
        lock.lock_id = uuid4()
        lock.acquired_at = datetime.now(timezone.utc)
        if task is not None:
            self._held.setdefault(task, set()).add(resource_id)

        logger.debug("Lock acquired", resource_id=resource_id, lock_id=str(lock.lock_id))
        return lock

    def release_lock(self, resource_id: str) -> bool:
        """
        Release one level of the current task's hold on a resource.

        Returns:
            True if the lock was released or its depth reduced, False if the
            current task does not hold it
        """
        task = asyncio.current_task()
        lock = self._locks.get(resource_id)

        if lock is None or not lock.held_by(task):
            logger.warning("Release of a lock not held by caller", resource_id=resource_id)
            return False

        lock.depth -= 1
        if lock.depth > 0:
            return True

        lock.owner = None
        lock.lock_id = None
        lock.acquired_at = None
        held = self._held.get(task)
        if held is not None:
            held.discard(resource_id)
            if not held:
                del self._held[task]
        lock._lock.release()

        logger.debug("Lock released", resource_id=resource_id)
        return True

    @asynccontextmanager
    async def hold(self, *resource_ids: str, wait_timeout: float | None = None) -> AsyncIterator[None]:
        """
        Hold several resource locks for the duration of a block.

        Keys are de-duplicated and acquired in sorted order, then released in
        reverse.
        """
        acquired: list[str] = []
        try:
            for resource_id in sorted(set(resource_ids)):
                await self.acquire_lock(resource_id, wait_timeout=wait_timeout)
                acquired.append(resource_id)
            yield
        finally:
            for resource_id in reversed(acquired):
                self.release_lock(resource_id)

    def is_locked(self, resource_id: str) -> bool:
        """Check if resource is currently locked."""
        lock = self._locks.get(resource_id)
        return lock is not None and lock.is_held()

    def get_lock_info(self, resource_id: str) -> dict[str, Any] | None:
        """Get information about current lock."""
        lock = self._locks.get(resource_id)
        if lock is None or not lock.is_held():
            return None

        return {
            "resource_id": lock.resource_id,
            "lock_id": str(lock.lock_id),
            "owner": lock.owner.get_name() if lock.owner else None,
            "depth": lock.depth,
            "acquired_at": lock.acquired_at.isoformat() if lock.acquired_at else None,
        }

    def get_all_locks(self) -> dict[str, dict[str, Any]]:
        """Get information about all held locks."""
        return {
            resource_id: info
            for resource_id in self._locks
            if (info := self.get_lock_info(resource_id)) is not None
        }


class SingleFlight:
    """
    At-most-one-in-flight guard.

    A second caller arriving while a run is in progress is turned away
    rather than queued.
    """

    def __init__(self, name: str):
        self.name = name
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @asynccontextmanager
    async def attempt(self) -> AsyncIterator[bool]:
        """Yield True if this caller owns the run, False if one is already active."""
        if self._in_flight:
            logger.info("Run already in flight, skipping", guard=self.name)
            yield False
            return

        self._in_flight = True
        try:
            yield True
        finally:
            self._in_flight = False


# Global lock manager instance
_lock_manager: EntityLockManager | None = None


def get_lock_manager() -> EntityLockManager:
    """
    Get or create global lock manager.

    Returns:
        EntityLockManager instance
    """
    global _lock_manager

    if _lock_manager is None:
        _lock_manager = EntityLockManager()

    return _lock_manager
