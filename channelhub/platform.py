"""
Platform Container

Wires every component around one lock manager and one event stream. The
service uses the process-wide instance from ``get_platform()``; tests build
their own ``Platform`` with custom settings.
"""

import structlog

from channelhub.concurrency.locking import EntityLockManager, get_lock_manager
from channelhub.config import Settings, get_settings
from channelhub.events.stream import EventStream
from channelhub.stores.announcements import AnnouncementStore
from channelhub.stores.channels import ChannelRegistry
from channelhub.stores.identity import IdentityStore
from channelhub.stores.messaging import MessagingLog
from channelhub.stores.session import SessionStore
from channelhub.stores.subscriptions import SubscriptionEngine
from channelhub.verification.subscription_invariants import SubscriptionInvariantMonitor

logger = structlog.get_logger(__name__)


class Platform:
    """All channelhub components sharing locks, events and settings."""

    def __init__(
        self,
        settings: Settings | None = None,
        locks: EntityLockManager | None = None,
        events: EventStream | None = None,
    ):
        self.settings = settings or get_settings()
        self.locks = locks or EntityLockManager()
        self.events = events or EventStream("channelhub")
        self.monitor = SubscriptionInvariantMonitor()

        self.identity = IdentityStore(self.locks, self.events)
        self.sessions = SessionStore(self.identity)
        self.channels = ChannelRegistry(self.identity, self.locks, self.events, self.settings)
        self.subscriptions = SubscriptionEngine(
            self.identity,
            self.channels,
            self.locks,
            self.events,
            settings=self.settings,
            monitor=self.monitor,
        )
        self.messages = MessagingLog(self.identity, self.events)
        self.announcements = AnnouncementStore(self.identity, self.events)

        logger.info("Platform initialized", environment=self.settings.environment)


# Global platform instance
_platform: Platform | None = None


def get_platform() -> Platform:
    """
    Get or create global platform.

    Returns:
        Platform instance
    """
    global _platform

    if _platform is None:
        _platform = Platform(locks=get_lock_manager())

    return _platform
