"""
channelhub Stores

In-memory components owning the platform's records: identity and session,
channel registry, subscription and reputation engine, messaging log and
announcements.
"""

from channelhub.stores.announcements import AnnouncementStore
from channelhub.stores.channels import ChannelRegistry
from channelhub.stores.identity import IdentityStore
from channelhub.stores.messaging import MessagingLog
from channelhub.stores.session import SessionStore
from channelhub.stores.subscriptions import SubscriptionEngine

__all__ = [
    "AnnouncementStore",
    "ChannelRegistry",
    "IdentityStore",
    "MessagingLog",
    "SessionStore",
    "SubscriptionEngine",
]
