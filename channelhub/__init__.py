"""
channelhub

Subscription and reputation consistency core for an education platform:
professors publish channels, students subscribe and follow, ratings are
kept consistent with subscriptions under concurrent and periodic updates.
"""

from channelhub.platform import Platform, get_platform

__version__ = "0.1.0"

__all__ = ["Platform", "get_platform"]
