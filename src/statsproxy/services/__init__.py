"""Services package for StatsProxy.

This module exports service classes for talking to the analytics service.
"""

from statsproxy.services.analytics import AnalyticsClient
from statsproxy.services.auth import TokenManager
from statsproxy.services.cache import CacheEntry, VisitorCache
from statsproxy.services.visitors import VisitorService

__all__ = [
    # Upstream
    "AnalyticsClient",
    "TokenManager",
    # Cache
    "CacheEntry",
    "VisitorCache",
    # Visitors
    "VisitorService",
]
