"""In-memory response caching for alphatrader.

This package provides :class:`ResponseCache`, a bounded path -> response
store with coalesced loads, least-recently-accessed eviction, access-based
expiry, and a background thread that keeps resident responses fresh.

The cache is consumed by :class:`~alphatrader.fetcher.Fetcher` and sized
by the ``cache`` section of the settings
(:class:`~alphatrader.models.CacheConfig`).
"""

from alphatrader.cache.cache import CacheEntry, RefreshReport, ResponseCache

__all__ = ["CacheEntry", "RefreshReport", "ResponseCache"]
