"""
CO2 service caching package.

Provides the in-process cache used by the Electricity Maps client to avoid
repeating identical upstream calls within the TTL window.
"""

from .ttl_cache import TTLCache, CacheEntry

__all__ = ["TTLCache", "CacheEntry"]
