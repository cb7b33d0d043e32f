"""
API Cache Layer
In-memory request cache: TTL expiry, singleflight dedup, key derivation
"""

from .store import CacheStore, CacheEntry, DEFAULT_TTL
from .key_generator import derive_key, join_key, format_param
from .events import CacheEvent

__all__ = ['CacheStore', 'CacheEntry', 'DEFAULT_TTL', 'derive_key', 'join_key', 'format_param', 'CacheEvent']
