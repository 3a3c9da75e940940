"""Storage and caching."""

from propedge.storage.cache import CacheStore, FileCache, make_cache_key
from propedge.storage.player_store import PlayerStore

__all__ = ["CacheStore", "FileCache", "make_cache_key", "PlayerStore"]
