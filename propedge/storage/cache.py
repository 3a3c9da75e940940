"""TTL caches for provider responses."""

from pathlib import Path
from typing import Any, Callable, Mapping, NamedTuple, Optional, Union
import json
import logging
import os
import re
import threading
import time

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def make_cache_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build a filesystem-safe key such as ``games_league_12_season_2024``."""
    params = params or {}
    param_str = "_".join(f"{key}={params[key]}" for key in sorted(params))
    raw = f"{endpoint.replace('/', '_')}_{param_str}"
    return _UNSAFE_KEY_CHARS.sub("", raw.replace("=", "_"))


class CacheEntry(NamedTuple):
    value: Any
    stored_at: float
    ttl_seconds: float

    def expired(self, now: float) -> bool:
        return now - self.stored_at >= self.ttl_seconds


class CacheStore:
    """Key/value store whose entries expire ``ttl_seconds`` after being set.

    Subclasses implement ``_read``/``_write``/``invalidate``/``clear``; expiry
    and the "non-positive TTL means do not cache" rule live here.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock
        self._lock = threading.Lock()

    def _now(self) -> float:
        return self._clock() if self._clock else time.time()

    def get(self, key: str) -> Optional[Any]:
        entry = self._read(key)
        if entry is None:
            return None
        if entry.expired(self._now()):
            logger.debug("Cache expired: %s", key)
            self.invalidate(key)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        self._write(key, CacheEntry(value, self._now(), float(ttl_seconds)))

    def _read(self, key: str) -> Optional[CacheEntry]:
        raise NotImplementedError

    def _write(self, key: str, entry: CacheEntry) -> None:
        raise NotImplementedError

    def invalidate(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class FileCache(CacheStore):
    """One JSON document per key under ``cache_dir``.

    Keys come from :func:`make_cache_key` and are used as file names directly,
    so a cached response can be inspected by hand. Writes go through a
    temporary file and ``os.replace``.
    """

    def __init__(self, cache_dir: Union[str, Path], clock: Optional[Callable[[], float]] = None) -> None:
        super().__init__(clock)
        self._dir = Path(cache_dir)

    def _read(self, key: str) -> Optional[CacheEntry]:
        path = self._path_for_key(key)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            entry = CacheEntry(payload["value"], float(payload["stored_at"]), float(payload["ttl_seconds"]))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Error reading cache entry %s: %s", key, exc)
            return None
        logger.debug("Cache hit: %s", key)
        return entry

    def _write(self, key: str, entry: CacheEntry) -> None:
        path = self._path_for_key(key)
        tmp_path = path.with_suffix(".tmp")
        with self._lock:
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(json.dumps(entry._asdict()), encoding="utf-8")
                os.replace(tmp_path, path)
            except OSError as exc:
                logger.error("Error writing cache entry %s: %s", key, exc)
                return
        logger.debug("Cache set: %s", key)

    def invalidate(self, key: str) -> None:
        try:
            self._path_for_key(key).unlink()
        except FileNotFoundError:
            return

    def clear(self) -> None:
        if not self._dir.exists():
            return
        with self._lock:
            removed = 0
            for path in self._dir.glob("*.json"):
                try:
                    path.unlink()
                    removed += 1
                except OSError:
                    continue
        logger.info("Cleared %d cache entries", removed)

    def _path_for_key(self, key: str) -> Path:
        return self._dir / f"{key}.json"
