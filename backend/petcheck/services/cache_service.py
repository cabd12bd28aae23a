"""
Cache store for upstream responses and interaction check results.

Entries have two windows: fresh for `ttl` seconds, then stale for a further
`stale_ttl` seconds. Stale data is still returned (flagged) so callers can
serve it when a refresh fails; past both windows an entry is gone.

Stores are injected into the services that use them. InMemoryCacheStore is
thread-safe and suits tests and single-process runs; SQLCacheStore persists
through the Flask-SQLAlchemy CacheEntry table and needs an app context.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

logger = logging.getLogger("petcheck.cache")


@dataclass(frozen=True)
class CachedValue:
    data: Any
    cached_at: datetime
    stale: bool = False


class CacheStore(ABC):
    """Abstract key/value store with fresh and stale windows."""

    @abstractmethod
    def get(self, key: str) -> Optional[CachedValue]:
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int, stale_ttl: int = 0) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop entries past their stale window. Returns the number removed."""
        ...


class InMemoryCacheStore(CacheStore):

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (cached_ts, fresh_until_ts, stale_until_ts, value)
        self._entries: dict[str, tuple[float, float, float, Any]] = {}

    def get(self, key: str) -> Optional[CachedValue]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            cached_ts, fresh_until, stale_until, value = entry
            if now >= stale_until:
                del self._entries[key]
                return None
        return CachedValue(
            data=value,
            cached_at=datetime.fromtimestamp(cached_ts, timezone.utc).replace(tzinfo=None),
            stale=now >= fresh_until,
        )

    def set(self, key: str, value: Any, ttl: int, stale_ttl: int = 0) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = (now, now + ttl, now + ttl + stale_ttl, value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, entry in self._entries.items() if now >= entry[2]]
            for k in expired:
                del self._entries[k]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SQLCacheStore(CacheStore):
    """CacheEntry-backed store. Values must be JSON-serializable."""

    def __init__(self, session=None):
        from petcheck.database import db
        self._session = session or db.session

    def get(self, key: str) -> Optional[CachedValue]:
        from petcheck.models.models import CacheEntry, utcnow

        entry = self._session.get(CacheEntry, key)
        if entry is None:
            return None
        now = utcnow()
        if now >= entry.stale_until:
            self.remove(key)
            return None
        try:
            data = json.loads(entry.payload)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
            self.remove(key)
            return None
        return CachedValue(data=data, cached_at=entry.cached_at, stale=now >= entry.expires_at)

    def set(self, key: str, value: Any, ttl: int, stale_ttl: int = 0) -> None:
        from petcheck.models.models import CacheEntry, utcnow

        now = utcnow()
        entry = self._session.get(CacheEntry, key) or CacheEntry(key=key)
        entry.payload = json.dumps(value)
        entry.cached_at = now
        entry.expires_at = now + timedelta(seconds=ttl)
        entry.stale_until = now + timedelta(seconds=ttl + stale_ttl)
        self._session.add(entry)
        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def remove(self, key: str) -> None:
        from petcheck.models.models import CacheEntry

        entry = self._session.get(CacheEntry, key)
        if entry is None:
            return
        self._session.delete(entry)
        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def purge_expired(self) -> int:
        from petcheck.models.models import CacheEntry, utcnow

        now = utcnow()
        try:
            removed = (
                self._session.query(CacheEntry)
                .filter(CacheEntry.stale_until <= now)
                .delete(synchronize_session=False)
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        return removed
