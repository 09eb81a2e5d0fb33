"""Insight cache keyed by (user, tab) with optional JSON persistence.

Each slot holds the most recent ``{insights, timestamp, cacheKey}`` entry for
one user and tab. Entries are re-validated on every read against the key
derived for the current request and the 4-hour TTL; stale entries are dropped
on read rather than by a background sweep.

Example:
    cache = InsightCache(path="~/.cache/workhealth/insights.json")
    entry = cache.lookup("user-1", TabType.OVERVIEW, current_key, now)
    if entry is None:
        payload = await generate()
        cache.store("user-1", TabType.OVERVIEW, current_key, payload, now)
"""

from __future__ import annotations

import contextlib
import datetime
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..core.exceptions import CacheReadError
from ..core.timezone_utils import now_utc
from .cache_key import InsightCacheEntry, is_entry_valid
from .models import InsightsPayload, TabType

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES_PER_USER = 8
_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def _tab_value(tab: Union[TabType, str]) -> str:
    return TabType(tab).value


def decode_entry(raw: Any) -> InsightCacheEntry:
    """Turn a stored ``{insights, timestamp, cacheKey}`` mapping into an entry.

    Naive timestamps are read as UTC.

    Raises:
        CacheReadError: If the mapping is malformed
    """
    if not isinstance(raw, dict):
        raise CacheReadError(f"cache entry must be an object, got {type(raw).__name__}")

    try:
        timestamp = datetime.datetime.fromisoformat(str(raw["timestamp"]).replace("Z", "+00:00"))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)
        return InsightCacheEntry(
            cache_key=raw["cacheKey"],
            insights=raw["insights"],
            timestamp=timestamp,
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise CacheReadError(f"malformed cache entry: {e}") from e


def encode_entry(entry: InsightCacheEntry) -> dict[str, Any]:
    """Inverse of ``decode_entry``."""
    return {
        "insights": entry.insights,
        "timestamp": entry.timestamp.isoformat(),
        "cacheKey": entry.cache_key,
    }


class InsightCache:
    """Per-user insight cache with last-write-wins slots.

    Thread-safe. When ``path`` is given the cache is loaded from and written
    back to a JSON file with atomic replace.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        max_entries_per_user: int = DEFAULT_MAX_ENTRIES_PER_USER,
    ) -> None:
        """Create a cache.

        Args:
            path: Optional JSON file for persistence
            max_entries_per_user: Slots kept per user; oldest timestamps evicted first
        """
        if max_entries_per_user < 1:
            raise ValueError("max_entries_per_user must be at least 1")

        self._path = Path(path).expanduser() if path else None
        self.max_entries_per_user = max_entries_per_user
        self._lock = threading.Lock()
        # user_id -> tab -> stored mapping ({insights, timestamp, cacheKey})
        self._entries: dict[str, dict[str, dict[str, Any]]] = {}
        self.stats = {
            "hits": 0,
            "misses": 0,
            "stale": 0,
            "evictions": 0,
            "read_errors": 0,
        }

        if self._path is not None:
            self.load()

    def load(self) -> None:
        """Load entries from disk, replacing in-memory state.

        A missing or unreadable file yields an empty cache. Individual entries
        are validated lazily on read.
        """
        if self._path is None:
            return

        with self._lock:
            if not self._path.exists():
                logger.debug("Insight cache file not found; starting empty: %s", self._path)
                self._entries = {}
                return

            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Failed to read insight cache %s: %s", self._path, exc)
                self._entries = {}
                return

            if not isinstance(data, dict):
                logger.warning("Insight cache %s root is not an object; ignoring", self._path)
                self._entries = {}
                return

            self._entries = {
                str(user_id): dict(slots)
                for user_id, slots in data.items()
                if isinstance(slots, dict)
            }
            logger.debug(
                "Loaded insight cache %s (%d users)", self._path, len(self._entries)
            )

    def _persist_locked(self) -> None:
        """Write the cache to disk atomically. Caller holds the lock."""
        if self._path is None:
            return

        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self._path.parent, delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(self._entries, tf, ensure_ascii=False)
                tf.flush()
                with contextlib.suppress(OSError):
                    os.fsync(tf.fileno())
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("Failed to persist insight cache to %s: %s", self._path, exc)
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()

    def get(self, user_id: str, tab: Union[TabType, str]) -> Optional[InsightCacheEntry]:
        """Return the stored entry for a slot without validity checks.

        Malformed entries are dropped and reported as absent.
        """
        tab_key = _tab_value(tab)
        with self._lock:
            raw = self._entries.get(user_id, {}).get(tab_key)
            if raw is None:
                return None
            try:
                return decode_entry(raw)
            except CacheReadError as e:
                self.stats["read_errors"] += 1
                logger.warning(
                    "Dropping unreadable insight cache entry %s/%s: %s", user_id, tab_key, e
                )
                self._remove_locked(user_id, tab_key)
                self._persist_locked()
                return None

    def lookup(
        self,
        user_id: str,
        tab: Union[TabType, str],
        current_key: str,
        now: Optional[datetime.datetime] = None,
    ) -> Optional[InsightCacheEntry]:
        """Return the entry for a slot if it is valid for ``current_key``.

        Entries with a different key or older than the TTL are removed.

        Args:
            user_id: User identifier
            tab: Dashboard tab
            current_key: Key derived for this request
            now: Current time (defaults to now in UTC)

        Returns:
            Valid entry, or None on a miss
        """
        now = now or now_utc()
        entry = self.get(user_id, tab)

        with self._lock:
            if entry is None:
                self.stats["misses"] += 1
                return None

            if not is_entry_valid(entry, current_key, now):
                self.stats["stale"] += 1
                self.stats["misses"] += 1
                logger.debug(
                    "Insight cache entry for %s/%s is stale (key match=%s, stored %s)",
                    user_id,
                    _tab_value(tab),
                    entry.cache_key == current_key,
                    entry.timestamp.isoformat(),
                )
                self._remove_locked(user_id, _tab_value(tab))
                self._persist_locked()
                return None

            self.stats["hits"] += 1
            logger.debug("Insight cache hit for %s/%s", user_id, _tab_value(tab))
            return entry

    def lookup_payload(
        self,
        user_id: str,
        tab: Union[TabType, str],
        current_key: str,
        now: Optional[datetime.datetime] = None,
    ) -> Optional[InsightsPayload]:
        """Like ``lookup`` but returns the validated payload.

        A cached payload that no longer matches the insights schema counts
        as a read error and a miss.
        """
        entry = self.lookup(user_id, tab, current_key, now)
        if entry is None:
            return None
        try:
            return InsightsPayload.model_validate(entry.insights)
        except ValidationError as e:
            with self._lock:
                self.stats["read_errors"] += 1
                self.stats["hits"] -= 1
                self.stats["misses"] += 1
                self._remove_locked(user_id, _tab_value(tab))
                self._persist_locked()
            logger.warning(
                "Cached insights for %s/%s failed validation (%d errors); treating as miss",
                user_id,
                _tab_value(tab),
                e.error_count(),
            )
            return None

    def store(
        self,
        user_id: str,
        tab: Union[TabType, str],
        cache_key: str,
        payload: Union[InsightsPayload, dict[str, Any]],
        now: Optional[datetime.datetime] = None,
    ) -> InsightCacheEntry:
        """Replace the slot for (user, tab) and evict beyond capacity.

        Args:
            user_id: User identifier
            tab: Dashboard tab
            cache_key: Key the payload was generated for
            payload: Insights document
            now: Entry timestamp (defaults to now in UTC)

        Returns:
            The stored entry
        """
        insights = payload.to_api_dict() if isinstance(payload, InsightsPayload) else payload
        entry = InsightCacheEntry(
            cache_key=cache_key, insights=insights, timestamp=now or now_utc()
        )
        tab_key = _tab_value(tab)

        with self._lock:
            slots = self._entries.setdefault(user_id, {})
            slots.pop(tab_key, None)
            slots[tab_key] = encode_entry(entry)
            self._evict_locked(user_id)
            self._persist_locked()

        logger.debug("Cached insights for %s/%s", user_id, tab_key)
        return entry

    def _evict_locked(self, user_id: str) -> None:
        slots = self._entries.get(user_id, {})
        overflow = len(slots) - self.max_entries_per_user
        if overflow <= 0:
            return

        def _age_key(item: tuple[str, Any]) -> datetime.datetime:
            try:
                return decode_entry(item[1]).timestamp
            except CacheReadError:
                return _EPOCH

        # Malformed entries sort first so they are evicted before valid ones
        for tab_key, _ in sorted(slots.items(), key=_age_key)[:overflow]:
            del slots[tab_key]
            self.stats["evictions"] += 1
            logger.debug("Evicted insight cache entry %s/%s", user_id, tab_key)

    def _remove_locked(self, user_id: str, tab_key: str) -> None:
        slots = self._entries.get(user_id)
        if not slots:
            return
        slots.pop(tab_key, None)
        if not slots:
            del self._entries[user_id]

    def clear_user(self, user_id: str) -> int:
        """Remove every entry for ``user_id``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            removed = len(self._entries.pop(user_id, {}))
            if removed:
                self._persist_locked()
        logger.info("Cleared %d insight cache entries for %s", removed, user_id)
        return removed

    def user_entry_count(self, user_id: str) -> int:
        """Number of slots currently held for ``user_id``."""
        with self._lock:
            return len(self._entries.get(user_id, {}))

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with hits, misses, hit_rate (0-100), stale, evictions,
            read_errors, users and entries
        """
        with self._lock:
            total_requests = self.stats["hits"] + self.stats["misses"]
            hit_rate = (self.stats["hits"] / total_requests * 100) if total_requests > 0 else 0.0
            return {
                **self.stats,
                "hit_rate": round(hit_rate, 2),
                "users": len(self._entries),
                "entries": sum(len(slots) for slots in self._entries.values()),
                "max_entries_per_user": self.max_entries_per_user,
            }
