"""A small persistent cache for the results of slow or rate limited calls."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sqlite3
import threading
import time
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

import platformdirs

log = logging.getLogger(__name__)

CACHE_DIR_ENV = "GOVEE_CACHE_DIR"
CACHE_FILE_NAME = "govee2mqtt-cache.sqlite"


class CachedError(RuntimeError):
    """An error produced by a computation, possibly replayed from the cache."""


@dataclass(frozen=True)
class CacheGetOptions:
    """How a cached value is looked up and how long results are kept.

    ``soft_ttl`` is how long a successful value is served without
    recomputing it; ``hard_ttl`` is how long the record stays in the
    store at all; ``negative_ttl`` is how long a failure is remembered.
    With ``allow_stale`` a failed refresh falls back to the prior value.
    """

    key: str
    topic: str
    soft_ttl: timedelta
    hard_ttl: timedelta
    negative_ttl: timedelta
    allow_stale: bool = False


@dataclass(frozen=True)
class CacheComputeResult:
    """A computed value, optionally with its own soft TTL."""

    value: Any
    ttl: timedelta | None = None

    def into_inner(self) -> Any:
        return self.value


class Cache:
    """Key/value store split into topics, with per-record expiry, in SQLite."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
        with self._lock, self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS entries ("
                " topic TEXT NOT NULL,"
                " key TEXT NOT NULL,"
                " data BLOB NOT NULL,"
                " expires REAL,"
                " PRIMARY KEY (topic, key))"
            )

    def get(self, topic: str, key: str) -> bytes | None:
        """Return the stored bytes, or None if absent or expired."""
        with self._lock, self._conn:
            row = self._conn.execute(
                "SELECT data, expires FROM entries WHERE topic = ? AND key = ?",
                (topic, key),
            ).fetchone()
            if row is None:
                return None
            data, expires = row
            if expires is not None and expires <= time.time():
                self._conn.execute(
                    "DELETE FROM entries WHERE topic = ? AND key = ?", (topic, key)
                )
                return None
            return bytes(data)

    def put(
        self, topic: str, key: str, data: bytes, ttl: timedelta | None = None
    ) -> None:
        """Store *data*; it expires after *ttl* unless that is None."""
        expires = None if ttl is None else time.time() + ttl.total_seconds()
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO entries (topic, key, data, expires)"
                " VALUES (?, ?, ?, ?)",
                (topic, key, bytes(data), expires),
            )

    def delete(self, topic: str, key: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "DELETE FROM entries WHERE topic = ? AND key = ?", (topic, key)
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "Cache":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


_cache: Cache | None = None
_cache_guard = threading.Lock()
_update_locks: "weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


def cache_file_name() -> Path:
    """Location of the cache database."""
    configured = os.environ.get(CACHE_DIR_ENV)
    cache_dir = Path(configured) if configured else Path(platformdirs.user_cache_dir())
    return cache_dir / CACHE_FILE_NAME


def open_cache() -> Cache:
    return Cache(cache_file_name())


def _current_cache() -> Cache:
    global _cache
    path = cache_file_name()
    with _cache_guard:
        if _cache is None or _cache.path != path:
            if _cache is not None:
                _cache.close()
            _cache = Cache(path)
        return _cache


def purge_cache() -> None:
    """Delete the cache database and start afresh with an empty one."""
    global _cache
    path = cache_file_name()
    with _cache_guard:
        if _cache is not None:
            _cache.close()
            _cache = None
        path.unlink()
        _cache = Cache(path)


def invalidate_key(topic: str, key: str) -> None:
    _current_cache().delete(topic, key)


@dataclass
class _Entry:
    expires: datetime
    value: Any = None
    error: str | None = None

    def to_json(self) -> bytes:
        result = {"Err": self.error} if self.error is not None else {"Ok": self.value}
        doc = {"expires": self.expires.isoformat(), "result": result}
        return json.dumps(doc, indent=2).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> "_Entry":
        doc = json.loads(raw)
        expires = datetime.fromisoformat(doc["expires"])
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        result = doc["result"]
        if not isinstance(result, dict) or len(result) != 1:
            raise ValueError(f"malformed result {result!r}")
        if "Ok" in result:
            return cls(expires, value=result["Ok"])
        if "Err" in result:
            return cls(expires, error=str(result["Err"]))
        raise ValueError(f"malformed result {result!r}")

    def unwrap(self) -> Any:
        if self.error is not None:
            raise CachedError(self.error)
        return self.value


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _describe(err: BaseException) -> str:
    return str(err) or type(err).__name__


async def cache_get(
    options: CacheGetOptions, compute: Callable[[], Awaitable[Any]]
) -> Any:
    """Return the cached value for the options' key, computing it when stale.

    *compute* is called with no arguments and awaited only on a miss.  It
    may return a :class:`CacheComputeResult` to choose its own TTL; any
    other value is cached for ``soft_ttl``.  Failures are remembered for
    ``negative_ttl`` and raised as :class:`CachedError`.
    """
    cache = _current_cache()
    lock_key = (options.topic, options.key)
    lock = _update_locks.get(lock_key)
    if lock is None:
        lock = asyncio.Lock()
        _update_locks[lock_key] = lock

    async with lock:
        prior: _Entry | None = None
        raw = cache.get(options.topic, options.key)
        if raw is not None:
            try:
                entry = _Entry.from_json(raw)
            except (ValueError, KeyError, TypeError) as err:
                log.warning(
                    "Error parsing cache entry: %s %r",
                    err,
                    raw.decode("utf-8", errors="replace"),
                )
            else:
                if _now() < entry.expires:
                    log.debug("cache hit for %s", options.key)
                    return entry.unwrap()
                prior = entry

        log.debug("cache miss for %s", options.key)
        try:
            computed = await compute()
        except Exception as err:
            message = _describe(err)
            if prior is not None and options.allow_stale:
                prior.expires = _now() + options.negative_ttl
                log.warning("%s, will use prior results", message)
                if prior.error is not None:
                    prior.error = message
                cache.put(options.topic, options.key, prior.to_json(), options.hard_ttl)
                return prior.unwrap()
            entry = _Entry(_now() + options.negative_ttl, error=message)
            cache.put(options.topic, options.key, entry.to_json(), options.hard_ttl)
            raise CachedError(message) from err

        if not isinstance(computed, CacheComputeResult):
            computed = CacheComputeResult(computed)
        ttl = computed.ttl if computed.ttl is not None else options.soft_ttl
        entry = _Entry(_now() + ttl, value=computed.value)
        cache.put(options.topic, options.key, entry.to_json(), options.hard_ttl)
        return computed.value