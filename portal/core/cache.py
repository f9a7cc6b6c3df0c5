from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Optional

from .config import CACHE_DEFAULT_TTL_SECONDS, CACHE_PRUNE_INTERVAL_SECONDS


class CacheClient:
    """In-process key/value cache with per-key expiry.

    Values go through JSON on the way in and out, so callers always get a
    fresh copy and never share mutable state with other requests. Expired
    entries and finished rate-limit windows are swept on write, at most once
    per ``prune_interval`` seconds.
    """

    def __init__(
        self,
        default_ttl: int = CACHE_DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        prune_interval: float = CACHE_PRUNE_INTERVAL_SECONDS,
    ) -> None:
        self.default_ttl = default_ttl
        self.prune_interval = prune_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[Optional[float], str]] = {}
        self._windows: dict[str, tuple[float, int, float]] = {}
        self._last_prune = clock()

    def get_json(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, raw = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return None
        return json.loads(raw)

    def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl_seconds = self.default_ttl if ttl is None else ttl
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds > 0 else None
        raw = json.dumps(value)
        with self._lock:
            self._maybe_prune_locked(now)
            self._entries[key] = (expires_at, raw)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._windows.clear()

    def prune(self) -> None:
        with self._lock:
            self._prune_locked(self._clock())

    def check_rate_limit(self, key: str, limit: int, window_seconds: int = 60) -> bool:
        if limit <= 0:
            return True
        now = self._clock()
        with self._lock:
            self._maybe_prune_locked(now)
            started, count, _ = self._windows.get(key, (now, 0, window_seconds))
            if now - started > window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count, window_seconds)
        return count <= limit

    def _maybe_prune_locked(self, now: float) -> None:
        if now - self._last_prune >= self.prune_interval:
            self._prune_locked(now)

    def _prune_locked(self, now: float) -> None:
        self._last_prune = now
        expired = [
            key
            for key, (expires_at, _) in self._entries.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._entries[key]
        finished = [
            key
            for key, (started, _, window_seconds) in self._windows.items()
            if now - started > window_seconds
        ]
        for key in finished:
            del self._windows[key]


cache_client = CacheClient()
