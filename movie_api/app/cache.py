"""
cache.py — Process-wide in-memory cache with sliding + absolute expiration.

An entry is dropped when EITHER:
  - it has not been read for `sliding` (each hit pushes the deadline out), or
  - it is older than `absolute`, no matter how often it is read.

Follows the Flask extension pattern used in extensions.py: the object is
created at import time and bound to an app with init_app(), which reads the
default lifetimes from CACHE_SLIDING_EXPIRATION / CACHE_ABSOLUTE_EXPIRATION.

Each get/set/remove is atomic under a lock. Callers that do
"get → miss → compute → set" may compute twice under concurrent cold misses;
the last set wins.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

_DEFAULT_SLIDING  = timedelta(seconds=30)
_DEFAULT_ABSOLUTE = timedelta(seconds=300)


@dataclass
class _Entry:
    value:        Any
    sliding:      float | None   # seconds
    expires_at:   float | None   # absolute deadline, clock seconds
    last_access:  float

    def is_expired(self, now: float) -> bool:
        if self.expires_at is not None and now >= self.expires_at:
            return True
        if self.sliding is not None and now - self.last_access >= self.sliding:
            return True
        return False


class MemoryCache:

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock    = clock
        self._entries: dict[str, _Entry] = {}
        self._lock     = threading.Lock()
        self.default_sliding:  timedelta | None = _DEFAULT_SLIDING
        self.default_absolute: timedelta | None = _DEFAULT_ABSOLUTE

    def init_app(self, app) -> None:
        self.default_sliding = app.config.get("CACHE_SLIDING_EXPIRATION", _DEFAULT_SLIDING)
        self.default_absolute = app.config.get("CACHE_ABSOLUTE_EXPIRATION", _DEFAULT_ABSOLUTE)
        app.extensions["memory_cache"] = self

    # ── Public API ────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            now = self._clock()
            if entry.is_expired(now):
                del self._entries[key]
                return default
            entry.last_access = now
            return entry.value

    def set(
            self,
            key: str,
            value: Any,
            sliding: timedelta | None = None,
            absolute: timedelta | None = None,
    ) -> None:
        sliding = self.default_sliding if sliding is None else sliding
        absolute = self.default_absolute if absolute is None else absolute
        with self._lock:
            now = self._clock()
            self._entries[key] = _Entry(
                value=value,
                sliding=sliding.total_seconds() if sliding else None,
                expires_at=now + absolute.total_seconds() if absolute else None,
                last_access=now,
            )

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def remove_prefix(self, prefix: str) -> int:
        """Drops every key starting with `prefix`; returns how many were dropped."""
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_MISSING = object()
