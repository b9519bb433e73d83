"""In-memory response cache with request de-duplication for API clients.

Entries are advisory: they expire after a fixed TTL and may be dropped at any
time without changing results.
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DURATION = 5 * 60  # seconds


class DataManager:
    def __init__(self, default_cache_duration: float = DEFAULT_CACHE_DURATION, clock: Callable[[], float] = time.monotonic):
        self.default_cache_duration = default_cache_duration
        self._clock = clock
        self._cache: Dict[str, Tuple[Any, float]] = {}  # key -> (value, expires_at)
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def fetch_with_cache(
        self,
        key: str,
        request_fn: Callable[[], Any],
        *,
        force_refresh: bool = False,
        cache_duration: Optional[float] = None,
    ) -> Any:
        """Return the cached value for ``key`` or call ``request_fn`` once to fetch it.

        Concurrent callers asking for the same key while a fetch is in flight wait
        for that fetch instead of issuing their own.
        """
        duration = self.default_cache_duration if cache_duration is None else cache_duration

        with self._lock:
            if not force_refresh:
                cached = self._cache.get(key)
                if cached is not None:
                    if self._clock() < cached[1]:
                        logger.debug("Cache hit for %s", key)
                        return cached[0]
                    del self._cache[key]
            pending = self._pending.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._pending[key] = pending

        if not owner:
            return pending.result()

        logger.debug("Cache miss for %s", key)
        try:
            data = request_fn()
        except BaseException as exc:
            pending.set_exception(exc)
            raise
        else:
            with self._lock:
                now = self._clock()
                self._prune_expired(now)
                self._cache[key] = (data, now + duration)
            pending.set_result(data)
            return data
        finally:
            with self._lock:
                self._pending.pop(key, None)

    def _prune_expired(self, now: float) -> None:
        # Caller holds the lock
        for key in [k for k, (_, expires_at) in self._cache.items() if expires_at <= now]:
            del self._cache[key]

    def invalidate(self, pattern: Optional[str] = None) -> None:
        """Drop entries whose key contains ``pattern``, or everything when omitted."""
        with self._lock:
            if pattern is None:
                self._cache.clear()
                logger.debug("Cache cleared")
                return
            for key in [k for k in self._cache if pattern in k]:
                del self._cache[key]
                logger.debug("Cache invalidated for %s", key)

    def stats(self) -> dict:
        with self._lock:
            self._prune_expired(self._clock())
            return {"size": len(self._cache), "keys": list(self._cache)}
