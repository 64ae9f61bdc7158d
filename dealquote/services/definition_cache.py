"""In-process TTL cache for custom field definitions."""
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class _InFlight:
    """A load in progress; waiters block on ``done`` and read the outcome."""

    def __init__(self):
        self.done = threading.Event()
        self.value: Any = None
        self.error: Optional[BaseException] = None


class DefinitionCache:
    """
    Per-key cache with expiry and request coalescing.

    Concurrent ``get`` calls for a key that is not cached share a single
    ``loader(key)`` call. A failed load is not cached; every waiter of that
    load receives the same exception.

    Args:
        loader: called with the key on a miss
        ttl_seconds: lifetime of a loaded entry
        clock: monotonic time source in seconds
    """

    def __init__(self, loader: Callable[[Hashable], Any], ttl_seconds: float = 300,
                 clock: Callable[[], float] = time.monotonic):
        if ttl_seconds < 0:
            raise ValueError('ttl_seconds must be >= 0')
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._in_flight: Dict[Hashable, _InFlight] = {}

    def get(self, key: Hashable) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                expires_at, value = entry
                if self._clock() < expires_at:
                    return value
                del self._entries[key]

            flight = self._in_flight.get(key)
            owner = flight is None
            if owner:
                flight = _InFlight()
                self._in_flight[key] = flight

        if not owner:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.value

        try:
            value = self._loader(key)
        except Exception as e:
            flight.error = e
            with self._lock:
                if self._in_flight.get(key) is flight:
                    self._in_flight.pop(key, None)
            flight.done.set()
            logger.warning(f"[DEFINITION_CACHE] Load failed for {key}: {e}")
            raise

        flight.value = value
        with self._lock:
            # An invalidate during the load drops our flight; don't cache stale data then
            if self._in_flight.get(key) is flight:
                self._entries[key] = (self._clock() + self._ttl, value)
                self._in_flight.pop(key, None)
        flight.done.set()
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._in_flight.pop(key, None)
        logger.debug(f"[DEFINITION_CACHE] Invalidated {key}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._in_flight.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry[0]

    def __len__(self):
        with self._lock:
            return len(self._entries)
