"""In-memory response cache with coalesced loads and background refresh.

:class:`ResponseCache` maps an API path to the last :class:`RawResponse`
loaded for it.  A miss loads the path synchronously through the loader
(normally :meth:`HttpTransport.get <alphatrader.client.HttpTransport.get>`)
and stores the result whatever its status code.  Concurrent misses for the
same path share a single load.

Entries are evicted least-recently-accessed first once ``max_entries`` is
reached, and expire when they have not been read for
``expire_after_access_seconds``.  A single daemon thread, started with
:meth:`ResponseCache.start`, reloads every resident path each
``refresh_interval_minutes``; a failed reload keeps the previous value.

See Also:
    :class:`~alphatrader.models.CacheConfig` -- sizing and timing settings.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from alphatrader.models import CacheConfig, RawResponse

logger = logging.getLogger(__name__)

Loader = Callable[[str], RawResponse]


@dataclass(frozen=True)
class CacheEntry:
    """One cached response.

    Entries are never mutated; every access or reload stores a new one.
    """

    response: RawResponse
    loaded_at: float
    last_accessed: float
    failed_refreshes: int = 0


@dataclass
class _InFlight:
    """A load in progress.  ``store`` is set once any reader waits on it."""

    future: Future = field(default_factory=Future)
    store: bool = False


@dataclass
class RefreshReport:
    """Outcome of one refresh cycle."""

    refreshed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ResponseCache:
    """Bounded, access-expiring path -> response cache.

    Args:
        loader: Called with a path on every miss and refresh.  May raise;
            exceptions are never stored.
        config: Sizing and timing settings.  Defaults to
            :class:`~alphatrader.models.CacheConfig` defaults.
        clock: Monotonic time source, replaceable in tests.

    Example::

        cache = ResponseCache(transport.get, CacheConfig(max_entries=100))
        with cache:  # starts and stops the refresher
            raw = cache.get("/api/companies")
    """

    def __init__(
        self,
        loader: Loader,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, _InFlight] = {}
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._refresher: Optional[threading.Thread] = None

    @property
    def config(self) -> CacheConfig:
        return self._config

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def get(self, path: str) -> RawResponse:
        """Return the response for *path*, loading it on a miss.

        Args:
            path: API endpoint suffix, used verbatim as the key.

        Returns:
            The cached or freshly loaded response.

        Raises:
            Exception: Whatever the loader raised, e.g.
                :class:`~alphatrader.exceptions.TransportError`.  Every
                caller waiting on the same load sees the same exception.
        """
        return self._load(path)

    def peek(self, path: str) -> Optional[RawResponse]:
        """Return the cached response without loading or touching access time."""
        with self._lock:
            entry = self._entries.get(path)
            if entry is None or self._is_expired(entry, self._clock()):
                return None
            return entry.response

    def entry(self, path: str) -> Optional[CacheEntry]:
        """Return the raw :class:`CacheEntry` for *path*, if resident."""
        with self._lock:
            return self._entries.get(path)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, path: str) -> bool:
        """Reload *path* in place.

        On failure the previous value stays resident and its
        ``failed_refreshes`` count goes up.

        Returns:
            ``True`` if the reload succeeded.
        """
        try:
            self._load(path, touch=False)
        except Exception as exc:
            logger.warning("Refresh of %s failed, keeping cached value: %s", path, exc)
            logger.debug("Refresh failure detail for %s", path, exc_info=True)
            with self._lock:
                entry = self._entries.get(path)
                if entry is not None:
                    self._entries[path] = dataclasses.replace(
                        entry, failed_refreshes=entry.failed_refreshes + 1
                    )
            return False
        return True

    def refresh_all(self) -> RefreshReport:
        """Run one refresh cycle over every resident, unexpired path."""
        return self._refresh_cycle(None)

    def _refresh_cycle(self, stop_event: Optional[threading.Event]) -> RefreshReport:
        report = RefreshReport()
        for path in self._resident_paths():
            if stop_event is not None and stop_event.is_set():
                break
            if self.refresh(path):
                report.refreshed.append(path)
            else:
                report.failed.append(path)
        if report.failed:
            logger.info(
                "Refresh cycle: %d refreshed, %d failed",
                len(report.refreshed),
                len(report.failed),
            )
        return report

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the background refresher.  Does nothing if already running."""
        with self._lock:
            if self._refresher is not None:
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._refresh_loop,
                args=(stop_event,),
                name="alphatrader-cache-refresher",
                daemon=True,
            )
            self._stop_event = stop_event
            self._refresher = thread
        thread.start()
        logger.debug(
            "Cache refresher started (every %s minutes)",
            self._config.refresh_interval_minutes,
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background refresher.

        In-flight fetches from other threads are unaffected.  A refresh
        cycle already running finishes its current path first.
        """
        with self._lock:
            thread, stop_event = self._refresher, self._stop_event
            self._refresher = None
            self._stop_event = None
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def running(self) -> bool:
        """Whether the background refresher is alive."""
        with self._lock:
            return self._refresher is not None and self._refresher.is_alive()

    def __enter__(self) -> ResponseCache:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def invalidate(self, path: str) -> None:
        """Remove *path* from the cache.  Missing paths are ignored."""
        with self._lock:
            self._entries.pop(path, None)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        ``stale`` counts entries whose most recent refresh failed.
        """
        with self._lock:
            size = len(self._entries)
            stale = sum(1 for e in self._entries.values() if e.failed_refreshes)
            running = self._refresher is not None and self._refresher.is_alive()
        return {
            "size": size,
            "stale": stale,
            "max_entries": self._config.max_entries,
            "expire_after_access_seconds": self._config.expire_after_access_seconds,
            "refresh_interval_minutes": self._config.refresh_interval_minutes,
            "running": running,
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _load(self, path: str, touch: bool = True) -> RawResponse:
        """Load *path* once, sharing the result with concurrent callers.

        With ``touch=True`` (reads) a resident, unexpired entry is returned
        directly; the lookup and the in-flight check happen under the same
        lock hold.  With ``touch=False`` (refreshes) the load neither counts
        as an access nor re-inserts a path that was evicted meanwhile,
        unless a reader joined it.
        """
        with self._lock:
            if touch:
                now = self._clock()
                entry = self._entries.get(path)
                if entry is not None:
                    if not self._is_expired(entry, now):
                        self._entries[path] = dataclasses.replace(entry, last_accessed=now)
                        self._entries.move_to_end(path)
                        return entry.response
                    del self._entries[path]
            slot = self._inflight.get(path)
            owner = slot is None
            if owner:
                slot = _InFlight(store=touch)
                self._inflight[path] = slot
            elif touch:
                slot.store = True
        if not owner:
            return slot.future.result()

        try:
            response = self._loader(path)
        except BaseException as exc:
            with self._lock:
                del self._inflight[path]
            slot.future.set_exception(exc)
            raise

        with self._lock:
            if slot.store or path in self._entries:
                self._store(path, response, slot.store)
            del self._inflight[path]
        slot.future.set_result(response)
        return response

    def _store(self, path: str, response: RawResponse, touch: bool) -> None:
        """Insert or replace *path*.  Caller holds the lock."""
        now = self._clock()
        previous = self._entries.get(path)
        if previous is None:
            while len(self._entries) >= self._config.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted %s", evicted)
        last_accessed = now if touch or previous is None else previous.last_accessed
        self._entries[path] = CacheEntry(
            response=response, loaded_at=now, last_accessed=last_accessed
        )
        if touch:
            self._entries.move_to_end(path)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.last_accessed >= self._config.expire_after_access_seconds

    def _resident_paths(self) -> list[str]:
        """Drop expired entries and return a snapshot of the remaining keys."""
        with self._lock:
            now = self._clock()
            expired = [p for p, e in self._entries.items() if self._is_expired(e, now)]
            for path in expired:
                del self._entries[path]
            return list(self._entries)

    def _refresh_loop(self, stop_event: threading.Event) -> None:
        interval = self._config.refresh_interval_seconds
        while not stop_event.wait(interval):
            self._refresh_cycle(stop_event)
