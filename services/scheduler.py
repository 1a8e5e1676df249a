"""Periodic fetch, merge and aggregation of vehicle counts."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from enum import Enum
from functools import lru_cache
from threading import Event, Lock, Thread
from typing import Callable, List, Optional

from datastore.record_store import RecordStore, build_default_store
from datastore.snapshot_cache import SnapshotCache, build_default_cache
from models.records import VehicleCount
from services.aggregator import Aggregator
from services.clock import initial_watermark, utcnow
from services.errors import (
    FetchTimeoutError,
    IntegrityViolation,
    StoreUnavailableError,
    TrafficPipelineError,
)
from services.window import RollingWindow
from settings import get_settings
from storage.camera_catalog import build_default_catalog

logger = logging.getLogger(__name__)


class CycleState(str, Enum):
    idle = "idle"
    fetching = "fetching"


class CycleOutcome(str, Enum):
    published = "published"
    skipped = "skipped"
    failed = "failed"


class RefreshService:
    """Owns the watermark, the rolling window and the refresh loop.

    At most one cycle runs at a time. A tick that arrives while a cycle is in
    flight is dropped rather than queued.
    """

    def __init__(
        self,
        store: RecordStore,
        aggregator: Aggregator,
        cache: SnapshotCache,
        window: Optional[RollingWindow] = None,
        interval_seconds: float = 600.0,
        query_timeout_seconds: float = 60.0,
        watermark: Optional[datetime] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.cache = cache
        self.window = window if window is not None else RollingWindow(aggregator.tz)
        self.interval_seconds = interval_seconds
        self.query_timeout_seconds = query_timeout_seconds
        self._clock = clock
        self.watermark = (
            watermark
            if watermark is not None
            else initial_watermark(aggregator.launch_day, aggregator.tz, clock())
        )
        self._state = CycleState.idle
        self._cycle_lock = Lock()
        self._query_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-store")
        self._stop = Event()
        self._thread: Optional[Thread] = None

    @property
    def state(self) -> CycleState:
        return self._state

    def run_cycle(self) -> CycleOutcome:
        """Fetch, merge, aggregate and publish once; never raises."""
        if not self._cycle_lock.acquire(blocking=False):
            logger.info(
                "Refresh already in progress; dropping tick",
                extra={"cycle_state": self._state.value},
            )
            return CycleOutcome.skipped

        self._state = CycleState.fetching
        try:
            self._refresh()
        except IntegrityViolation as exc:
            logger.exception(
                "Aggregated data failed integrity checks; keeping previous snapshot",
                extra={
                    "intersection": getattr(exc, "intersection", getattr(exc, "name", None)),
                    "day": getattr(exc, "day", None),
                    "slot_count": getattr(exc, "slot_count", None),
                },
            )
            return CycleOutcome.failed
        except StoreUnavailableError as exc:
            logger.warning("Fetching vehicle counts failed: %s", exc)
            return CycleOutcome.failed
        except Exception:  # a broken cycle must not stop the refresh loop
            logger.exception("Refresh cycle failed unexpectedly; keeping previous snapshot")
            return CycleOutcome.failed
        finally:
            self._state = CycleState.idle
            self._cycle_lock.release()
        return CycleOutcome.published

    def start(self) -> None:
        """Run one cycle right away, then one per interval, on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._run_loop, name="refresh-loop", daemon=True)
        self._thread.start()

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
            self._thread = None
        self._query_executor.shutdown(wait=False, cancel_futures=True)

    def _run_loop(self) -> None:
        logger.info("Updating every %g minutes", self.interval_seconds / 60)
        next_tick = time.monotonic()
        while not self._stop.is_set():
            self.run_cycle()
            next_tick += self.interval_seconds
            now = time.monotonic()
            if now > next_tick:
                missed = int((now - next_tick) // self.interval_seconds) + 1
                logger.warning("Refresh cycle overran its interval; dropping %d tick(s)", missed)
                next_tick += missed * self.interval_seconds
            self._stop.wait(next_tick - now)

    def _refresh(self) -> None:
        start_time = time.perf_counter()
        since = self.watermark
        # Advanced before querying; overlapping re-fetches collapse in the id merge.
        self.watermark = self._clock()
        try:
            fetched = self._fetch(since)
        except StoreUnavailableError:
            self.watermark = since
            raise

        now = self.watermark
        window = self.window.absorb(fetched, now)
        logger.info(
            "Fetched %d records after %s",
            len(fetched),
            since.astimezone(self.aggregator.tz).isoformat(),
            extra={
                "watermark": now.isoformat(),
                "record_count": len(fetched),
                "window_size": len(window),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )

        start_time = time.perf_counter()
        snapshot = self.aggregator.aggregate(window, now)
        self.cache.publish(snapshot)
        logger.info(
            "Processed %d intersections",
            len(snapshot),
            extra={
                "intersection_count": len(snapshot),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )

    def _fetch(self, since: datetime) -> List[VehicleCount]:
        future = self._query_executor.submit(self.store.find_newer_than, since)
        try:
            return list(future.result(timeout=self.query_timeout_seconds))
        except FutureTimeoutError as exc:
            future.cancel()
            raise FetchTimeoutError(self.query_timeout_seconds) from exc
        except TrafficPipelineError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(f"Record store query failed: {exc}") from exc


@lru_cache
def build_default_refresher() -> RefreshService:
    """Factory that wires the refresh service from settings."""
    settings = get_settings()
    aggregator = Aggregator(
        catalog=build_default_catalog(),
        tz=settings.time_zone,
        launch_day=settings.launch_day,
    )
    return RefreshService(
        store=build_default_store(),
        aggregator=aggregator,
        cache=build_default_cache(),
        interval_seconds=settings.refresh_interval_seconds,
        query_timeout_seconds=settings.query_timeout_seconds,
    )
