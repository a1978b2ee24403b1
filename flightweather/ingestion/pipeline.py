"""
Live pipeline - orchestrates data flow from OpenSky to the marker layer.

Pipeline stages:
1. Fetch: Poll OpenSky for airborne aircraft inside the tracked bounds
2. Hand off: Submit the snapshot to the UpdateScheduler
3. Diff: On each (throttled) application, diff the rendered snapshot
   against the newest one
4. Apply: Add/update/remove markers for the changed aircraft only

Fetch cadence (30-120s) and render cadence (at most every 500ms) are
independent. Cycles start on a fixed-period ticker, each on its own thread,
so a hung request stalls only its own cycle. A slow cycle is never
cancelled; whatever it returns is applied when it completes.
"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from flightweather.config import config
from flightweather.display.markers import MarkerLayer
from flightweather.ingestion.fetcher import BoundedFetcher
from flightweather.models import BoundingBox, Snapshot
from flightweather.sync.differ import diff
from flightweather.sync.scheduler import UpdateScheduler, start_thread_timer

logger = logging.getLogger(__name__)


def bounds_from_config() -> BoundingBox:
    return BoundingBox(
        north=config.bounds.north,
        south=config.bounds.south,
        east=config.bounds.east,
        west=config.bounds.west,
    )


class LivePipeline:
    """
    Manages the fetch -> diff -> apply lifecycle.

    Can run as a background ticker for continuous polling, or be driven
    one cycle at a time with fetch_and_process().
    """

    def __init__(
        self,
        fetcher: Optional[BoundedFetcher] = None,
        bounds: Optional[BoundingBox] = None,
        layer: Optional[MarkerLayer] = None,
        render_interval: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        render_clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[[float, Callable[[], None]], Any] = start_thread_timer,
    ):
        """
        Initialize the pipeline.

        Args:
            fetcher: Bounded fetcher (created from config if None)
            bounds: Tracked region (configured bounds if None)
            layer: Marker layer receiving diff batches
            render_interval: Minimum seconds between batch applications
                (configured render interval if None)
            clock: Wall-clock source for fetch timestamps
            render_clock: Monotonic source for the render throttle
            timer_factory: Timer factory for the render throttle
        """
        self.fetcher = fetcher or BoundedFetcher()
        self.bounds = bounds or bounds_from_config()
        self.layer = layer or MarkerLayer()
        self.scheduler = UpdateScheduler(
            self.apply_snapshot,
            interval=render_interval,
            clock=render_clock,
            timer_factory=timer_factory,
        )
        self._clock = clock

        # State tracking
        self._lock = threading.RLock()
        self._latest: Snapshot = Snapshot.empty()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._last_fetch_time: float = 0
        self._fetch_count: int = 0
        self._empty_count: int = 0
        self._error_count: int = 0

    @property
    def latest(self) -> Snapshot:
        with self._lock:
            return self._latest

    def apply_snapshot(self, snapshot: Snapshot) -> int:
        """
        Bring the marker layer in line with `snapshot`.

        Diffs against what the layer currently renders rather than against
        the previous fetch, so a snapshot coalesced away by the scheduler
        loses nothing. Returns the number of operations applied.
        """
        operations = diff(self.layer.snapshot, snapshot)
        if operations:
            self.layer.apply(operations, fetched_at=snapshot.fetched_at)
        return len(operations)

    def fetch_and_process(self) -> int:
        """
        Execute one fetch cycle.

        Returns count of aircraft in the new snapshot. An empty snapshot
        (fetch failed or nothing airborne) is not applied, so the map keeps
        showing the last successful snapshot.

        Raises:
            TokenExchangeError if the access token could not be obtained
        """
        snapshot = self.fetcher.fetch(self.bounds)

        with self._lock:
            self._last_fetch_time = self._clock()
            self._fetch_count += 1

        if not snapshot:
            with self._lock:
                self._empty_count += 1
            logger.debug('No aircraft in range')
            return 0

        with self._lock:
            self._latest = snapshot

        self.scheduler.submit(snapshot)

        logger.info(f'Fetched {len(snapshot)} airborne aircraft')

        return len(snapshot)

    def _run_cycle(self) -> None:
        """Ticker target; a failed cycle is logged and counted."""
        try:
            self.fetch_and_process()
        except Exception as e:
            with self._lock:
                self._error_count += 1
            logger.error(f'Fetch cycle failed: {e}')

    def run_continuous(self, interval: Optional[float] = None) -> None:
        """
        Start a cycle every `interval` seconds until stopped.

        This method blocks - use start_background() for non-blocking.
        """
        interval = interval or config.ingestion.poll_interval
        self._running = True
        self._stop_event.clear()

        logger.info(f'Starting continuous polling (interval={interval}s)')

        next_run = time.monotonic()
        while not self._stop_event.is_set():
            threading.Thread(target=self._run_cycle, name='fetch-cycle', daemon=True).start()
            next_run += interval
            self._stop_event.wait(max(0.0, next_run - time.monotonic()))

        self._running = False
        logger.info('Polling stopped')

    def start_background(self, interval: Optional[float] = None) -> None:
        """Start polling in background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning('Polling already running')
            return

        self._thread = threading.Thread(
            target=self.run_continuous,
            args=(interval,),
            name='fetch-ticker',
            daemon=True,
        )
        self._thread.start()
        logger.info('Background polling started')

    def stop(self) -> None:
        """Stop background polling and flush any pending render batch."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        self.scheduler.flush()
        self._running = False

    @property
    def stats(self) -> dict:
        """Get pipeline statistics."""
        with self._lock:
            return {
                'fetch_count': self._fetch_count,
                'empty_count': self._empty_count,
                'error_count': self._error_count,
                'last_fetch_time': self._last_fetch_time,
                'latest_count': len(self._latest),
                'displayed_count': len(self.layer),
                'running': self._running,
            }
