"""
Update scheduler - caps how often batches reach the renderer.

Leading-then-trailing throttle expressed as a small state machine:

    IDLE --submit (interval elapsed)--> fire now, stay IDLE
    IDLE --submit (too soon)--------> PENDING, arm timer for the remainder
    PENDING --submit----------------> replace pending arguments
    PENDING --timer-----------------> fire with latest arguments, IDLE

The wrapped function therefore runs at most once per interval, and the
last call in a burst is never lost.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from flightweather.config import config

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = 'idle'
    PENDING = 'pending'


def start_thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Default timer factory. The returned object must support cancel()."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class UpdateScheduler:
    """
    Throttles calls to `apply_fn`.

    Args:
        apply_fn: Batch application function
        interval: Minimum seconds between invocations
        clock: Monotonic time source
        timer_factory: `(delay, callback) -> handle with cancel()`
    """

    def __init__(
        self,
        apply_fn: Callable[..., Any],
        interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[[float, Callable[[], None]], Any] = start_thread_timer,
    ):
        self.apply_fn = apply_fn
        self.interval = config.ingestion.render_interval if interval is None else interval
        self._clock = clock
        self._timer_factory = timer_factory

        self._state = SchedulerState.IDLE
        self._last_fire: Optional[float] = None
        self._pending: Optional[Tuple[tuple, dict]] = None
        self._timer: Any = None
        # Identifies the armed timer; callbacks from retired timers do nothing
        self._generation = 0
        self._lock = threading.RLock()

        # Statistics
        self._submitted = 0
        self._applied = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    def submit(self, *args, **kwargs) -> None:
        """Request an application; runs now or at the end of the interval."""
        with self._lock:
            self._submitted += 1
            now = self._clock()

            if self._state is SchedulerState.IDLE and (
                self._last_fire is None or now - self._last_fire >= self.interval
            ):
                self._last_fire = now
                self._invoke(args, kwargs)
                return

            self._pending = (args, kwargs)
            if self._state is SchedulerState.IDLE:
                delay = max(0.0, self.interval - (now - self._last_fire))
                self._state = SchedulerState.PENDING
                self._generation += 1
                generation = self._generation
                self._timer = self._timer_factory(
                    delay, lambda: self._fire_pending(generation)
                )

    def flush(self) -> None:
        """Run the pending call now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._fire_pending(self._generation)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = None
            self._pending = None
            self._state = SchedulerState.IDLE

    def _fire_pending(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if self._state is not SchedulerState.PENDING or self._pending is None:
                return
            self._generation += 1
            args, kwargs = self._pending
            self._pending = None
            self._timer = None
            self._state = SchedulerState.IDLE
            self._last_fire = self._clock()
            self._invoke(args, kwargs)

    def _invoke(self, args: tuple, kwargs: dict) -> None:
        self._applied += 1
        try:
            self.apply_fn(*args, **kwargs)
        except Exception as e:
            logger.error(f'Batch application failed: {e}')

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                'state': self._state.value,
                'interval': self.interval,
                'submitted': self._submitted,
                'applied': self._applied,
            }
