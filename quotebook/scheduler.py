"""Fixed-interval sync scheduler.

Runs sync cycles on a background thread. A tick that arrives while the
previous cycle is still running is skipped; the next tick retries.
"""

import logging
import threading
from typing import Callable, Optional

from quotebook.sync_engine import SyncEngine
from quotebook.types import SyncResult

logger = logging.getLogger(__name__)

DEFAULT_SYNC_INTERVAL = 30.0


class SyncScheduler:
    """Background timer for sync cycles.

    Args:
        engine: Engine whose ``run_cycle`` is called on each tick.
        interval: Seconds between ticks.
        on_result: Called with each cycle's result (including skipped ticks).
    """

    def __init__(
        self,
        engine: SyncEngine,
        interval: float = DEFAULT_SYNC_INTERVAL,
        on_result: Optional[Callable[[SyncResult], None]] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.engine = engine
        self.interval = interval
        self._on_result = on_result
        self.ticks = 0
        self.skipped_ticks = 0

        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the background sync thread."""
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="quotebook-sync")
        self._thread.start()
        logger.info("SyncScheduler started (interval=%.0fs)", self.interval)

    def stop(self, timeout: float = 5.0) -> None:
        self._running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def trigger(self) -> SyncResult:
        """Run a cycle now on the calling thread (skipped if one is in flight)."""
        return self._tick()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tick(self) -> SyncResult:
        self.ticks += 1
        result = self.engine.run_cycle(blocking=False)
        if result.skipped:
            self.skipped_ticks += 1
            logger.debug("Sync tick skipped, previous cycle still running")
        if self._on_result:
            self._on_result(result)
        return result

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._tick()
            except Exception as e:
                logger.error(f"Sync tick failed: {e}", exc_info=True)
