"""Synchronization and conflict operations for QuoteBook."""

import logging
from typing import Any, Dict, List, Optional

from quotebook.conflicts import KEEP_LOCAL, USE_REMOTE
from quotebook.logging_config import log_resolve, log_sync
from quotebook.publish import is_pending
from quotebook.scheduler import SyncScheduler
from quotebook.types import Conflict, SyncResult, format_datetime

logger = logging.getLogger(__name__)


class SyncMixin:
    """Sync operations for QuoteBook."""

    def sync(self) -> SyncResult:
        """Run a sync cycle now.

        Skipped (``result.skipped``) when a scheduled cycle is already running.
        Remote failures are reported in ``result.errors``; they never raise.
        """
        result = self.sync_engine.run_cycle(blocking=False)
        if not result.skipped:
            self._log_event(
                log_sync, result.pulled, result.pushed, result.conflict_count, len(result.errors)
            )
        return result

    def get_sync_status(self) -> Dict[str, Any]:
        """Pending publications, pending conflicts and the last cycle's outcome."""
        last = self.sync_engine.last_result
        return {
            "remote_url": self.config.remote_url,
            "pending_publish": sum(1 for item in self.collection.items if is_pending(item)),
            "conflicts": len(self.session),
            "last_sync_time": format_datetime(self.sync_engine.last_sync_time),
            "last_errors": list(last.errors) if last else [],
            "auto_sync": self._scheduler is not None and self._scheduler.running,
        }

    # === Conflicts ===

    @property
    def conflicts(self) -> List[Conflict]:
        return self.session.pending

    def resolve_use_remote(self, conflict_id: str) -> bool:
        resolved = self.session.resolve_use_remote(conflict_id)
        if resolved:
            self._log_event(log_resolve, conflict_id, USE_REMOTE)
        return resolved

    def resolve_keep_local(self, conflict_id: str) -> bool:
        resolved = self.session.resolve_keep_local(conflict_id)
        if resolved:
            self._log_event(log_resolve, conflict_id, KEEP_LOCAL)
        return resolved

    def resolve_all(self, strategy: str) -> int:
        if strategy not in (USE_REMOTE, KEEP_LOCAL):
            raise ValueError(f"strategy must be '{USE_REMOTE}' or '{KEEP_LOCAL}', got {strategy!r}")
        resolve = self.resolve_use_remote if strategy == USE_REMOTE else self.resolve_keep_local
        return sum(1 for conflict in self.conflicts if resolve(conflict.id))

    # === Scheduling ===

    def start_auto_sync(self, interval: Optional[float] = None) -> SyncScheduler:
        """Start periodic sync on a background thread."""
        if self._scheduler is None or not self._scheduler.running:
            self._scheduler = SyncScheduler(
                self.sync_engine,
                interval=interval or self.config.sync_interval,
                on_result=self._on_scheduled_result,
            )
            self._scheduler.start()
        return self._scheduler

    def stop_auto_sync(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()
            self._scheduler = None

    def _on_scheduled_result(self, result: SyncResult) -> None:
        if result.skipped:
            return
        if result.errors:
            logger.warning(f"Scheduled sync finished with errors: {result.errors[:3]}")
        self._log_event(
            log_sync, result.pulled, result.pushed, result.conflict_count, len(result.errors)
        )
