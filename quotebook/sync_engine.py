"""Sync engine for quotebook.

A cycle is fetch -> merge -> persist -> publish. Only one cycle runs at a
time. The merge itself runs under the collection lock so user actions never
interleave with its read-modify-write; network calls run outside it.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Union

from quotebook.collection import Collection
from quotebook.conflicts import ConflictSession
from quotebook.protocols import RemoteSource, RemoteSourceError
from quotebook.publish import is_pending, publish_pending
from quotebook.reconcile import diff_and_merge
from quotebook.types import Item, SyncResult

logger = logging.getLogger(__name__)


class SyncEngine:
    """Runs sync cycles against a remote source.

    Args:
        collection: The canonical collection.
        remote: Remote source, or None when sync is not configured.
        session: Conflict session repopulated by every cycle.
        publish: Whether to publish pending local quotes after merging.
    """

    def __init__(
        self,
        collection: Collection,
        remote: Optional[RemoteSource],
        session: ConflictSession,
        *,
        publish: bool = True,
    ):
        self.collection = collection
        self.remote = remote
        self.session = session
        self.publish = publish
        self.last_result: Optional[SyncResult] = None
        self.last_sync_time: Optional[datetime] = None
        self._cycle_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._cycle_lock.locked()

    def run_cycle(self, blocking: bool = False) -> SyncResult:
        """Run one sync cycle.

        Args:
            blocking: Wait for a cycle already in flight instead of skipping.

        Returns:
            SyncResult; ``skipped`` is set when another cycle was running.
        """
        if not self._cycle_lock.acquire(blocking=blocking):
            logger.debug("Sync cycle already in progress, skipping")
            return SyncResult(skipped=True)
        try:
            result = self._run_cycle()
        finally:
            self._cycle_lock.release()

        self.last_result = result
        return result

    def _run_cycle(self) -> SyncResult:
        result = SyncResult(started_at=self.collection.now())

        if self.remote is None:
            logger.debug("No remote source configured, skipping sync")
            result.errors.append("No remote source configured")
            result.finished_at = self.collection.now()
            return result

        try:
            snapshot = self.remote.fetch_snapshot()
        except RemoteSourceError as e:
            logger.warning(f"Sync aborted, could not fetch remote snapshot: {e}")
            result.errors.append(f"Fetch failed: {e}")
            result.finished_at = self.collection.now()
            return result

        with self.collection.lock:
            merge = diff_and_merge(self.collection.items, snapshot, now=self.collection.now())
            self.collection.replace(merge.merged)
            self.session.replace(merge.conflicts)

        result.pulled = len(merge.remote_items)
        result.conflicts = merge.conflicts

        if self.publish:
            result.pushed = self._publish()

        result.finished_at = self.collection.now()
        self.last_sync_time = result.finished_at
        logger.info(
            f"Sync complete: pulled={result.pulled}, pushed={result.pushed}, "
            f"conflicts={result.conflict_count}"
        )
        return result

    def _publish(self) -> int:
        pending = [item for item in self.collection.items if is_pending(item)]
        if not pending:
            return 0

        published = publish_pending(pending, self.remote)
        if published.acks:
            self._apply_acks(pending, published.acks)
        return published.published

    def _apply_acks(self, sent: List[Item], acks: Dict[str, Union[int, str]]) -> None:
        """Mark published items acknowledged, unless they changed while in flight."""
        sent_by_id = {item.id: item for item in sent}

        def apply(items: List[Item]) -> List[Item]:
            updated = []
            for item in items:
                before = sent_by_id.get(item.id)
                if (
                    item.id in acks
                    and before is not None
                    and is_pending(item)
                    and item.text == before.text
                    and item.category == before.category
                ):
                    item = item.evolve(acknowledged=True, remote_id=acks[item.id])
                updated.append(item)
            return updated

        self.collection.update(apply)
