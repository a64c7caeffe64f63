"""Conflict resolution session.

Holds the conflicts detected by the latest sync cycle. The merge already
applied the remote version of each; resolving a conflict either confirms
that (use remote) or switches the item back to its pre-merge local version
(keep local). The pending list is replaced wholesale by each sync cycle.
"""

import logging
from typing import List, Optional

from quotebook.collection import Collection
from quotebook.types import Conflict, Item

logger = logging.getLogger(__name__)

USE_REMOTE = "remote"
KEEP_LOCAL = "local"
STRATEGIES = (USE_REMOTE, KEEP_LOCAL)


class ConflictSession:
    """Pending conflicts plus the actions that resolve them.

    Shares the collection lock, so resolutions never interleave with a merge.
    The pending list is kept in the collection's store so it survives restarts.
    """

    def __init__(self, collection: Collection):
        self.collection = collection
        self._pending: List[Conflict] = collection.store.load_conflicts()

    def _save(self, conflicts: List[Conflict]) -> None:
        self.collection.store.save_conflicts(conflicts)
        self._pending = conflicts

    def replace(self, conflicts: List[Conflict]) -> None:
        """Discard the previous cycle's conflicts and hold the new set."""
        with self.collection.lock:
            discarded = len(self._pending)
            self._save(list(conflicts))
        if discarded:
            logger.debug("Discarded %d stale conflict(s)", discarded)

    @property
    def pending(self) -> List[Conflict]:
        with self.collection.lock:
            return list(self._pending)

    def __len__(self) -> int:
        return len(self.pending)

    def get(self, conflict_id: str) -> Optional[Conflict]:
        return next((c for c in self.pending if c.id == conflict_id), None)

    def _resolve(self, conflict_id: str, replacement_for) -> bool:
        with self.collection.lock:
            conflict = next((c for c in self._pending if c.id == conflict_id), None)
            if conflict is None:
                return False

            replacement: Item = replacement_for(conflict)

            # The replacement goes last so it wins any identity-key clash.
            def apply(items: List[Item]) -> List[Item]:
                if not any(item.id == conflict.id for item in items):
                    return items
                return [item for item in items if item.id != conflict.id] + [replacement]

            self.collection.update(apply)
            self._save([c for c in self._pending if c is not conflict])
        return True

    def resolve_use_remote(self, conflict_id: str) -> bool:
        """Keep the remote version for the conflicted item.

        Returns:
            False if no conflict with that id is pending.
        """
        resolved = self._resolve(conflict_id, lambda c: c.remote)
        if resolved:
            logger.info("Conflict %s resolved: used remote version", conflict_id)
        return resolved

    def resolve_keep_local(self, conflict_id: str) -> bool:
        """Switch the conflicted item back to its pre-merge local version.

        The restored item is marked unacknowledged so it is offered for
        publication again.

        Returns:
            False if no conflict with that id is pending.
        """
        now = self.collection.now()
        resolved = self._resolve(
            conflict_id, lambda c: c.local.evolve(acknowledged=False, revised_at=now)
        )
        if resolved:
            logger.info("Conflict %s resolved: kept local version", conflict_id)
        return resolved

    def resolve_all(self, strategy: str) -> int:
        """Resolve every pending conflict the same way. Returns the count resolved."""
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {strategy!r}")
        resolve = self.resolve_use_remote if strategy == USE_REMOTE else self.resolve_keep_local
        return sum(1 for conflict in self.pending if resolve(conflict.id))
