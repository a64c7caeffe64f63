"""The canonical quote collection.

A single mutable resource owned by the running process. Every mutation
(local edit, merge write, conflict resolution) runs under one re-entrant lock
and is persisted before the in-memory state changes, so the in-memory
collection never runs ahead of the store.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from quotebook.normalize import normalize, random_token, sanitize
from quotebook.protocols import DuplicateItemError, ValidationError
from quotebook.seeds import default_seed_items
from quotebook.storage import ALL_CATEGORIES, CollectionStore
from quotebook.types import Item, Origin, utc_now

logger = logging.getLogger(__name__)


class Collection:
    """Lock-protected, always-persisted set of quotes.

    Args:
        store: Persistence for the serialized collection.
        clock: Returns the current aware datetime. Defaults to UTC now.
        new_id: Returns a random token used in generated ids.
    """

    def __init__(
        self,
        store: CollectionStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        new_id: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self._clock = clock or utc_now
        self._new_id = new_id or random_token
        self._items: List[Item] = []
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The collection mutex. Hold it for read-modify-write sequences."""
        return self._lock

    def now(self) -> datetime:
        return self._clock()

    def new_token(self) -> str:
        return self._new_id()

    # === Loading ===

    def load(self) -> List[Item]:
        """Load the persisted collection, restoring seeds when none is usable."""
        with self._lock:
            records = self.store.load_records()
            if records is None:
                logger.info("No usable stored collection, restoring seed quotes")
                seeds = normalize(default_seed_items(self.now()), now=self.now())
                self._commit(seeds)
            else:
                self._items = normalize(records, now=self.now(), new_id=self._new_id)
            self._loaded = True
            return list(self._items)

    def _ensure_loaded(self):
        if not self._loaded:
            self.load()

    def _commit(self, items: List[Item]) -> List[Item]:
        self.store.save_items(items)
        self._items = items
        return list(items)

    # === Reads ===

    @property
    def items(self) -> List[Item]:
        with self._lock:
            self._ensure_loaded()
            return list(self._items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items)

    def get(self, item_id: str) -> Optional[Item]:
        return next((item for item in self.items if item.id == item_id), None)

    def categories(self) -> List[str]:
        """Distinct categories, sorted case-insensitively."""
        return sorted({item.category for item in self.items}, key=lambda c: (c.casefold(), c))

    def filter(self, category: Optional[str] = None) -> List[Item]:
        items = self.items
        if not category or category == ALL_CATEGORIES:
            return items
        return [item for item in items if item.category == category]

    # === Mutations ===

    def update(self, fn: Callable[[List[Item]], List[Item]]) -> List[Item]:
        """Atomically replace the collection with ``fn(current)``, normalized."""
        with self._lock:
            self._ensure_loaded()
            updated = normalize(fn(list(self._items)), now=self.now(), new_id=self._new_id)
            return self._commit(updated)

    def replace(self, items: List[Item]) -> List[Item]:
        return self.update(lambda _current: items)

    def add(self, text: str, category: str, *, origin: Origin = Origin.LOCAL) -> Item:
        """Add a user-entered quote.

        Raises:
            ValidationError: if text or category is empty after trimming.
            DuplicateItemError: if the same quote already exists.
        """
        text = sanitize(text)
        category = sanitize(category)
        if not text or not category:
            raise ValidationError("Both quote text and category are required")

        with self._lock:
            self._ensure_loaded()
            item = Item(
                id=f"local-{int(time.time() * 1000)}-{self.new_token()}",
                text=text,
                category=category,
                origin=origin,
                revised_at=self.now(),
                acknowledged=False,
            )
            existing = next((i for i in self._items if i.identity_key == item.identity_key), None)
            if existing is not None:
                raise DuplicateItemError(text, category, existing_id=existing.id)
            self._commit(self._items + [item])

        logger.debug("Added quote %s in %r", item.id, category)
        return item

    def remove(self, item_id: str) -> bool:
        with self._lock:
            self._ensure_loaded()
            remaining = [item for item in self._items if item.id != item_id]
            if len(remaining) == len(self._items):
                return False
            self._commit(remaining)
        return True

    def clear(self) -> int:
        """Remove every quote. Returns the number removed."""
        with self._lock:
            self._ensure_loaded()
            count = len(self._items)
            self._commit([])
        return count
