"""QuoteBook class: main interface for quote collection operations.

This module defines the QuoteBook class skeleton, which inherits from the
writer, loader, serializer and sync mixins.
"""

import logging
from typing import Any, Callable, Optional

from quotebook.collection import Collection
from quotebook.config import QuotebookConfig, load_config
from quotebook.conflicts import ConflictSession
from quotebook.core.loader import LoaderMixin
from quotebook.core.serializers import SerializersMixin
from quotebook.core.sync import SyncMixin
from quotebook.core.writers import WritersMixin
from quotebook.protocols import KeyValueStore, RemoteSource
from quotebook.remote import HttpRemoteSource
from quotebook.scheduler import SyncScheduler
from quotebook.storage import CollectionStore, SQLiteKeyValueStore
from quotebook.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


class QuoteBook(
    LoaderMixin,
    WritersMixin,
    SerializersMixin,
    SyncMixin,
):
    """Main interface for the quote collection.

    Examples:
        # Defaults: SQLite store under ~/.quotebook, remote from config
        book = QuoteBook()

        # Explicit collaborators
        book = QuoteBook(store=MemoryKeyValueStore(), remote=None)
    """

    _UNSET: Any = object()

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        remote: Optional[RemoteSource] = _UNSET,
        config: Optional[QuotebookConfig] = None,
        *,
        clock: Optional[Callable] = None,
        seed: Optional[int] = None,
        event_log: bool = True,
    ):
        """Initialize QuoteBook.

        Args:
            store: Key-value store. Defaults to SQLite under the data directory.
            remote: Remote source. Defaults to an HTTP source built from config;
                pass None to disable sync.
            config: Settings. Defaults to ``load_config()``.
            clock: Current-time callable (tests pin it).
            seed: Seed for random quote selection.
            event_log: Write collection events to the events log.
        """
        self.config = config or load_config()
        self.store = CollectionStore(store or SQLiteKeyValueStore(self.config.db_path))

        if remote is self._UNSET:
            remote = self._default_remote()
        self.remote = remote

        self.collection = Collection(self.store, clock=clock)
        self.collection.load()
        self.session = ConflictSession(self.collection)
        self.sync_engine = SyncEngine(self.collection, self.remote, self.session)

        self._random = self._make_random(seed)
        self._event_log = event_log
        self._scheduler: Optional[SyncScheduler] = None

        logger.debug(
            f"QuoteBook initialized with store: {type(self.store.kv).__name__}, "
            f"remote: {type(self.remote).__name__ if self.remote else None}"
        )

    def _default_remote(self) -> Optional[RemoteSource]:
        if not self.config.remote_url:
            return None
        try:
            return HttpRemoteSource(
                self.config.remote_url,
                timeout=self.config.timeout,
                snapshot_limit=self.config.snapshot_limit,
                user_id=self.config.publish_user_id,
                auth_token=self.config.auth_token,
            )
        except ValueError as e:
            logger.warning(f"Sync disabled: {e}")
            return None

    def _log_event(self, fn, *args) -> None:
        if not self._event_log:
            return
        try:
            fn(*args)
        except OSError as e:
            logger.debug(f"Failed to write collection event: {e}")

    def close(self) -> None:
        self.stop_auto_sync()
        if self.remote is not None and hasattr(self.remote, "close"):
            self.remote.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
