"""
Pytest fixtures and test configuration for quotebook tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from quotebook import QuoteBook
from quotebook.collection import Collection
from quotebook.config import QuotebookConfig
from quotebook.conflicts import ConflictSession
from quotebook.protocols import RemoteSourceError
from quotebook.storage import CollectionStore, MemoryKeyValueStore
from quotebook.types import Item, Origin, RemoteAck

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the data directory at a temp dir and clear QUOTEBOOK_* overrides."""
    home = tmp_path / "quotebook-home"
    monkeypatch.setenv("QUOTEBOOK_DATA_DIR", str(home))
    for var in (
        "QUOTEBOOK_REMOTE_URL",
        "QUOTEBOOK_AUTH_TOKEN",
        "QUOTEBOOK_SYNC_INTERVAL",
        "QUOTEBOOK_SNAPSHOT_LIMIT",
        "QUOTEBOOK_TIMEOUT",
        "QUOTEBOOK_PUBLISH_USER_ID",
        "QUOTEBOOK_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture(autouse=True)
def clean_quotebook_logger():
    """Drop handlers added to the quotebook logger during a test."""
    logger = logging.getLogger("quotebook")
    yield
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


class FakeClock:
    """Deterministic clock; every call advances by one second."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


class FakeRemote:
    """In-memory RemoteSource.

    ``snapshot`` is returned by fetch_snapshot; published items are recorded
    and acknowledged with increasing ids starting at 101.
    """

    def __init__(self, snapshot: Optional[List[Dict[str, Any]]] = None):
        self.snapshot = list(snapshot or [])
        self.published: List[Item] = []
        self.fetch_error: Optional[Exception] = None
        self.fail_publish_ids: set = set()
        self.fetch_calls = 0
        self._next_id = 101

    def fetch_snapshot(self) -> List[Dict[str, Any]]:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return [dict(record) for record in self.snapshot]

    def publish(self, item: Item) -> RemoteAck:
        if item.id in self.fail_publish_ids:
            raise RemoteSourceError(f"rejected {item.id}")
        self.published.append(item)
        ack = RemoteAck(remote_id=self._next_id)
        self._next_id += 1
        return ack


def make_item(
    id: str,
    text: str,
    category: str,
    origin: Origin = Origin.LOCAL,
    acknowledged: bool = False,
    remote_id: Any = None,
) -> Item:
    return Item(
        id=id,
        text=text,
        category=category,
        origin=origin,
        revised_at=FIXED_NOW,
        acknowledged=acknowledged,
        remote_id=remote_id,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return CollectionStore(kv)


@pytest.fixture
def collection(store, clock):
    """A loaded collection holding the seed quotes."""
    coll = Collection(store, clock=clock)
    coll.load()
    return coll


@pytest.fixture
def empty_collection(store, clock):
    """A loaded collection with no quotes."""
    store.save_items([])
    coll = Collection(store, clock=clock)
    coll.load()
    return coll


@pytest.fixture
def session(empty_collection):
    return ConflictSession(empty_collection)


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def config(isolated_home):
    return QuotebookConfig(data_dir=isolated_home, remote_url=None)


@pytest.fixture
def book(kv, remote, config, clock):
    """QuoteBook over an in-memory store and a fake remote, event log off."""
    with QuoteBook(store=kv, remote=remote, config=config, clock=clock, seed=7, event_log=False) as b:
        yield b
