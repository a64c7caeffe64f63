"""Tests for the sync engine: fetch, merge, persist, publish."""

import threading

import pytest
from conftest import FakeRemote, make_item

from quotebook.protocols import RemoteSourceError
from quotebook.sync_engine import SyncEngine
from quotebook.types import Origin


@pytest.fixture
def engine(empty_collection, session, remote):
    return SyncEngine(empty_collection, remote, session)


class TestRunCycle:
    """A full cycle against a fake remote."""

    def test_pulls_remote_items(self, engine, empty_collection, remote):
        remote.snapshot = [{"id": 1, "title": "One", "userId": 1}]
        result = engine.run_cycle()
        assert result.success
        assert result.pulled == 1
        item = empty_collection.get("remote-1")
        assert item.category == "Server-1"
        assert item.origin == Origin.REMOTE
        assert item.acknowledged is True

    def test_merge_is_persisted(self, engine, store, remote):
        remote.snapshot = [{"id": 1, "title": "One", "userId": 1}]
        engine.run_cycle()
        assert [r["id"] for r in store.load_records()] == ["remote-1"]

    def test_publishes_pending_local_items(self, engine, empty_collection, remote):
        added = empty_collection.add("Mine", "Life")
        result = engine.run_cycle()
        assert result.pushed == 1
        assert [i.id for i in remote.published] == [added.id]
        item = empty_collection.get(added.id)
        assert item.acknowledged is True
        assert item.remote_id == 101

    def test_second_cycle_publishes_nothing(self, engine, empty_collection, remote):
        empty_collection.add("Mine", "Life")
        engine.run_cycle()
        result = engine.run_cycle()
        assert result.pushed == 0
        assert len(remote.published) == 1

    def test_failed_publish_retried_next_cycle(self, engine, empty_collection, remote):
        added = empty_collection.add("Mine", "Life")
        remote.fail_publish_ids = {added.id}
        first = engine.run_cycle()
        assert first.pushed == 0
        assert empty_collection.get(added.id).acknowledged is False

        remote.fail_publish_ids = set()
        second = engine.run_cycle()
        assert second.pushed == 1
        assert empty_collection.get(added.id).acknowledged is True

    def test_publish_disabled(self, empty_collection, session, remote):
        engine = SyncEngine(empty_collection, remote, session, publish=False)
        empty_collection.add("Mine", "Life")
        assert engine.run_cycle().pushed == 0
        assert remote.published == []

    def test_conflicts_reach_session(self, engine, empty_collection, session, remote):
        empty_collection.replace([make_item("x", "A", "C1", acknowledged=True)])
        remote.snapshot = [{"id": "x", "text": "A", "category": "C2"}]
        result = engine.run_cycle()
        assert result.conflict_count == 1
        assert [c.id for c in session.pending] == ["x"]
        assert empty_collection.get("x").category == "C2"

    def test_next_cycle_replaces_conflicts(self, engine, empty_collection, session, remote):
        empty_collection.replace([make_item("x", "A", "C1", acknowledged=True)])
        remote.snapshot = [{"id": "x", "text": "A", "category": "C2"}]
        engine.run_cycle()
        engine.run_cycle()
        assert session.pending == []

    def test_records_timestamps(self, engine):
        result = engine.run_cycle()
        assert result.started_at is not None
        assert result.finished_at >= result.started_at
        assert engine.last_sync_time == result.finished_at
        assert engine.last_result is result


class TestFailures:
    """Failures abort the cycle without touching the collection."""

    def test_fetch_failure_aborts_without_mutation(self, engine, empty_collection, remote):
        added = empty_collection.add("Mine", "Life")
        before = empty_collection.items
        remote.fetch_error = RemoteSourceError("connection refused")
        result = engine.run_cycle()
        assert not result.success
        assert result.errors[0].startswith("Fetch failed")
        assert empty_collection.items == before
        assert remote.published == []
        assert engine.last_sync_time is None
        assert empty_collection.get(added.id).acknowledged is False

    def test_no_remote_configured(self, empty_collection, session):
        engine = SyncEngine(empty_collection, None, session)
        result = engine.run_cycle()
        assert result.errors == ["No remote source configured"]


class TestConcurrency:
    def test_overlapping_cycle_is_skipped(self, empty_collection, session):
        started = threading.Event()
        release = threading.Event()

        class SlowRemote(FakeRemote):
            def fetch_snapshot(self):
                started.set()
                release.wait(5)
                return super().fetch_snapshot()

        engine = SyncEngine(empty_collection, SlowRemote(), session)
        worker = threading.Thread(target=engine.run_cycle)
        worker.start()
        assert started.wait(5)
        assert engine.running

        skipped = engine.run_cycle()
        assert skipped.skipped is True
        assert not skipped.success

        release.set()
        worker.join(5)
        assert not engine.running

    def test_edit_during_publish_is_not_acknowledged(self, empty_collection, session):
        class EditingRemote(FakeRemote):
            def publish(self, item):
                ack = super().publish(item)
                empty_collection.update(
                    lambda items: [
                        i.evolve(text="Edited") if i.id == item.id else i for i in items
                    ]
                )
                return ack

        engine = SyncEngine(empty_collection, EditingRemote(), session)
        added = empty_collection.add("Mine", "Life")
        engine.run_cycle()
        item = empty_collection.get(added.id)
        assert item.text == "Edited"
        assert item.acknowledged is False
