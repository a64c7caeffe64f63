"""Tests for the QuoteBook facade."""

import json

import pytest
from conftest import make_item

from quotebook import QuoteBook
from quotebook.config import QuotebookConfig
from quotebook.protocols import DuplicateItemError, ImportValidationError, ValidationError
from quotebook.remote import HttpRemoteSource
from quotebook.seeds import SEED_QUOTES
from quotebook.storage import MemoryKeyValueStore, SQLiteKeyValueStore
from quotebook.types import Origin


class TestInitialization:
    def test_defaults_to_sqlite_under_data_dir(self, isolated_home):
        with QuoteBook(config=QuotebookConfig(data_dir=isolated_home, remote_url=None)) as book:
            assert isinstance(book.store.kv, SQLiteKeyValueStore)
            assert book.store.kv.db_path == isolated_home / "quotebook.db"
            assert book.remote is None

    def test_builds_http_remote_from_config(self, isolated_home):
        config = QuotebookConfig(data_dir=isolated_home, snapshot_limit=5, publish_user_id=3)
        with QuoteBook(store=MemoryKeyValueStore(), config=config) as book:
            assert isinstance(book.remote, HttpRemoteSource)
            assert book.remote.snapshot_limit == 5
            assert book.remote.user_id == 3

    def test_rejected_remote_url_disables_sync(self, isolated_home):
        config = QuotebookConfig(data_dir=isolated_home, remote_url="http://example.com/posts")
        with QuoteBook(store=MemoryKeyValueStore(), config=config) as book:
            assert book.remote is None

    def test_seeds_on_first_run(self, book):
        assert len(book.list_quotes()) == len(SEED_QUOTES)


class TestWriters:
    def test_add_quote(self, book):
        item = book.add_quote("New", "Fresh")
        assert book.collection.get(item.id).text == "New"

    def test_add_quote_rejects_empty(self, book):
        with pytest.raises(ValidationError):
            book.add_quote("  ", "Fresh")

    def test_add_quote_rejects_non_string(self, book):
        with pytest.raises(ValidationError):
            book.add_quote(None, "Fresh")

    def test_add_quote_strips_control_chars(self, book):
        item = book.add_quote("Bell\x07 rings", "Sounds")
        assert item.text == "Bell rings"

    def test_add_quote_rejects_reserved_category(self, book):
        with pytest.raises(ValidationError):
            book.add_quote("Everything", "All")

    def test_add_quote_rejects_duplicate(self, book):
        with pytest.raises(DuplicateItemError):
            book.add_quote("Simplicity is the ultimate sophistication.", "Wisdom")

    def test_remove_and_clear(self, book):
        assert book.remove_quote("seed-1") is True
        assert book.remove_quote("seed-1") is False
        assert book.clear() == len(SEED_QUOTES) - 1
        assert book.list_quotes() == []


class TestLoader:
    """Filtering and random selection."""

    def test_categories(self, book):
        assert book.categories() == ["Inspiration", "Life", "Motivation", "Wisdom"]

    def test_filter_persisted(self, book, kv, config, remote):
        book.set_filter("Life")
        assert book.get_filter() == "Life"
        assert [i.id for i in book.list_quotes()] == ["seed-2"]
        with QuoteBook(store=kv, remote=remote, config=config, event_log=False) as again:
            assert again.get_filter() == "Life"

    def test_unknown_saved_filter_reads_as_all(self, book):
        book.set_filter("Gone")
        assert book.get_filter() == "all"
        assert len(book.list_quotes()) == len(SEED_QUOTES)

    def test_list_with_explicit_category(self, book):
        book.set_filter("Life")
        assert len(book.list_quotes("all")) == len(SEED_QUOTES)

    def test_random_quote_from_category(self, book):
        item = book.random_quote("Wisdom")
        assert item.id == "seed-3"
        assert book.last_displayed() == item

    def test_random_quote_empty_category(self, book):
        assert book.random_quote("Nope") is None

    def test_random_is_seeded(self, kv, remote, config):
        picks = []
        for _ in range(2):
            with QuoteBook(
                store=MemoryKeyValueStore(), remote=remote, config=config, seed=3, event_log=False
            ) as b:
                picks.append([b.random_quote().id for _ in range(5)])
        assert picks[0] == picks[1]

    def test_last_displayed_none(self, book):
        assert book.last_displayed() is None


class TestSerializers:
    def test_export_quotes(self, book):
        records = book.export_quotes()
        assert [r["id"] for r in records] == [seed_id for seed_id, _, _ in SEED_QUOTES]
        assert records[0]["origin"] == "seed"

    def test_export_json_to_file(self, book, tmp_path):
        path = tmp_path / "out.json"
        content = book.export_json(path)
        assert json.loads(path.read_text(encoding="utf-8")) == json.loads(content)

    def test_export_then_import_into_fresh_book(self, book, tmp_path, remote, config):
        book.add_quote("Portable", "Travel")
        path = tmp_path / "out.json"
        book.export_json(path)
        with QuoteBook(
            store=MemoryKeyValueStore(), remote=remote, config=config, event_log=False
        ) as fresh:
            fresh.clear()
            result = fresh.import_file(path)
            assert result.added == len(SEED_QUOTES) + 1
            assert [i.id for i in fresh.list_quotes()] == [i.id for i in book.list_quotes()]

    def test_import_quotes_rejects_bad_payload(self, book):
        with pytest.raises(ImportValidationError):
            book.import_quotes({"text": "not a list"})

    def test_import_writes_event_log(self, isolated_home, kv, remote, config):
        with QuoteBook(store=kv, remote=remote, config=config) as b:
            b.import_quotes([{"text": "Logged", "category": "Audit"}])
        logs = list((isolated_home / "logs").glob("collection-events-*.log"))
        assert len(logs) == 1
        assert "import | received=1, added=1" in logs[0].read_text(encoding="utf-8")


class TestSync:
    """Sync and conflict operations through the facade."""

    def test_sync_merges_and_publishes(self, book, remote):
        remote.snapshot = [{"id": 1, "title": "From afar", "userId": 4}]
        added = book.add_quote("Mine", "Life")
        result = book.sync()
        assert result.success
        assert result.pulled == 1
        assert result.pushed == 1
        assert "Server-4" in book.categories()
        assert book.collection.get(added.id).acknowledged is True

    def test_sync_status(self, book, remote):
        book.add_quote("Mine", "Life")
        status = book.get_sync_status()
        assert status["pending_publish"] == 1
        assert status["last_sync_time"] is None
        book.sync()
        status = book.get_sync_status()
        assert status["pending_publish"] == 0
        assert status["last_sync_time"] is not None
        assert status["auto_sync"] is False

    def test_resolve_keep_local(self, book, remote):
        book.collection.replace([make_item("x", "A", "C1", acknowledged=True)])
        remote.snapshot = [{"id": "x", "text": "A", "category": "C2"}]
        book.sync()
        assert [c.id for c in book.conflicts] == ["x"]
        assert book.resolve_keep_local("x") is True
        item = book.collection.get("x")
        assert item.category == "C1"
        assert item.acknowledged is False
        assert book.conflicts == []

    def test_resolve_use_remote(self, book, remote):
        book.collection.replace([make_item("x", "A", "C1", acknowledged=True)])
        remote.snapshot = [{"id": "x", "text": "A", "category": "C2"}]
        book.sync()
        assert book.resolve_use_remote("x") is True
        assert book.collection.get("x").origin == Origin.REMOTE
        assert book.resolve_use_remote("x") is False

    def test_resolve_all_validates_strategy(self, book):
        with pytest.raises(ValueError):
            book.resolve_all("neither")

    def test_sync_without_remote(self, kv, config):
        with QuoteBook(store=kv, remote=None, config=config, event_log=False) as b:
            result = b.sync()
            assert result.errors == ["No remote source configured"]

    def test_auto_sync_start_stop(self, book, remote):
        scheduler = book.start_auto_sync(interval=60)
        assert scheduler.running
        assert book.start_auto_sync() is scheduler
        assert book.get_sync_status()["auto_sync"] is True
        book.stop_auto_sync()
        assert not scheduler.running
