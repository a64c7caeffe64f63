"""Mapping of the quote collection and user preferences onto a key-value store.

Well-known keys:
- the serialized collection (JSON array of item records)
- the last selected category filter
- the last displayed quote (display continuity only, never used for merges)
- the conflicts pending from the latest sync cycle
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from quotebook.normalize import normalize
from quotebook.protocols import KeyValueStore
from quotebook.types import Conflict, Item, Origin

logger = logging.getLogger(__name__)

QUOTES_KEY = "quotes.v3"
FILTER_KEY = "filter.v3"
LAST_QUOTE_KEY = "last_quote.v3"
CONFLICTS_KEY = "conflicts.v3"

ALL_CATEGORIES = "all"


class MalformedDataError(ValueError):
    """Persisted blob could not be decoded."""


def encode_items(items: Iterable[Item]) -> bytes:
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False).encode("utf-8")


def decode_records(blob: bytes) -> List[Dict[str, Any]]:
    """Decode a serialized collection into raw records.

    Raises:
        MalformedDataError: if the blob is not a JSON array.
    """
    try:
        data = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedDataError(f"Unparseable collection blob: {e}") from e
    if not isinstance(data, list):
        raise MalformedDataError(f"Collection blob must be a JSON array, got {type(data).__name__}")
    return data


class CollectionStore:
    """Reads and writes the collection and preferences through a KeyValueStore."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    # === Collection ===

    def load_records(self) -> Optional[List[Dict[str, Any]]]:
        """Return the persisted raw records, or None when absent or unreadable."""
        blob = self.kv.get(QUOTES_KEY)
        if blob is None:
            return None
        try:
            return decode_records(blob)
        except MalformedDataError as e:
            logger.warning(f"Ignoring malformed persisted collection: {e}")
            return None

    def save_items(self, items: Iterable[Item]) -> None:
        self.kv.set(QUOTES_KEY, encode_items(items))

    # === Preferences ===

    def load_filter(self) -> str:
        blob = self.kv.get(FILTER_KEY)
        if not blob:
            return ALL_CATEGORIES
        try:
            return blob.decode("utf-8") or ALL_CATEGORIES
        except UnicodeDecodeError:
            return ALL_CATEGORIES

    def save_filter(self, category: str) -> None:
        self.kv.set(FILTER_KEY, (category or ALL_CATEGORIES).encode("utf-8"))

    def load_last_displayed(self) -> Optional[Dict[str, Any]]:
        blob = self.kv.get(LAST_QUOTE_KEY)
        if not blob:
            return None
        try:
            data = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.debug("Ignoring malformed last displayed quote")
            return None
        return data if isinstance(data, dict) else None

    def save_last_displayed(self, item: Item) -> None:
        self.kv.set(LAST_QUOTE_KEY, json.dumps(item.to_dict(), ensure_ascii=False).encode("utf-8"))

    # === Pending conflicts ===

    def load_conflicts(self) -> List[Conflict]:
        """Pending conflicts from the latest sync cycle; malformed data reads as none."""
        blob = self.kv.get(CONFLICTS_KEY)
        if not blob:
            return []
        try:
            data = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Ignoring malformed pending conflicts")
            return []
        if not isinstance(data, list):
            return []

        conflicts = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            local = normalize([entry.get("local") or {}])
            remote = normalize([entry.get("remote") or {}], default_origin=Origin.REMOTE)
            if entry.get("id") and local and remote:
                conflicts.append(Conflict(id=str(entry["id"]), local=local[0], remote=remote[0]))
        return conflicts

    def save_conflicts(self, conflicts: Iterable[Conflict]) -> None:
        payload = [conflict.to_dict() for conflict in conflicts]
        self.kv.set(CONFLICTS_KEY, json.dumps(payload, ensure_ascii=False).encode("utf-8"))
