"""Storage layer for quotebook.

Key-value blob stores plus the CollectionStore that maps the collection and
preferences onto well-known keys.
"""

from .collection_store import (
    ALL_CATEGORIES,
    CONFLICTS_KEY,
    FILTER_KEY,
    LAST_QUOTE_KEY,
    QUOTES_KEY,
    CollectionStore,
    MalformedDataError,
    decode_records,
    encode_items,
)
from .kv import MemoryKeyValueStore, SQLiteKeyValueStore

__all__ = [
    "ALL_CATEGORIES",
    "CONFLICTS_KEY",
    "FILTER_KEY",
    "LAST_QUOTE_KEY",
    "QUOTES_KEY",
    "CollectionStore",
    "MalformedDataError",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "decode_records",
    "encode_items",
]
