"""Normalization and deduplication of raw quote records.

Every path that puts records into the collection (loading persisted data,
imports, remote snapshots, merge output) goes through ``normalize`` so the
collection invariants hold: no empty text or category, unique ids, and one
item per identity key.
"""

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from quotebook.types import Item, Origin, RawItem, parse_datetime, raw_to_dict, utc_now

logger = logging.getLogger(__name__)

IdentityKey = Tuple[str, str]


def sanitize(value) -> str:
    """Coerce to string and trim surrounding whitespace. None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def identity_key(raw: RawItem) -> IdentityKey:
    """(category, text) lowercased after trimming."""
    if isinstance(raw, Item):
        return raw.identity_key
    data = raw_to_dict(raw)
    return (sanitize(data.get("category")).lower(), sanitize(data.get("text")).lower())


def random_token() -> str:
    """Short random token for generated ids."""
    return uuid.uuid4().hex[:8]


_TRUE_STRINGS = {"true", "1", "yes"}


def _coerce_bool(value) -> bool:
    """Read a stored flag; strings count as true only when spelled so."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _coerce(
    raw: RawItem,
    now: datetime,
    new_id: Callable[[], str],
    default_origin: Origin,
) -> Optional[Item]:
    if not isinstance(raw, (Item, Mapping)):
        logger.debug("Dropping non-record entry of type %s", type(raw).__name__)
        return None

    data = raw_to_dict(raw)
    text = sanitize(data.get("text"))
    category = sanitize(data.get("category"))
    if not text or not category:
        return None

    remote_id = data.get("remote_id")
    if remote_id == "":
        remote_id = None

    return Item(
        id=sanitize(data.get("id")) or f"fix-{new_id()}",
        text=text,
        category=category,
        origin=Origin.coerce(data.get("origin"), default_origin),
        revised_at=parse_datetime(data.get("revised_at")) or now,
        acknowledged=_coerce_bool(data.get("acknowledged")),
        remote_id=remote_id,
    )


def normalize(
    raw_items: Iterable[RawItem],
    *,
    now: Optional[datetime] = None,
    new_id: Optional[Callable[[], str]] = None,
    default_origin: Origin = Origin.LOCAL,
) -> List[Item]:
    """Clean and deduplicate raw records into canonical items.

    Last write wins: when several records share an identity key, the later
    one in input order replaces the earlier one (keeping the earlier one's
    position). A later record that reuses the id of an earlier record with a
    different identity key replaces that record as well, so ids stay unique.

    Args:
        raw_items: Mappings or Items, in precedence order (later wins).
        now: Timestamp for records without ``revised_at``. Defaults to now.
        new_id: Token factory for records without an ``id``.
        default_origin: Origin for records that do not name one.

    Returns:
        Canonical items, one per identity key.
    """
    now = now or utc_now()
    new_id = new_id or random_token

    by_key: Dict[IdentityKey, Item] = {}
    key_by_id: Dict[str, IdentityKey] = {}
    dropped = 0

    for raw in raw_items:
        item = _coerce(raw, now, new_id, default_origin)
        if item is None:
            dropped += 1
            continue

        key = item.identity_key
        previous_key = key_by_id.get(item.id)
        if previous_key is not None and previous_key != key:
            del by_key[previous_key]

        displaced = by_key.get(key)
        if displaced is not None and displaced.id != item.id:
            key_by_id.pop(displaced.id, None)

        by_key[key] = item
        key_by_id[item.id] = key

    if dropped:
        logger.debug("Normalization dropped %d record(s) with empty text or category", dropped)

    return list(by_key.values())
