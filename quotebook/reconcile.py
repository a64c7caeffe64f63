"""Reconciliation of the local collection against a remote snapshot.

Merge policy is remote-wins: every remote record is upserted by id, so a
sync cycle never blocks on human input. Divergences found before the merge
are returned as conflicts carrying the pre-merge local version, so the user
can switch an item back later through the conflict session.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from quotebook.normalize import normalize, sanitize
from quotebook.types import Conflict, Item, Origin, raw_to_dict, utc_now

logger = logging.getLogger(__name__)

REMOTE_ID_PREFIX = "remote-"
REMOTE_CATEGORY_PREFIX = "Server-"


@dataclass
class MergeResult:
    """Output of ``diff_and_merge``."""

    merged: List[Item] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    remote_items: List[Item] = field(default_factory=list)  # Canonical remote records


def remote_item_id(remote_id: Any) -> str:
    return f"{REMOTE_ID_PREFIX}{remote_id}"


def coerce_remote_record(record: Any) -> Optional[Dict[str, Any]]:
    """Map a remote record to a raw item dict with remote provenance.

    Accepts the wire shape ``{id, title, body, userId}`` as well as records
    already shaped like items (``{id?, remote_id?, text, category}``).
    Returns None for records that cannot be identified.
    """
    if isinstance(record, Item):
        data = record.to_dict()
    elif isinstance(record, Mapping):
        data = raw_to_dict(record)
    else:
        return None

    if "title" in data and "text" not in data:
        remote_id = data.get("id")
        if remote_id is None or sanitize(remote_id) == "":
            logger.debug("Skipping remote record without id: %r", data)
            return None
        user_id = data.get("userId")
        return {
            "id": remote_item_id(remote_id),
            "remote_id": remote_id,
            "text": sanitize(data.get("title")) or f"Post #{remote_id}",
            "category": f"{REMOTE_CATEGORY_PREFIX}{user_id if user_id is not None else 'unknown'}",
            "origin": Origin.REMOTE,
            "acknowledged": True,
            "revised_at": data.get("revised_at"),
        }

    remote_id = data.get("remote_id")
    item_id = sanitize(data.get("id"))
    if not item_id:
        if remote_id is None:
            logger.debug("Skipping remote record without id: %r", data)
            return None
        item_id = remote_item_id(remote_id)

    data.update(id=item_id, origin=Origin.REMOTE, acknowledged=True)
    return data


def canonical_remote_items(remote_raw: Iterable[Any], now: Optional[datetime] = None) -> List[Item]:
    """Coerce and normalize a remote snapshot into canonical remote items."""
    coerced = [c for c in (coerce_remote_record(r) for r in remote_raw) if c is not None]
    return normalize(coerced, now=now, default_origin=Origin.REMOTE)


def detect_conflicts(local: List[Item], remote: List[Item]) -> List[Conflict]:
    """Find divergences between the pre-merge local collection and remote items.

    A remote item conflicts with the local item sharing its id when text or
    category differ. Without an id match, the first local item with the same
    wording (case-insensitive) filed under a different category conflicts.
    Each remote id yields at most one conflict.
    """
    by_id = {item.id: item for item in local}
    found: List[Conflict] = []
    seen: set = set()

    for r in remote:
        if r.id in seen:
            continue

        match = by_id.get(r.id)
        if match is not None:
            if match.text == r.text and match.category == r.category:
                continue
        else:
            wording = r.text.lower()
            match = next(
                (
                    candidate
                    for candidate in local
                    if candidate.text.lower() == wording and candidate.category != r.category
                ),
                None,
            )
            if match is None:
                continue

        found.append(Conflict(id=r.id, local=match, remote=r))
        seen.add(r.id)

    return found


def apply_remote_wins(local: List[Item], remote: List[Item]) -> List[Item]:
    """Upsert every remote item by id, then dedupe by identity key.

    Local items whose content already matches the remote record are left as
    they are, so merging an unchanged snapshot again changes nothing. New or
    changed remote items go after the local ones so they win identity-key
    clashes in ``normalize``.
    """
    remote_by_id: Dict[str, Item] = {r.id: r for r in remote}
    kept: List[Item] = []
    unchanged: set = set()
    for item in local:
        r = remote_by_id.get(item.id)
        if r is None:
            kept.append(item)
        elif item.same_content(r):
            kept.append(item)
            unchanged.add(item.id)

    upserted = [r for r in remote if r.id not in unchanged]
    return normalize(kept + upserted)


def diff_and_merge(
    local: List[Item], remote_raw: Iterable[Any], *, now: Optional[datetime] = None
) -> MergeResult:
    """Merge a remote snapshot into the local collection.

    Conflicts are computed against ``local`` before the merge is applied.

    Args:
        local: Current canonical collection.
        remote_raw: Remote records, wire-shaped or item-shaped.
        now: Timestamp for remote records that carry none.

    Returns:
        MergeResult with the merged collection and the detected conflicts.
    """
    remote_items = canonical_remote_items(remote_raw, now=now or utc_now())
    conflicts = detect_conflicts(local, remote_items)
    merged = apply_remote_wins(local, remote_items)

    logger.debug(
        "Merged %d remote item(s) into %d local item(s): %d total, %d conflict(s)",
        len(remote_items),
        len(local),
        len(merged),
        len(conflicts),
    )
    return MergeResult(merged=merged, conflicts=conflicts, remote_items=remote_items)
