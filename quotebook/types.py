"""
Shared types for quotebook.

The quote record and the sync bookkeeping types live here. They are the
shared vocabulary between the normalizer, the reconciler, the conflict
session and the storage layer.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

# === Shared Utility Functions ===


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO datetime string (or pass through a datetime).

    Returns None for empty or unparseable input; naive values are taken as UTC.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime for JSON output."""
    if value is None:
        return None
    return value.isoformat()


# === Enums ===


class Origin(str, Enum):
    """Where a quote came from.

    Provenance never changes after creation except through conflict resolution.
    """

    LOCAL = "local"  # Typed in or imported by the user
    REMOTE = "remote"  # Pulled from the remote source
    SEED = "seed"  # Built-in default quotes

    @classmethod
    def coerce(cls, value: Any, default: "Origin" = None) -> "Origin":
        """Map a stored value to an Origin, accepting the legacy ``server`` spelling."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            v = value.strip().lower()
            if v == "server":
                return cls.REMOTE
            try:
                return cls(v)
            except ValueError:
                pass
        return default if default is not None else cls.LOCAL


# Legacy field names written by the browser version of the app.
LEGACY_FIELD_ALIASES: Dict[str, str] = {
    "source": "origin",
    "updatedAt": "revised_at",
    "synced": "acknowledged",
    "serverId": "remote_id",
}


# === Quote Record ===


@dataclass
class Item:
    """A quote record."""

    id: str
    text: str
    category: str
    origin: Origin = Origin.LOCAL
    revised_at: datetime = field(default_factory=utc_now)
    acknowledged: bool = False  # Accepted by the remote source
    remote_id: Optional[Union[int, str]] = None  # Assigned by the remote on publish

    @property
    def identity_key(self) -> tuple:
        """Duplicate-detection key: (category, text), both lowercased."""
        return (self.category.strip().lower(), self.text.strip().lower())

    def same_content(self, other: "Item") -> bool:
        """True when both records carry the same values apart from revised_at."""
        return (
            self.id == other.id
            and self.text == other.text
            and self.category == other.category
            and self.origin == other.origin
            and self.acknowledged == other.acknowledged
            and self.remote_id == other.remote_id
        )

    def evolve(self, **changes: Any) -> "Item":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "origin": self.origin.value,
            "revised_at": format_datetime(self.revised_at),
            "acknowledged": self.acknowledged,
            "remote_id": self.remote_id,
        }


RawItem = Union[Mapping[str, Any], Item]


def raw_to_dict(raw: RawItem) -> Dict[str, Any]:
    """Flatten a raw record into a plain dict with canonical field names."""
    if isinstance(raw, Item):
        return raw.to_dict()
    data = dict(raw)
    for legacy, canonical in LEGACY_FIELD_ALIASES.items():
        if legacy in data and canonical not in data:
            data[canonical] = data.pop(legacy)
    return data


# === Sync Types ===


@dataclass
class Conflict:
    """A divergence between a local and a remote record.

    The automatic merge has already applied the remote version; the conflict
    keeps the pre-merge local version so a human can switch back.
    """

    id: str  # Id of the remote record the conflict is keyed by
    local: Item  # Local version before the merge
    remote: Item  # Remote version that was applied

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "local": self.local.to_dict(), "remote": self.remote.to_dict()}


@dataclass
class RemoteAck:
    """Acknowledgement returned by the remote source for a published item."""

    remote_id: Union[int, str]


@dataclass
class PublishResult:
    """Result of a publication pass."""

    items: List[Item] = field(default_factory=list)
    acks: Dict[str, Union[int, str]] = field(default_factory=dict)  # item id -> remote id
    failed: List[str] = field(default_factory=list)  # item ids left pending

    @property
    def published(self) -> int:
        return len(self.acks)


@dataclass
class SyncResult:
    """Result of a sync cycle."""

    pulled: int = 0  # Remote records merged
    pushed: int = 0  # Local records published
    conflicts: List[Conflict] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped: bool = False  # Another cycle was already running
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not self.skipped and len(self.errors) == 0

    @property
    def conflict_count(self) -> int:
        """Number of conflicts detected in this cycle."""
        return len(self.conflicts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pulled": self.pulled,
            "pushed": self.pushed,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "errors": list(self.errors),
            "skipped": self.skipped,
            "success": self.success,
            "started_at": format_datetime(self.started_at),
            "finished_at": format_datetime(self.finished_at),
        }


@dataclass
class ImportResult:
    """Result of an import."""

    received: int = 0  # Records in the payload
    added: int = 0  # Net-new items in the collection
    total: int = 0  # Collection size after the import
