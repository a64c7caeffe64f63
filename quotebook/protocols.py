"""
quotebook protocol definitions
==============================

Interface contracts for the collaborators the reconciliation core talks to,
plus the error hierarchy.

Collaborators:
- KeyValueStore: durable blob storage keyed by string. The core only needs
  get/set; it never depends on a particular persistence engine.
- RemoteSource: the remote snapshot provider. ``fetch_snapshot`` is required,
  ``publish`` is used for best-effort outbound sync.

Error handling philosophy:
- Invalid user input raises ValidationError (a ValueError)
- Duplicate submissions raise DuplicateItemError
- Malformed import payloads raise ImportValidationError and import nothing
- Transport failures raise RemoteSourceError; a sync cycle that sees one
  aborts without touching the collection
- Storage failures raise StorageError
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from quotebook.types import Item, RemoteAck

# =============================================================================
# ERRORS
# =============================================================================


class QuotebookError(Exception):
    """Base for all quotebook errors."""

    pass


class ValidationError(QuotebookError, ValueError):
    """Raised when a quote fails field validation (empty text or category)."""

    pass


class DuplicateItemError(QuotebookError):
    """Raised when a submitted quote's identity key is already present."""

    def __init__(self, text: str, category: str, existing_id: Optional[str] = None):
        self.text = text
        self.category = category
        self.existing_id = existing_id
        super().__init__(f"Quote already exists in {category!r}: {text!r}")


class ImportValidationError(QuotebookError, ValueError):
    """Raised when an import payload is rejected. Nothing is imported."""

    pass


class RemoteSourceError(QuotebookError):
    """Raised when the remote source cannot be reached or returns bad data."""

    pass


class StorageError(QuotebookError):
    """Raised by store implementations on persistence failures."""

    pass


# =============================================================================
# COLLABORATOR PROTOCOLS
# =============================================================================


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable key-value blob storage.

    Implementations: SQLiteKeyValueStore, MemoryKeyValueStore.
    """

    def get(self, key: str) -> Optional[bytes]:
        """Return the stored blob, or None when the key is absent."""
        ...

    def set(self, key: str, value: bytes) -> None:
        """Store a blob, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...


@runtime_checkable
class RemoteSource(Protocol):
    """Remote snapshot provider.

    Implementations: HttpRemoteSource.
    """

    def fetch_snapshot(self) -> list[dict[str, Any]]:
        """Return the current remote records.

        Raises:
            RemoteSourceError: on transport failure or timeout.
        """
        ...

    def publish(self, item: Item) -> RemoteAck:
        """Submit a local item and return the identifier the remote assigned.

        Raises:
            RemoteSourceError: when the remote did not accept the item.
        """
        ...
