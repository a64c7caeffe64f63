"""JSON importer for quotebook.

Imports the JSON array written by ``quotebook export`` as well as bare
``[{"text": ..., "category": ...}]`` lists. Validation is all-or-nothing: a
payload with any bad entry is rejected and nothing is imported.
"""

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from quotebook.normalize import random_token, sanitize
from quotebook.protocols import ImportValidationError
from quotebook.types import ImportResult, raw_to_dict

if TYPE_CHECKING:
    from quotebook.collection import Collection

logger = logging.getLogger(__name__)


def validate_import_records(data: Any) -> List[Dict[str, Any]]:
    """Check an already-decoded payload.

    Raises:
        ImportValidationError: if the root is not a list, an entry is not an
            object, or an entry lacks text or category.
    """
    if not isinstance(data, list):
        raise ImportValidationError("Import must be a JSON array at the root level")

    records: List[Dict[str, Any]] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ImportValidationError(
                f"Entry {index} must be an object, got {type(entry).__name__}"
            )
        record = raw_to_dict(entry)
        for field_name in ("text", "category"):
            value = record.get(field_name)
            if not isinstance(value, str) or not value.strip():
                raise ImportValidationError(f"Entry {index} is missing {field_name!r}")
        records.append(record)
    return records


def parse_quotes_json(content: str) -> List[Dict[str, Any]]:
    """Parse and validate a JSON import payload.

    Raises:
        ImportValidationError: if the content is not valid JSON or fails validation.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ImportValidationError(f"Invalid JSON: {e}") from e
    return validate_import_records(data)


def prepare_records(records: List[Dict[str, Any]], new_id=None) -> List[Dict[str, Any]]:
    """Give each record an id and trimmed fields, ready for normalization."""
    new_id = new_id or random_token
    millis = int(time.time() * 1000)
    prepared = []
    for record in records:
        record = dict(record)
        record["id"] = sanitize(record.get("id")) or f"imp-{millis}-{new_id()}"
        record["text"] = sanitize(record.get("text"))
        record["category"] = sanitize(record.get("category"))
        prepared.append(record)
    return prepared


def import_records(collection: "Collection", data: Any) -> ImportResult:
    """Merge records into the collection; imported data wins on identity-key clashes.

    Raises:
        ImportValidationError: if the payload is rejected. The collection is unchanged.
    """
    records = prepare_records(validate_import_records(data), new_id=collection.new_token)

    with collection.lock:
        before = len(collection.items)
        after = collection.update(lambda current: current + records)

    result = ImportResult(received=len(records), added=max(0, len(after) - before), total=len(after))
    logger.info(f"Imported {result.added} new quote(s) from {result.received} record(s)")
    return result


class JsonImporter:
    """Import quotes from a JSON file."""

    def __init__(self, file_path: str):
        self.file_path = Path(file_path).expanduser()
        self.records: Optional[List[Dict[str, Any]]] = None

    def parse(self) -> List[Dict[str, Any]]:
        """Read and validate the file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ImportValidationError: If the content is rejected
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {self.file_path}")
        self.records = parse_quotes_json(self.file_path.read_text(encoding="utf-8"))
        return self.records

    def import_to(self, collection: "Collection") -> ImportResult:
        if self.records is None:
            self.parse()
        return import_records(collection, self.records)
