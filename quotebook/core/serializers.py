"""Import and export operations for QuoteBook."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from quotebook.importers import JsonImporter, import_records
from quotebook.logging_config import log_import
from quotebook.types import ImportResult

logger = logging.getLogger(__name__)


class SerializersMixin:
    """Export the collection and import quote lists."""

    def export_quotes(self) -> List[Dict[str, Any]]:
        """The full collection as a list of item records."""
        return [item.to_dict() for item in self.collection.items]

    def export_json(self, path: Union[str, Path, None] = None) -> str:
        """Serialize the collection; also write it to ``path`` when given."""
        content = json.dumps(self.export_quotes(), indent=2, ensure_ascii=False)
        if path is not None:
            path = Path(path).expanduser()
            path.write_text(content, encoding="utf-8")
            logger.info(f"Exported {len(self.collection)} quote(s) to {path}")
        return content

    def import_quotes(self, records: Any) -> ImportResult:
        """Merge a decoded list of quote records.

        Raises:
            ImportValidationError: if the payload is rejected; nothing is imported.
        """
        result = import_records(self.collection, records)
        self._log_event(log_import, result.received, result.added)
        return result

    def import_file(self, path: Union[str, Path]) -> ImportResult:
        """Import a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ImportValidationError: If the content is rejected
        """
        result = JsonImporter(str(path)).import_to(self.collection)
        self._log_event(log_import, result.received, result.added)
        return result
