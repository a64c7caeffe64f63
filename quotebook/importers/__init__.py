"""Importers for quotebook."""

from .json_importer import (
    JsonImporter,
    import_records,
    parse_quotes_json,
    validate_import_records,
)

__all__ = [
    "JsonImporter",
    "import_records",
    "parse_quotes_json",
    "validate_import_records",
]
