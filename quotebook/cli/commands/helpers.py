"""Shared helper functions for CLI commands."""

import json
from typing import Any

from quotebook.publish import is_pending
from quotebook.types import Item


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def format_quote(item: Item) -> str:
    return f"“{item.text}” — {item.category}"


def format_quote_line(item: Item) -> str:
    pending = " (unpublished)" if is_pending(item) else ""
    return f"[{item.id}] {format_quote(item)}  • {item.origin.value}{pending}"
