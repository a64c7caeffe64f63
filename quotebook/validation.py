"""Validation for user-entered quotes and the remote source URL."""

import logging
import re
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

from quotebook.protocols import ValidationError
from quotebook.storage import ALL_CATEGORIES

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 2000
MAX_CATEGORY_LENGTH = 200

# Control characters except tab and newline
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_PLAINTEXT_HOSTS = {"localhost", "127.0.0.1"}


def clean_quote_field(value: Any, field_name: str, max_length: int) -> str:
    """Strip control characters and surrounding whitespace from a quote field.

    Raises:
        ValidationError: if the value is not a string, is empty once cleaned,
            or is longer than ``max_length``.
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string, got {type(value).__name__}")

    cleaned = _CONTROL_CHARS.sub("", value).strip()
    if not cleaned:
        raise ValidationError(f"{field_name} cannot be empty")
    if len(cleaned) > max_length:
        raise ValidationError(
            f"{field_name} too long (max {max_length} characters, got {len(cleaned)})"
        )
    return cleaned


def clean_quote(text: Any, category: Any) -> Tuple[str, str]:
    """Validate a quote typed in by the user.

    The category name ``all`` is reserved for the "every category" filter.

    Returns:
        The cleaned (text, category).

    Raises:
        ValidationError: if either field is rejected.
    """
    text = clean_quote_field(text, "text", MAX_TEXT_LENGTH)
    category = clean_quote_field(category, "category", MAX_CATEGORY_LENGTH)
    if category.lower() == ALL_CATEGORIES:
        raise ValidationError(f"{category!r} is reserved and cannot be used as a category")
    return text, category


def validate_remote_url(url: Optional[str]) -> Optional[str]:
    """Check a remote source URL before any request or token is sent to it.

    Only http(s) URLs with a host are accepted, and plaintext http only to
    the local machine.

    Returns:
        The URL unchanged, or None when rejected (the reason is logged).
    """
    if not url:
        return None

    parsed = urlparse(url)
    if parsed.scheme not in {"https", "http"}:
        logger.warning(f"Rejected remote URL scheme {parsed.scheme!r}; only http/https allowed")
        return None
    if not parsed.netloc:
        logger.warning("Rejected remote URL without a host")
        return None
    if parsed.scheme == "http" and (parsed.hostname or "") not in _PLAINTEXT_HOSTS:
        logger.warning(f"Refusing plaintext http to {parsed.hostname}; use https")
        return None
    return url
