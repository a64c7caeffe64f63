"""Filesystem helpers for quotebook."""

import os
from pathlib import Path


def get_quotebook_home() -> Path:
    """Return the quotebook data directory.

    ``QUOTEBOOK_DATA_DIR`` overrides the default ``~/.quotebook``.
    """
    override = os.environ.get("QUOTEBOOK_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".quotebook"
