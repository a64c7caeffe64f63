"""Configuration for quotebook.

Settings are read with priority:
1. Environment variables (QUOTEBOOK_*)
2. ``<quotebook home>/config.json``
3. Built-in defaults
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from quotebook.remote import (
    DEFAULT_PUBLISH_USER_ID,
    DEFAULT_REMOTE_URL,
    DEFAULT_SNAPSHOT_LIMIT,
    DEFAULT_TIMEOUT,
)
from quotebook.scheduler import DEFAULT_SYNC_INTERVAL
from quotebook.utils import get_quotebook_home

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"


@dataclass
class QuotebookConfig:
    """Runtime settings."""

    data_dir: Path = field(default_factory=get_quotebook_home)
    remote_url: Optional[str] = DEFAULT_REMOTE_URL  # None disables sync
    auth_token: Optional[str] = None
    sync_interval: float = DEFAULT_SYNC_INTERVAL
    snapshot_limit: int = DEFAULT_SNAPSHOT_LIMIT
    timeout: float = DEFAULT_TIMEOUT
    publish_user_id: int = DEFAULT_PUBLISH_USER_ID
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "quotebook.db"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["data_dir"] = str(self.data_dir)
        if data.get("auth_token"):
            data["auth_token"] = "***"
        return data


# setting name -> (environment variable, parser)
_SETTINGS: Dict[str, tuple] = {
    "remote_url": ("QUOTEBOOK_REMOTE_URL", str),
    "auth_token": ("QUOTEBOOK_AUTH_TOKEN", str),
    "sync_interval": ("QUOTEBOOK_SYNC_INTERVAL", float),
    "snapshot_limit": ("QUOTEBOOK_SNAPSHOT_LIMIT", int),
    "timeout": ("QUOTEBOOK_TIMEOUT", float),
    "publish_user_id": ("QUOTEBOOK_PUBLISH_USER_ID", int),
    "log_level": ("QUOTEBOOK_LOG_LEVEL", str),
}

_POSITIVE = {"sync_interval", "timeout"}


def _load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to load config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}
    return data


def _parse(name: str, raw: Any, parser: Callable[[Any], Any]) -> Any:
    try:
        value = parser(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid value for {name}: {raw!r}, using default")
        return None
    if name in _POSITIVE and value <= 0:
        logger.warning(f"{name} must be positive, got {value!r}, using default")
        return None
    if name == "snapshot_limit" and value < 0:
        logger.warning(f"snapshot_limit must not be negative, got {value!r}, using default")
        return None
    return value


def load_config(data_dir: Optional[Path] = None) -> QuotebookConfig:
    """Build the effective configuration from defaults, config file and environment."""
    config = QuotebookConfig(data_dir=Path(data_dir) if data_dir else get_quotebook_home())
    file_values = _load_config_file(config.data_dir / CONFIG_FILE_NAME)

    for name, (env_var, parser) in _SETTINGS.items():
        raw = os.environ.get(env_var)
        source = env_var
        if raw is None and name in file_values:
            raw = file_values[name]
            source = CONFIG_FILE_NAME
        if raw is None:
            continue
        if name == "remote_url" and raw in ("", "none", "off"):
            config.remote_url = None
            continue
        value = _parse(name, raw, parser)
        if value is not None:
            setattr(config, name, value)
            logger.debug("Config %s set from %s", name, source)

    return config
