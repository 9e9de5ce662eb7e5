"""
Configuration loader for the seed synchronization engine.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..core.exceptions import ConfigError
from ..scheduler import poll_interval_for


logger = logging.getLogger(__name__)


DEFAULT_DB_PATH = Path("server") / "kr.sqlite"
DEFAULT_SEEDS_DIR = Path("server") / "seeds" / "json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}")


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}")


@dataclass
class SyncConfig:
    """
    Settings for the sync engine.

    Attributes:
        db_path: SQLite database file
        seeds_dir: Directory holding the JSON snapshot
        debounce_seconds: Requested debounce window for auto-export
        auto_export: Whether bootstrap starts the auto-export scheduler
        schema_version: Value recorded in ``_meta.json``
        backup_dir: Directory for daily database copies (next to the db if unset)
        log_level: Console log level name
        log_dir: Optional directory for log files
    """
    db_path: Path = DEFAULT_DB_PATH
    seeds_dir: Path = DEFAULT_SEEDS_DIR
    debounce_seconds: float = 1.5
    auto_export: bool = True
    schema_version: int = 1
    backup_dir: Optional[Path] = None
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def poll_interval(self) -> float:
        """Seconds between dirty-flag polls (debounce clamped to 0.5..2s)."""
        return poll_interval_for(self.debounce_seconds)

    def validate(self) -> None:
        if self.debounce_seconds <= 0:
            raise ConfigError("debounce_seconds must be positive")
        if self.schema_version < 1:
            raise ConfigError("schema_version must be >= 1")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        known = {
            "db_path", "seeds_dir", "debounce_seconds", "auto_export",
            "schema_version", "backup_dir", "log_level", "log_dir",
        }
        config = cls()
        if "db_path" in data:
            config.db_path = Path(data["db_path"])
        if "seeds_dir" in data:
            config.seeds_dir = Path(data["seeds_dir"])
        if "debounce_seconds" in data:
            config.debounce_seconds = _parse_float("debounce_seconds", data["debounce_seconds"])
        if "auto_export" in data:
            config.auto_export = _parse_bool("auto_export", data["auto_export"])
        if "schema_version" in data:
            config.schema_version = _parse_int("schema_version", data["schema_version"])
        if data.get("backup_dir"):
            config.backup_dir = Path(data["backup_dir"])
        if "log_level" in data:
            config.log_level = str(data["log_level"])
        if data.get("log_dir"):
            config.log_dir = Path(data["log_dir"])
        config.extra = {k: v for k, v in data.items() if k not in known}
        return config


def load_config(config_path: Optional[Path] = None) -> SyncConfig:
    """
    Load configuration from an optional YAML file plus environment overrides.

    Args:
        config_path: Path to a YAML file with a top-level ``sync`` mapping
            (or the settings at top level)

    Returns:
        Validated SyncConfig

    Raises:
        ConfigError: If the file is missing, malformed or has bad values
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        data = loaded.get("sync", loaded)
        if not isinstance(data, dict):
            raise ConfigError(f"'sync' section in {config_path} must be a mapping")

    config = SyncConfig.from_dict(data)
    _apply_env_overrides(config)
    config.validate()
    return config


def _apply_env_overrides(config: SyncConfig) -> None:
    """Apply environment variable overrides to loaded config."""
    db_path = os.environ.get("SEEDSYNC_DB_PATH")
    if db_path:
        config.db_path = Path(db_path)

    seeds_dir = os.environ.get("SEEDSYNC_SEEDS_DIR")
    if seeds_dir:
        config.seeds_dir = Path(seeds_dir)

    debounce = os.environ.get("SEEDSYNC_DEBOUNCE_SECONDS")
    if debounce:
        config.debounce_seconds = _parse_float("SEEDSYNC_DEBOUNCE_SECONDS", debounce)

    auto_export = os.environ.get("SEEDSYNC_AUTO_EXPORT")
    if auto_export:
        config.auto_export = _parse_bool("SEEDSYNC_AUTO_EXPORT", auto_export)

    backup_dir = os.environ.get("SEEDSYNC_BACKUP_DIR")
    if backup_dir:
        config.backup_dir = Path(backup_dir)

    log_level = os.environ.get("SEEDSYNC_LOG_LEVEL")
    if log_level:
        config.log_level = log_level
