from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


def _default_data_dir() -> Path:
    return Path.home() / ".typecode"


@dataclass(frozen=True)
class Settings:
    """User settings. Read from ~/.typecode/config.yaml when present."""

    data_dir: Path = field(default_factory=_default_data_dir)
    retention_limit: int = 1000
    live_refresh_ms: int = 100
    default_language: str = "java"
    log_level: str = "INFO"

    @property
    def analytics_path(self) -> Path:
        return self.data_dir / "analytics.json"


def default_config_path() -> Path:
    return _default_data_dir() / "config.yaml"


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings, falling back to defaults for anything missing or invalid."""
    config_path = Path(path) if path is not None else default_config_path()
    settings = Settings()
    if not config_path.exists():
        return settings
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Could not read settings from %s: %s", config_path, e)
        return settings
    if raw is None:
        return settings
    if not isinstance(raw, dict):
        logger.warning("Ignoring %s: expected a mapping at top level", config_path)
        return settings
    return replace(settings, **_coerce(raw, config_path))


def _coerce(raw: Dict[str, Any], source: Path) -> Dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Unknown setting '%s' in %s", key, source)
            continue
        try:
            if key == "data_dir":
                values[key] = Path(str(value)).expanduser()
            elif key in ("retention_limit", "live_refresh_ms"):
                number = int(value)
                if number <= 0:
                    raise ValueError("must be positive")
                values[key] = number
            elif key == "log_level":
                values[key] = str(value).upper()
            else:
                values[key] = str(value)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid value for '%s' in %s: %s", key, source, e)
    return values
