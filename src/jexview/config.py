"""Viewer preferences read from a JSON config file.

All access is defensive: a missing, unreadable or malformed file, unknown
keys and ill-typed values fall back to the defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "jexview.json"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ViewerConfig:
    show_tree: bool = False
    tree_width: int = 30
    smart_case: bool = True
    history_size: int = 50
    log_level: str = "WARNING"


def _coerce(name: str, value: object, default: object) -> object:
    """Return *value* when it fits the field, otherwise ``None``."""
    if isinstance(default, bool):
        return value if isinstance(value, bool) else None
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            return None
        return value
    if name == "log_level":
        if isinstance(value, str) and value.strip().upper() in _LOG_LEVELS:
            return value.strip().upper()
        return None
    return value if isinstance(value, type(default)) else None


def load_config(path: Path | None = None) -> ViewerConfig:
    """Load the viewer config, falling back to defaults field by field."""
    path = CONFIG_PATH if path is None else Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ViewerConfig()
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("ignoring config %s: %s", path, e)
        return ViewerConfig()
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: not a JSON object", path)
        return ViewerConfig()

    defaults = ViewerConfig()
    known = {f.name for f in fields(ViewerConfig)}
    values: dict[str, object] = {}
    for key, raw in data.items():
        if key not in known:
            logger.warning("ignoring unknown config key %r", key)
            continue
        value = _coerce(key, raw, getattr(defaults, key))
        if value is None:
            logger.warning("ignoring config key %r: bad value %r", key, raw)
            continue
        values[key] = value
    return ViewerConfig(**values)
