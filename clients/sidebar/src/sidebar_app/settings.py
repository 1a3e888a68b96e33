"""Persisted viewer settings for the sidebar CLI."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .model import MODE_DEFAULT, ViewerContext, normalize_mode

BASE_DIR = Path.home() / ".sidebar_order"
DEFAULT_SETTINGS_FILE = BASE_DIR / "settings.json"

logger = logging.getLogger(__name__)


def atomic_write_json(path: Path, payload: Dict[str, Any]) -> None:
    path = path.expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    content = json.dumps(payload, indent=2, sort_keys=True)

    fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)


def load_settings(path: Path | str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """Load persisted settings from disk if present."""

    target = Path(path).expanduser()
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, ValueError):
        logger.warning("ignoring unreadable settings file %s", target)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: expected a JSON object", target)
        return {}
    return data


def persist_settings(settings: Dict[str, Any], path: Path | str = DEFAULT_SETTINGS_FILE) -> None:
    payload = dict(settings)
    if "enabled_capabilities" in payload:
        payload["enabled_capabilities"] = sorted(payload["enabled_capabilities"])
    atomic_write_json(Path(path), payload)


def viewer_from_settings(
    settings: Dict[str, Any],
    active_conversation_id: Optional[str] = None,
) -> ViewerContext:
    capabilities = settings.get("enabled_capabilities") or []
    if isinstance(capabilities, str) or not isinstance(capabilities, (list, tuple, set, frozenset)):
        raise ValueError("enabled_capabilities must be a list of strings")
    return ViewerContext(
        viewer_id=str(settings.get("viewer_id") or ""),
        active_conversation_id=active_conversation_id,
        display_mode=normalize_mode(settings.get("display_mode") or MODE_DEFAULT),
        enabled_capabilities=frozenset(str(tag) for tag in capabilities),
    )
