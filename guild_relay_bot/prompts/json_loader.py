from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger("guild_relay_bot.prompts")

# path -> (mtime_ns, merged payload)
_OVERRIDES: dict[str, tuple[int | None, dict[str, Any]]] = {}


def data_dir() -> Path:
    return Path(__file__).with_name("data")


def clear_prompt_cache() -> None:
    _OVERRIDES.clear()


def _merge(base: Any, override: Any) -> Any:
    if not (isinstance(base, dict) and isinstance(override, dict)):
        return copy.deepcopy(override)
    merged = copy.deepcopy(base)
    for key, value in override.items():
        merged[key] = _merge(merged[key], value) if key in merged else copy.deepcopy(value)
    return merged


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


def _read_override(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        logger.debug("Prompt override not found: %s", path)
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Failed to read prompt override %s (%s). Using defaults.", path, exc)
        return None
    if not isinstance(payload, dict):
        logger.warning("Prompt override root must be an object: %s (using defaults)", path)
        return None
    return payload


def load_prompt_json(filename: str, defaults: dict[str, Any], *, directory: Path | None = None) -> dict[str, Any]:
    """Return ``defaults`` deep-merged with ``<data dir>/<filename>``.

    The merged result is cached until the file's mtime changes.
    """
    path = (directory or data_dir()) / filename
    cache_key = str(path.resolve())
    mtime_ns = _mtime_ns(path)

    cached = _OVERRIDES.get(cache_key)
    if cached is not None and cached[0] == mtime_ns:
        return copy.deepcopy(cached[1])

    override = _read_override(path)
    merged = _merge(defaults, override) if override is not None else copy.deepcopy(defaults)
    _OVERRIDES[cache_key] = (mtime_ns, copy.deepcopy(merged))
    return merged
