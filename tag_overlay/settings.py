"""Settings loader for the tag overlay."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

SETTINGS_PATH_ENV_VAR = "TAG_OVERLAY_SETTINGS_PATH"
ENFORCE_FORMAT_ENV_VAR = "TAG_OVERLAY_ENFORCE_FORMAT"
DEFAULT_SETTINGS_FILENAME = "tag_overlay_settings.json"
CONFIRMATION_POLICIES = ("identity", "count")
LOG_RETENTION_MIN = 1
LOG_RETENTION_MAX = 20

_LOGGER = logging.getLogger("TagOverlay.Settings")


@dataclass(frozen=True)
class OverlaySettings:
    editor_width: int = 150
    editor_height: int = 32
    placeholder: str = "Type username"
    tag_text_color: str = "#ffffff"
    transient_text_color: str = "#696969"
    remove_muted_color: str = "#696969"
    tag_background: str = "rgba(0, 0, 0, 0.7)"
    confirmation: str = "identity"
    position_tolerance: float = 1e-3
    pending_timeout_seconds: Optional[float] = None
    enforce_mention_format: bool = False
    log_retention: int = 5


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None:
        return None
    token = value.strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return None


def _coerce_int(raw: object, fallback: int, *, minimum: int, maximum: Optional[int] = None) -> int:
    if isinstance(raw, bool):
        return fallback
    try:
        value = int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return fallback
    value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def _coerce_float(raw: object, fallback: float, *, minimum: float) -> float:
    if isinstance(raw, bool):
        return fallback
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    if value != value:
        return fallback
    return max(minimum, value)


def _coerce_str(raw: object, fallback: str) -> str:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return fallback


def settings_from_mapping(data: Mapping[str, Any]) -> OverlaySettings:
    """Build settings from a decoded JSON object, keeping defaults for bad values."""

    defaults = OverlaySettings()
    confirmation = str(data.get("confirmation", defaults.confirmation)).strip().lower()
    if confirmation not in CONFIRMATION_POLICIES:
        _LOGGER.debug("Unknown confirmation policy %r; using %s", confirmation, defaults.confirmation)
        confirmation = defaults.confirmation

    timeout_raw = data.get("pending_timeout_seconds")
    pending_timeout: Optional[float] = None
    if timeout_raw is not None:
        pending_timeout = _coerce_float(timeout_raw, 0.0, minimum=0.0) or None

    return OverlaySettings(
        editor_width=_coerce_int(data.get("editor_width"), defaults.editor_width, minimum=40),
        editor_height=_coerce_int(data.get("editor_height"), defaults.editor_height, minimum=16),
        placeholder=_coerce_str(data.get("placeholder"), defaults.placeholder),
        tag_text_color=_coerce_str(data.get("tag_text_color"), defaults.tag_text_color),
        transient_text_color=_coerce_str(data.get("transient_text_color"), defaults.transient_text_color),
        remove_muted_color=_coerce_str(data.get("remove_muted_color"), defaults.remove_muted_color),
        tag_background=_coerce_str(data.get("tag_background"), defaults.tag_background),
        confirmation=confirmation,
        position_tolerance=_coerce_float(
            data.get("position_tolerance"), defaults.position_tolerance, minimum=0.0
        ),
        pending_timeout_seconds=pending_timeout,
        enforce_mention_format=bool(data.get("enforce_mention_format", defaults.enforce_mention_format)),
        log_retention=_coerce_int(
            data.get("log_retention"),
            defaults.log_retention,
            minimum=LOG_RETENTION_MIN,
            maximum=LOG_RETENTION_MAX,
        ),
    )


def resolve_settings_path(explicit: Optional[str | Path] = None) -> Path:
    if explicit:
        return Path(explicit).expanduser().resolve()
    env_override = os.getenv(SETTINGS_PATH_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return (Path.cwd() / DEFAULT_SETTINGS_FILENAME).resolve()


def load_settings(path: Optional[Path] = None) -> OverlaySettings:
    """Read settings from JSON, falling back to defaults on missing or malformed files."""

    settings_path = path if path is not None else resolve_settings_path()
    data: Mapping[str, Any] = {}
    try:
        loaded = json.loads(settings_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        loaded = {}
    except (OSError, json.JSONDecodeError) as exc:
        _LOGGER.debug("Failed to read settings from %s: %s", settings_path, exc)
        loaded = {}
    if isinstance(loaded, dict):
        data = loaded
    settings = settings_from_mapping(data)

    enforce_override = _env_flag(ENFORCE_FORMAT_ENV_VAR)
    if enforce_override is not None:
        settings = replace(settings, enforce_mention_format=enforce_override)
    return settings


__all__ = [
    "CONFIRMATION_POLICIES",
    "ENFORCE_FORMAT_ENV_VAR",
    "OverlaySettings",
    "SETTINGS_PATH_ENV_VAR",
    "load_settings",
    "resolve_settings_path",
    "settings_from_mapping",
]
