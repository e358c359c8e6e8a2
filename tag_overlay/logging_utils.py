from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Tuple

LOGGER_ROOT_NAME = "TagOverlay"
LOG_DIR_ENV_VAR = "TAG_OVERLAY_LOG_DIR"
LOG_LEVEL_ENV_VAR = "TAG_OVERLAY_LOG_LEVEL"
LOG_FILENAME = "tag_overlay.log"
_HANDLER_MARKER = "_tag_overlay_handler"


def _log_dir_candidates() -> List[Path]:
    candidates: List[Path] = []
    env_override = os.environ.get(LOG_DIR_ENV_VAR, "").strip()
    if env_override:
        candidates.append(Path(env_override).expanduser())
    state_home = os.environ.get("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    candidates.append(Path(state_home) / "tag-overlay" / "logs")
    candidates.append(Path.cwd() / "logs")
    candidates.append(Path(tempfile.gettempdir()))
    return candidates


def resolve_logs_dir(log_dir_name: str = LOGGER_ROOT_NAME) -> Path:
    """First writable of TAG_OVERLAY_LOG_DIR, the XDG state dir, cwd/logs, then the temp dir."""
    last_error: Optional[OSError] = None
    for base in _log_dir_candidates():
        target = base / log_dir_name
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            last_error = exc
            continue
        return target
    raise last_error or OSError("no writable log directory")


def build_rotating_file_handler(
    log_dir: Path,
    filename: str = LOG_FILENAME,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Rotating handler keeping ``retention`` files in total (the live log plus backups)."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def _resolve_env_log_level() -> Tuple[Optional[int], Optional[str]]:
    raw_value = os.getenv(LOG_LEVEL_ENV_VAR)
    if raw_value is None or not raw_value.strip():
        return None, None
    token = raw_value.strip()
    try:
        level_value = int(token)
    except ValueError:
        resolved = logging.getLevelName(token.upper())
        if not isinstance(resolved, int):
            return None, None
        return resolved, token.upper()
    return level_value, logging.getLevelName(level_value)


def resolve_log_level(debug_enabled: bool = False, override: Optional[str | int] = None) -> int:
    """Explicit override wins, then TAG_OVERLAY_LOG_LEVEL, then the debug flag."""
    if isinstance(override, int):
        return override
    if isinstance(override, str) and override.strip():
        resolved = logging.getLevelName(override.strip().upper())
        if isinstance(resolved, int):
            return resolved
    env_value, _env_name = _resolve_env_log_level()
    if env_value is not None:
        return env_value
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_logging(
    *,
    level: int = logging.INFO,
    retention: int = 5,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Attach the rotating file handler to the TagOverlay logger once."""

    logger = logging.getLogger(LOGGER_ROOT_NAME)
    logger.setLevel(level)
    for handler in logger.handlers:
        if getattr(handler, _HANDLER_MARKER, False):
            handler.setLevel(level)
            return logger
    target_dir = log_dir if log_dir is not None else resolve_logs_dir()
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    handler = build_rotating_file_handler(target_dir, retention=retention, formatter=formatter)
    handler.setLevel(level)
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)
    logger.propagate = True
    return logger


__all__ = [
    "LOGGER_ROOT_NAME",
    "build_rotating_file_handler",
    "configure_logging",
    "resolve_log_level",
    "resolve_logs_dir",
]
