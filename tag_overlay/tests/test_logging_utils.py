from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

import pytest

from tag_overlay import logging_utils


@pytest.fixture(autouse=True)
def reset_overlay_logger():
    logger = logging.getLogger(logging_utils.LOGGER_ROOT_NAME)
    saved = list(logger.handlers)
    saved_level = logger.level
    yield
    logger.setLevel(saved_level)
    for handler in list(logger.handlers):
        if handler not in saved:
            logger.removeHandler(handler)
            handler.close()


def test_resolve_log_level_prefers_override(monkeypatch):
    monkeypatch.setenv("TAG_OVERLAY_LOG_LEVEL", "ERROR")
    assert logging_utils.resolve_log_level(override="warning") == logging.WARNING
    assert logging_utils.resolve_log_level(override=15) == 15


def test_resolve_log_level_reads_env(monkeypatch):
    monkeypatch.setenv("TAG_OVERLAY_LOG_LEVEL", "10")
    assert logging_utils.resolve_log_level() == logging.DEBUG
    monkeypatch.setenv("TAG_OVERLAY_LOG_LEVEL", "error")
    assert logging_utils.resolve_log_level() == logging.ERROR


def test_resolve_log_level_defaults_from_debug_flag(monkeypatch):
    monkeypatch.delenv("TAG_OVERLAY_LOG_LEVEL", raising=False)
    assert logging_utils.resolve_log_level(debug_enabled=True) == logging.DEBUG
    assert logging_utils.resolve_log_level() == logging.INFO
    monkeypatch.setenv("TAG_OVERLAY_LOG_LEVEL", "chatty")
    assert logging_utils.resolve_log_level() == logging.INFO


def test_resolve_logs_dir_honours_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TAG_OVERLAY_LOG_DIR", str(tmp_path / "logs"))
    assert logging_utils.resolve_logs_dir() == tmp_path / "logs" / "TagOverlay"


def test_rotating_handler_retention(tmp_path):
    handler = logging_utils.build_rotating_file_handler(tmp_path, "x.log", retention=3)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert handler.maxBytes == 512 * 1024
    finally:
        handler.close()


def test_configure_logging_attaches_handler_once(tmp_path):
    logger = logging_utils.configure_logging(level=logging.DEBUG, log_dir=tmp_path)
    again = logging_utils.configure_logging(level=logging.WARNING, log_dir=tmp_path)
    assert logger is again
    ours = [h for h in logger.handlers if getattr(h, "_tag_overlay_handler", False)]
    assert len(ours) == 1
    assert ours[0].level == logging.WARNING
    logging.getLogger("TagOverlay.Controller").warning("hello %s", "log")
    ours[0].flush()
    assert "hello log" in (tmp_path / "tag_overlay.log").read_text(encoding="utf-8")


def test_resolve_logs_dir_skips_unwritable_override(tmp_path, monkeypatch):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("TAG_OVERLAY_LOG_DIR", str(blocker))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    assert logging_utils.resolve_logs_dir() == tmp_path / "state" / "tag-overlay" / "logs" / "TagOverlay"
