from __future__ import annotations

import json
from pathlib import Path

from tag_overlay.settings import OverlaySettings, load_settings, resolve_settings_path, settings_from_mapping


def test_missing_file_uses_defaults(tmp_path: Path):
    assert load_settings(tmp_path / "missing.json") == OverlaySettings()


def test_malformed_json_uses_defaults(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_settings(path) == OverlaySettings()


def test_values_are_coerced_and_clamped(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "editor_width": "220",
                "editor_height": 4,
                "placeholder": "  Who is this?  ",
                "confirmation": "COUNT",
                "pending_timeout_seconds": 12,
                "position_tolerance": -1,
                "log_retention": 99,
                "enforce_mention_format": True,
                "unknown": "ignored",
            }
        ),
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.editor_width == 220
    assert settings.editor_height == 16
    assert settings.placeholder == "Who is this?"
    assert settings.confirmation == "count"
    assert settings.pending_timeout_seconds == 12.0
    assert settings.position_tolerance == 0.0
    assert settings.log_retention == 20
    assert settings.enforce_mention_format is True


def test_bad_values_fall_back():
    settings = settings_from_mapping(
        {"editor_width": True, "confirmation": "guess", "pending_timeout_seconds": 0, "placeholder": ""}
    )
    assert settings.editor_width == 150
    assert settings.confirmation == "identity"
    assert settings.pending_timeout_seconds is None
    assert settings.placeholder == "Type username"


def test_env_forces_format_enforcement(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TAG_OVERLAY_ENFORCE_FORMAT", "yes")
    assert load_settings(tmp_path / "missing.json").enforce_mention_format is True
    monkeypatch.setenv("TAG_OVERLAY_ENFORCE_FORMAT", "off")
    path = tmp_path / "settings.json"
    path.write_text('{"enforce_mention_format": true}', encoding="utf-8")
    assert load_settings(path).enforce_mention_format is False


def test_settings_path_resolution(tmp_path: Path, monkeypatch):
    explicit = tmp_path / "explicit.json"
    assert resolve_settings_path(explicit) == explicit.resolve()
    monkeypatch.setenv("TAG_OVERLAY_SETTINGS_PATH", str(tmp_path / "env.json"))
    assert resolve_settings_path() == (tmp_path / "env.json").resolve()
    monkeypatch.delenv("TAG_OVERLAY_SETTINGS_PATH")
    monkeypatch.chdir(tmp_path)
    assert resolve_settings_path() == (tmp_path / "tag_overlay_settings.json").resolve()
