"""JSON-file store of record for confirmed tags."""
from __future__ import annotations

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from tag_overlay.controller.utils import safe_call
from tag_overlay.errors import InvalidTagError
from tag_overlay.tag_model import Tag, coerce_tag, coerce_tags

TAG_STORE_FILENAME = "tag_overlay_tags.json"
_STORE_VERSION = 1

TagsListener = Callable[[str, str, Tuple[Tag, ...]], None]

_LOGGER = logging.getLogger("TagOverlay.Store")


def _default_state() -> Dict[str, Any]:
    return {"version": _STORE_VERSION, "items": {}}


def item_key(container_id: str, item_id: str) -> str:
    return f"{container_id}/{item_id}"


def load_tag_store(path: Path) -> Dict[str, Any]:
    """Lightweight reader for tools that only need the stored records."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _default_state()
    except (OSError, json.JSONDecodeError):
        return _default_state()
    if not isinstance(raw, dict):
        return _default_state()
    items = raw.get("items")
    if not isinstance(items, dict):
        return _default_state()
    version = raw.get("version", _STORE_VERSION)
    return {"version": version, "items": items}


class JsonTagStore:
    """Persists tags per (container, item) and notifies listeners after each write.

    ``add_tag`` and ``remove_tag`` follow the overlay's store callback
    signatures so a controller can be wired straight to them.
    """

    def __init__(self, path: Path, logger: Optional[logging.Logger] = None) -> None:
        self._path = path
        self._logger = logger or _LOGGER
        self._lock = threading.Lock()
        self._state: Dict[str, Any] = _default_state()
        self._listeners: List[TagsListener] = []
        self._load_existing()

    @property
    def path(self) -> Path:
        return self._path

    def _load_existing(self) -> None:
        state = load_tag_store(self._path)
        items: Dict[str, List[Dict[str, object]]] = {}
        for key, records in state["items"].items():
            if not isinstance(records, list):
                self._logger.debug("Skipping malformed entry for %s in %s", key, self._path.name)
                continue
            try:
                tags = coerce_tags(records)
            except InvalidTagError as exc:
                self._logger.debug("Skipping invalid tags for %s in %s: %s", key, self._path.name, exc)
                continue
            items[str(key)] = [tag.to_record() for tag in tags]
        with self._lock:
            self._state["items"] = items

    def tags_for(self, container_id: str, item_id: str) -> Tuple[Tag, ...]:
        with self._lock:
            records = list(self._state["items"].get(item_key(container_id, item_id), []))
        return tuple(Tag(str(record["id"]), float(record["x"]), float(record["y"])) for record in records)

    def subscribe(self, listener: TagsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def add_tag(self, container_id: str, item_id: str, tag: Mapping[str, Any]) -> None:
        record = coerce_tag(tag).to_record()
        key = item_key(container_id, item_id)
        with self._lock:
            entries = self._state["items"].setdefault(key, [])
            entries[:] = [entry for entry in entries if entry.get("id") != record["id"]]
            entries.append(record)
            snapshot = copy.deepcopy(self._state)
        self._logger.info("Tag %s added to %s", record["id"], key)
        self._commit(snapshot, container_id, item_id)

    def remove_tag(self, container_id: str, item_id: str, tag_id: str) -> None:
        key = item_key(container_id, item_id)
        with self._lock:
            entries = self._state["items"].get(key, [])
            remaining = [entry for entry in entries if entry.get("id") != tag_id]
            if len(remaining) == len(entries):
                self._logger.debug("Tag %s not present in %s", tag_id, key)
                return
            self._state["items"][key] = remaining
            snapshot = copy.deepcopy(self._state)
        self._logger.info("Tag %s removed from %s", tag_id, key)
        self._commit(snapshot, container_id, item_id)

    def _commit(self, snapshot: Mapping[str, Any], container_id: str, item_id: str) -> None:
        self._write_snapshot(snapshot)
        tags = self.tags_for(container_id, item_id)
        for listener in list(self._listeners):
            safe_call(listener, container_id, item_id, tags, logger=self._logger, context="Tag store listener failed")

    def _write_snapshot(self, snapshot: Mapping[str, Any]) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(snapshot, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(self._path)
            return True
        except Exception as exc:
            self._logger.debug("Failed to write tag store: %s", exc)
            return False


__all__ = ["JsonTagStore", "TAG_STORE_FILENAME", "item_key", "load_tag_store"]
