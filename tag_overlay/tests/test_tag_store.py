from __future__ import annotations

import json
from pathlib import Path

from tag_overlay.services.tag_store import JsonTagStore, item_key, load_tag_store
from tag_overlay.tag_model import Tag


def test_add_persists_and_notifies(tmp_path: Path):
    path = tmp_path / "tags.json"
    store = JsonTagStore(path)
    seen: list[tuple] = []
    store.subscribe(lambda container, item, tags: seen.append((container, item, tags)))

    store.add_tag("post-1", "image-1", {"id": "alice", "x": 0.2, "y": 0.3})

    assert store.tags_for("post-1", "image-1") == (Tag("alice", 0.2, 0.3),)
    assert seen == [("post-1", "image-1", (Tag("alice", 0.2, 0.3),))]
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {"version": 1, "items": {"post-1/image-1": [{"id": "alice", "x": 0.2, "y": 0.3}]}}


def test_add_same_id_replaces_position(tmp_path: Path):
    store = JsonTagStore(tmp_path / "tags.json")
    store.add_tag("p", "i", {"id": "alice", "x": 0.2, "y": 0.3})
    store.add_tag("p", "i", {"id": "alice", "x": 0.6, "y": 0.7})
    assert store.tags_for("p", "i") == (Tag("alice", 0.6, 0.7),)


def test_remove_and_unknown_remove(tmp_path: Path):
    store = JsonTagStore(tmp_path / "tags.json")
    store.add_tag("p", "i", {"id": "alice", "x": 0.2, "y": 0.3})
    store.add_tag("p", "i", {"id": "bob", "x": 0.5, "y": 0.5})
    seen: list[tuple] = []
    unsubscribe = store.subscribe(lambda *args: seen.append(args))

    store.remove_tag("p", "i", "nobody")
    assert seen == []

    store.remove_tag("p", "i", "alice")
    assert store.tags_for("p", "i") == (Tag("bob", 0.5, 0.5),)
    assert len(seen) == 1

    unsubscribe()
    store.remove_tag("p", "i", "bob")
    assert len(seen) == 1
    assert store.tags_for("p", "i") == ()


def test_items_are_isolated(tmp_path: Path):
    store = JsonTagStore(tmp_path / "tags.json")
    store.add_tag("p", "one", {"id": "alice", "x": 0.1, "y": 0.1})
    assert store.tags_for("p", "two") == ()
    assert item_key("p", "one") == "p/one"


def test_reload_skips_invalid_entries(tmp_path: Path):
    path = tmp_path / "tags.json"
    path.write_text(
        json.dumps(
            {
                "version": 1,
                "items": {
                    "p/good": [{"id": "alice", "x": 0.2, "y": 0.3}],
                    "p/bad": [{"id": "bob", "x": "nope", "y": 0.3}],
                    "p/weird": "not a list",
                },
            }
        ),
        encoding="utf-8",
    )
    store = JsonTagStore(path)
    assert store.tags_for("p", "good") == (Tag("alice", 0.2, 0.3),)
    assert store.tags_for("p", "bad") == ()
    assert store.tags_for("p", "weird") == ()


def test_load_tag_store_defaults(tmp_path: Path):
    assert load_tag_store(tmp_path / "missing.json") == {"version": 1, "items": {}}
    broken = tmp_path / "broken.json"
    broken.write_text("[]", encoding="utf-8")
    assert load_tag_store(broken) == {"version": 1, "items": {}}


def test_failing_listener_does_not_block_others(tmp_path: Path):
    store = JsonTagStore(tmp_path / "tags.json")
    seen: list[str] = []

    def _broken(*_args):
        raise RuntimeError("listener down")

    store.subscribe(_broken)
    store.subscribe(lambda container, item, tags: seen.append(tags[0].id))
    store.add_tag("p", "i", {"id": "alice", "x": 0.2, "y": 0.3})
    assert seen == ["alice"]
