"""Record types for confirmed, transient and in-progress tags."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Tuple

from tag_overlay.errors import InvalidTagError


@dataclass(frozen=True)
class Tag:
    id: str
    x: float
    y: float

    def to_record(self) -> Dict[str, object]:
        return {"id": self.id, "x": self.x, "y": self.y}

    def matches(self, other: "Tag", tolerance: float = 0.0) -> bool:
        if self.id != other.id:
            return False
        return abs(self.x - other.x) <= tolerance and abs(self.y - other.y) <= tolerance


@dataclass(frozen=True)
class TransientTag(Tag):
    token: str = ""
    transient: bool = True

    def as_tag(self) -> Tag:
        return Tag(self.id, self.x, self.y)


@dataclass(frozen=True)
class EditorDraft:
    x: float
    y: float
    value: str = ""

    def with_value(self, value: str) -> "EditorDraft":
        return EditorDraft(self.x, self.y, value)

    def moved_to(self, x: float, y: float) -> "EditorDraft":
        return EditorDraft(x, y, self.value)


def _read_field(item: Any, name: str, index: int) -> Any:
    if isinstance(item, Mapping):
        if name not in item:
            raise InvalidTagError(f"missing '{name}'", index=index)
        return item[name]
    try:
        return getattr(item, name)
    except AttributeError:
        raise InvalidTagError(f"missing '{name}'", index=index) from None


def _coerce_coordinate(raw: Any, name: str, index: int) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidTagError(f"'{name}' must be a number, got {type(raw).__name__}", index=index)
    value = float(raw)
    if not math.isfinite(value):
        raise InvalidTagError(f"'{name}' must be finite", index=index)
    return value


def coerce_tag(item: Any, index: int = 0) -> Tag:
    if isinstance(item, Tag) and not isinstance(item, TransientTag):
        return item
    tag_id = _read_field(item, "id", index)
    if not isinstance(tag_id, str) or not tag_id:
        raise InvalidTagError("'id' must be a non-empty string", index=index)
    x = _coerce_coordinate(_read_field(item, "x", index), "x", index)
    y = _coerce_coordinate(_read_field(item, "y", index), "y", index)
    return Tag(tag_id, x, y)


def coerce_tags(items: Iterable[Any] | None) -> Tuple[Tag, ...]:
    """Validate the confirmed-tag collection where it enters the overlay."""

    if items is None:
        return ()
    if isinstance(items, (str, bytes, Mapping)):
        raise InvalidTagError(f"expected a collection of tags, got {type(items).__name__}")
    tags: list[Tag] = []
    seen: set[str] = set()
    for index, item in enumerate(items):
        tag = coerce_tag(item, index)
        if tag.id in seen:
            raise InvalidTagError(f"duplicate id '{tag.id}'", index=index)
        seen.add(tag.id)
        tags.append(tag)
    return tuple(tags)


__all__ = ["EditorDraft", "Tag", "TransientTag", "coerce_tag", "coerce_tags"]
