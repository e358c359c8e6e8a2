from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from tag_overlay.errors import InvalidGeometryError


def clamp_unit(value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    if number < 0.0:
        return 0.0
    if number > 1.0:
        return 1.0
    return number


def to_normalized(
    pixel_x: float,
    pixel_y: float,
    container_width: float,
    container_height: float,
) -> Tuple[float, float]:
    """Convert an element-relative click into normalized coordinates.

    The result is not clamped; pointer offsets reported by overlapping
    elements can fall outside the container.
    """

    width = float(container_width)
    height = float(container_height)
    if not (math.isfinite(width) and math.isfinite(height)):
        raise InvalidGeometryError(f"container size is not finite: {container_width}x{container_height}")
    if width <= 0.0 or height <= 0.0:
        raise InvalidGeometryError(f"container has no area: {container_width}x{container_height}")
    return float(pixel_x) / width, float(pixel_y) / height


def _format_percent(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{text or '0'}%"


@dataclass(frozen=True)
class AnchoredOffsets:
    """Edge-relative percentages; one horizontal and one vertical edge is set."""

    left: Optional[float] = None
    right: Optional[float] = None
    top: Optional[float] = None
    bottom: Optional[float] = None

    @property
    def horizontal_edge(self) -> str:
        return "right" if self.right is not None else "left"

    @property
    def vertical_edge(self) -> str:
        return "bottom" if self.bottom is not None else "top"

    def as_css(self) -> Dict[str, str]:
        position: Dict[str, str] = {}
        for edge in ("left", "right", "top", "bottom"):
            value = getattr(self, edge)
            if value is not None:
                position[edge] = _format_percent(value)
        return position

    def resolve(
        self,
        container_width: float,
        container_height: float,
        item_width: float = 0.0,
        item_height: float = 0.0,
    ) -> Tuple[float, float]:
        """Return the top-left pixel position of an item placed by these offsets.

        Items that fit are kept inside the container; an item larger than the
        container is pinned to its anchored edge.
        """

        width = max(0.0, float(container_width))
        height = max(0.0, float(container_height))
        if self.right is not None:
            px = width - width * clamp_unit(self.right / 100.0) - item_width
        else:
            px = width * clamp_unit((self.left or 0.0) / 100.0)
        if self.bottom is not None:
            py = height - height * clamp_unit(self.bottom / 100.0) - item_height
        else:
            py = height * clamp_unit((self.top or 0.0) / 100.0)
        px = _clamp_span(px, item_width, width, pin_far=self.right is not None)
        py = _clamp_span(py, item_height, height, pin_far=self.bottom is not None)
        return px, py


def _clamp_span(start: float, size: float, limit: float, *, pin_far: bool) -> float:
    if size >= limit:
        return limit - size if pin_far else 0.0
    return min(max(start, 0.0), limit - size)


def to_anchored_offsets(x: float, y: float) -> AnchoredOffsets:
    """Anchor from the nearer edge so content grows away from the far edge."""

    horizontal: Dict[str, float] = {}
    vertical: Dict[str, float] = {}
    if x > 0.5:
        horizontal["right"] = (1.0 - x) * 100.0
    else:
        horizontal["left"] = x * 100.0
    if y > 0.5:
        vertical["bottom"] = (1.0 - y) * 100.0
    else:
        vertical["top"] = y * 100.0
    return AnchoredOffsets(**horizontal, **vertical)


__all__ = ["AnchoredOffsets", "clamp_unit", "to_anchored_offsets", "to_normalized"]
