"""
Percent-space geometry shared by overlay placement and marker resolution.

All coordinates are percentages of the panel (0-100 on each axis). Boxes are
estimates only; no real text measurement happens anywhere in this package.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

# Padding added to each side of an estimated box before overlap tests (in %)
BBOX_PADDING = 4

# Box height estimate: 6% per line plus 5% chrome, capped
LINE_HEIGHT = 6
BOX_CHROME = 5
MAX_BOX_HEIGHT = 35

# Characters that fit across 100% of the panel width
CHARS_PER_FULL_WIDTH = 35
MIN_CHARS_PER_LINE = 8


@dataclass
class BoundingBox:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def intersects(self, other: "BoundingBox") -> bool:
        """Strict overlap: boxes that only share an edge do not intersect."""
        return not (
            self.right <= other.left
            or other.right <= self.left
            or self.bottom <= other.top
            or other.bottom <= self.top
        )

    def intersects_any(self, others: Iterable["BoundingBox"]) -> bool:
        return any(self.intersects(other) for other in others)

    def shift(self, dx: float = 0.0, dy: float = 0.0):
        self.left += dx
        self.right += dx
        self.top += dy
        self.bottom += dy


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values, unlike round()'s banker's rounding."""
    return int(math.floor(value + 0.5))


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(value, maximum))


def anchor_left(x: float, width: float, anchor: Optional[str]) -> float:
    """Left edge of a box of `width` whose anchor point sits at `x`."""
    if anchor in ("top-left", "bottom-left"):
        return x
    if anchor in ("top-right", "bottom-right"):
        return x - width
    return x - width / 2


def chars_per_line(width_pct: float) -> int:
    return max(MIN_CHARS_PER_LINE, round_half_up(width_pct * CHARS_PER_FULL_WIDTH / 100))


def estimate_text_height(text: str, width_pct: float) -> float:
    lines = max(1, math.ceil(len(text) / chars_per_line(width_pct)))
    return min(MAX_BOX_HEIGHT, lines * LINE_HEIGHT + BOX_CHROME)


def estimate_bbox(x: float, y: float, anchor: Optional[str], width_pct: float, text: str,
                  padding: float = BBOX_PADDING) -> BoundingBox:
    """
    Estimates the padded box an overlay occupies when its anchor sits at (x, y).
    The box always grows downward from y; the anchor only shifts it horizontally.
    """
    left = anchor_left(x, width_pct, anchor)
    height = estimate_text_height(text, width_pct)
    return BoundingBox(
        left=left - padding,
        top=y - padding,
        right=left + width_pct + padding,
        bottom=y + height + padding,
    )


def circle_intersects_box(cx: float, cy: float, radius: float, box: BoundingBox) -> bool:
    """Closest-point test between a circle and an axis-aligned box."""
    nearest_x = clamp(cx, box.left, box.right)
    nearest_y = clamp(cy, box.top, box.bottom)
    dx = cx - nearest_x
    dy = cy - nearest_y
    return dx * dx + dy * dy < radius * radius
