"""
Slot-based overlay placement for comic panels.

Overlays are assigned to 8 fixed slots around the panel perimeter, steering
away from the panel's focal point so the main subject stays visible. Text goes
AWAY from the subject, which also gives natural variety across panels.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from audiocomic.core.geometry import BoundingBox, clamp, estimate_bbox, round_half_up
from audiocomic.core.models import Anchor, FocalPoint, OverlayType, TextOverlay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    id: str
    x: float
    y: float
    anchor: Anchor


# 8 placement slots around the panel perimeter. ML/MR overshoot into the gutters.
SLOTS: Dict[str, Slot] = {
    "TL": Slot("TL", 3, 3, "top-left"),
    "TC": Slot("TC", 50, 2, "center"),
    "TR": Slot("TR", 97, 3, "top-right"),
    "ML": Slot("ML", -3, 40, "top-left"),
    "MR": Slot("MR", 103, 40, "top-right"),
    "BL": Slot("BL", 3, 65, "top-left"),
    "BC": Slot("BC", 50, 65, "center"),
    "BR": Slot("BR", 97, 65, "top-right"),
}

SLOT_PREFERENCES: Dict[str, List[str]] = {
    "dialogue": ["TL", "TR", "ML", "MR", "BL", "BR"],
    "narration": ["TL", "TR", "BL", "BR", "ML", "MR"],
    "caption": ["TC", "TR", "TL", "BC", "BR", "BL"],
}

# Slots that would cover the main subject for each focal point
FOCAL_AVOID: Dict[str, frozenset] = {
    "center": frozenset({"TC", "BC", "ML", "MR"}),
    "left": frozenset({"TL", "ML", "BL"}),
    "right": frozenset({"TR", "MR", "BR"}),
    "top": frozenset({"TL", "TC", "TR"}),
    "bottom": frozenset({"BL", "BC", "BR"}),
    "top-left": frozenset({"TL", "TC", "ML"}),
    "top-right": frozenset({"TR", "TC", "MR"}),
    "bottom-left": frozenset({"BL", "BC", "ML"}),
    "bottom-right": frozenset({"BR", "BC", "MR"}),
}

TYPE_PRIORITY: Dict[str, int] = {"dialogue": 0, "narration": 1, "caption": 2}

# (length threshold, width %) tiers; the last width applies past every threshold
WIDTH_TIERS: Dict[str, tuple] = {
    "dialogue": ((40, 30), (80, 38), 46),
    "narration": ((40, 35), (80, 42), 50),
    "caption": ((30, 25), (60, 32), 40),
}

FALLBACK_SLOT = "TL"
MAX_NUDGE_PASSES = 5
NUDGE_MARGIN = 3

# Collision nudges never push an overlay past these Y bounds
MIN_Y = -5
MAX_Y = 75


@dataclass
class SlotAssignment:
    """Working record for one overlay during a placement pass."""
    index: int
    overlay: TextOverlay
    slot_id: str
    x: float
    y: float
    anchor: Anchor
    width: int
    bbox: BoundingBox


def slot_order(overlay_type: OverlayType, focal_point: Optional[FocalPoint] = None) -> List[str]:
    """
    Slot preference order for an overlay type. Slots near the focal point are
    moved to the end rather than dropped, so every overlay still gets a slot.
    """
    base = SLOT_PREFERENCES.get(overlay_type, SLOT_PREFERENCES["caption"])
    avoid = FOCAL_AVOID.get(focal_point) if focal_point else None
    if not avoid:
        return list(base)

    preferred = [s for s in base if s not in avoid]
    fallback = [s for s in base if s in avoid]
    return preferred + fallback


def compute_width(text: str, overlay_type: OverlayType, overlay_count: int) -> int:
    """Box width in percent from text length, shrunk for crowded panels."""
    short, medium, long_width = WIDTH_TIERS.get(overlay_type, WIDTH_TIERS["caption"])
    length = len(text)
    if length < short[0]:
        width = short[1]
    elif length < medium[0]:
        width = medium[1]
    else:
        width = long_width

    if overlay_count >= 5:
        width = round_half_up(width * 0.8)
    elif overlay_count >= 4:
        width = round_half_up(width * 0.9)
    return width


def _slot_bbox(slot: Slot, width: int, text: str) -> BoundingBox:
    return estimate_bbox(slot.x, slot.y, slot.anchor, width, text)


def _pick_slot(preferred: Sequence[str], width: int, text: str, used: set,
               placed: List[BoundingBox]) -> str:
    # 1. First preferred slot whose box is clear of everything placed
    for slot_id in preferred:
        if slot_id not in used and not _slot_bbox(SLOTS[slot_id], width, text).intersects_any(placed):
            return slot_id

    # 2. Any unused slot without overlap
    for slot_id in SLOTS:
        if slot_id not in used and not _slot_bbox(SLOTS[slot_id], width, text).intersects_any(placed):
            return slot_id

    # 3. First unused preferred slot, overlap left for the nudging pass
    for slot_id in preferred:
        if slot_id not in used:
            return slot_id

    # 4. Any unused slot
    for slot_id in SLOTS:
        if slot_id not in used:
            return slot_id

    return FALLBACK_SLOT


def assign_slots(overlays: Sequence[TextOverlay],
                 focal_point: Optional[FocalPoint] = None) -> List[SlotAssignment]:
    """
    Assigns every overlay an initial slot, in placement order
    (dialogue, then narration, then caption; ties keep input order).
    """
    ordered = sorted(enumerate(overlays), key=lambda item: TYPE_PRIORITY.get(item[1].type, len(TYPE_PRIORITY)))
    used = set()
    placed: List[BoundingBox] = []
    assignments: List[SlotAssignment] = []

    for index, overlay in ordered:
        width = compute_width(overlay.text, overlay.type, len(overlays))
        slot_id = _pick_slot(slot_order(overlay.type, focal_point), width, overlay.text, used, placed)
        if slot_id in used:
            logger.warning(f"All {len(SLOTS)} slots taken, reusing {slot_id} for overlay {index}")

        used.add(slot_id)
        slot = SLOTS[slot_id]
        bbox = _slot_bbox(slot, width, overlay.text)
        placed.append(bbox)
        assignments.append(SlotAssignment(
            index=index,
            overlay=overlay,
            slot_id=slot_id,
            x=slot.x,
            y=slot.y,
            anchor=slot.anchor,
            width=width,
            bbox=bbox,
        ))

    return assignments


def resolve_collisions(assignments: List[SlotAssignment], max_passes: int = MAX_NUDGE_PASSES) -> int:
    """
    Nudges the later overlay of each colliding pair along its axis of least
    overlap. Returns the number of nudges applied.
    """
    total = 0
    for _ in range(max_passes):
        nudged = 0
        for i, first in enumerate(assignments):
            for second in assignments[i + 1:]:
                a, b = first.bbox, second.bbox
                if not a.intersects(b):
                    continue

                overlap_x = min(a.right - b.left, b.right - a.left)
                overlap_y = min(a.bottom - b.top, b.bottom - a.top)

                if overlap_x < overlap_y:
                    direction = 1 if b.left > a.left else -1
                    dx = (overlap_x + NUDGE_MARGIN) * direction
                    second.x += dx
                    b.shift(dx=dx)
                else:
                    direction = -1 if b.top < a.top else 1
                    new_y = clamp(second.y + (overlap_y + NUDGE_MARGIN) * direction, MIN_Y, MAX_Y)
                    dy = new_y - second.y
                    second.y = new_y
                    b.shift(dy=dy)
                nudged += 1

        total += nudged
        if not nudged:
            break
    return total


def place_overlays(overlays: Sequence[TextOverlay],
                   focal_point: Optional[FocalPoint] = None) -> List[TextOverlay]:
    """
    Places overlays for a single panel.

    Returns new overlays, in the caller's order, with x, y, anchor and
    max_width_percent set. The input overlays are left untouched. Collisions
    are minimized, not guaranteed gone: cap overlays per panel upstream when
    strict non-overlap matters.
    """
    if not overlays:
        return []

    assignments = assign_slots(overlays, focal_point)
    nudges = resolve_collisions(assignments)
    if nudges:
        logger.debug(f"Resolved residual collisions with {nudges} nudge(s) across {len(overlays)} overlays")

    placed: List[Optional[TextOverlay]] = [None] * len(overlays)
    for assignment in assignments:
        placed[assignment.index] = assignment.overlay.model_copy(update={
            "x": assignment.x,
            "y": assignment.y,
            "anchor": assignment.anchor,
            "max_width_percent": assignment.width,
        })
    return placed
