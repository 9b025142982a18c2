import logging
import math
from typing import Dict, List, Sequence, Tuple

from audiocomic.core.geometry import BoundingBox, anchor_left, circle_intersects_box
from audiocomic.core.models import ComicPanel, FocalPoint, TextOverlay

logger = logging.getLogger(__name__)

# Percent-space radius of a marker (~24px on an ~800px panel)
MARKER_RADIUS = 3

DEFAULT_MARKER_POSITION: FocalPoint = "center"

COMPASS_PERCENT: Dict[str, Tuple[float, float]] = {
    "left": (12, 45),
    "center": (50, 45),
    "right": (88, 45),
    "top": (50, 15),
    "bottom": (50, 75),
    "top-left": (12, 15),
    "top-right": (88, 15),
    "bottom-left": (12, 75),
    "bottom-right": (88, 75),
}

# Scan order for relocation; on equal distance the earlier candidate wins
CANDIDATE_POSITIONS: List[FocalPoint] = [
    "top-left", "top", "top-right",
    "left", "center", "right",
    "bottom-left", "bottom", "bottom-right",
]

BLOCKING_TYPES = ("narration", "caption")

DEFAULT_OVERLAY_WIDTH = 30
SHORT_TEXT_LENGTH = 60
SHORT_TEXT_HEIGHT = 8
LONG_TEXT_HEIGHT = 15


def compass_to_percent(position: FocalPoint) -> Tuple[float, float]:
    return COMPASS_PERCENT.get(position, COMPASS_PERCENT[DEFAULT_MARKER_POSITION])


def overlay_rect(overlay: TextOverlay) -> BoundingBox:
    """Rough, unpadded box of an already placed overlay."""
    width = overlay.max_width_percent or DEFAULT_OVERLAY_WIDTH
    height = SHORT_TEXT_HEIGHT if len(overlay.text) < SHORT_TEXT_LENGTH else LONG_TEXT_HEIGHT
    left = anchor_left(overlay.x, width, overlay.anchor)
    return BoundingBox(left=left, top=overlay.y, right=left + width, bottom=overlay.y + height)


def _collides(position: FocalPoint, rects: Sequence[BoundingBox]) -> bool:
    cx, cy = compass_to_percent(position)
    return any(circle_intersects_box(cx, cy, MARKER_RADIUS, rect) for rect in rects)


def resolve_marker_collisions(positions: Sequence[FocalPoint],
                              overlays: Sequence[TextOverlay]) -> List[FocalPoint]:
    """
    Moves markers off narration and caption boxes.

    Returns a list the same length and order as `positions`. A colliding marker
    moves to the nearest collision-free compass position; when none exists it
    keeps its original position.
    """
    blocking = [o for o in overlays if o.type in BLOCKING_TYPES and o.is_placed]
    if not blocking:
        return list(positions)

    rects = [overlay_rect(o) for o in blocking]
    resolved: List[FocalPoint] = []

    for position in positions:
        if not _collides(position, rects):
            resolved.append(position)
            continue

        cx, cy = compass_to_percent(position)
        best = position
        best_distance = math.inf
        for candidate in CANDIDATE_POSITIONS:
            if _collides(candidate, rects):
                continue
            nx, ny = compass_to_percent(candidate)
            distance = math.hypot(nx - cx, ny - cy)
            if distance < best_distance:
                best = candidate
                best_distance = distance

        if best == position:
            logger.debug(f"No free spot for marker at '{position}', keeping it")
        resolved.append(best)

    return resolved


def audio_dialogue_indices(panel: ComicPanel) -> List[int]:
    return [i for i, o in enumerate(panel.overlays) if o.type == "dialogue" and o.audio_url]


def initial_marker_positions(panel: ComicPanel) -> List[FocalPoint]:
    """One marker per voiced dialogue line: explicit character position, then focal point, then center."""
    return [
        panel.overlays[i].character_position or panel.focal_point or DEFAULT_MARKER_POSITION
        for i in audio_dialogue_indices(panel)
    ]


def resolve_panel_markers(panel: ComicPanel) -> Dict[int, FocalPoint]:
    """Maps overlay index to the marker position the reader should render."""
    indices = audio_dialogue_indices(panel)
    if not indices:
        return {}
    resolved = resolve_marker_collisions(initial_marker_positions(panel), panel.overlays)
    return dict(zip(indices, resolved))
