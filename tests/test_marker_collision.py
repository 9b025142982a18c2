import unittest
from audiocomic.core.models import ComicPanel, TextOverlay
from audiocomic.agents.assembly.marker_collision import (
    MARKER_RADIUS,
    compass_to_percent,
    initial_marker_positions,
    overlay_rect,
    resolve_marker_collisions,
    resolve_panel_markers,
)
from audiocomic.core.geometry import circle_intersects_box

LONG_TEXT = "x" * 70


class TestResolveMarkerCollisions(unittest.TestCase):
    def test_passthrough_without_blocking_overlays(self):
        positions = ["left", "center", "bottom-right"]
        overlays = [
            TextOverlay(type="dialogue", text="Hello.", x=50, y=45, anchor="center", max_width_percent=40),
        ]
        self.assertEqual(resolve_marker_collisions(positions, overlays), positions)
        self.assertEqual(resolve_marker_collisions(positions, []), positions)

    def test_unplaced_overlays_do_not_block(self):
        overlays = [TextOverlay(type="narration", text="Not placed yet.")]
        self.assertEqual(resolve_marker_collisions(["center"], overlays), ["center"])

    def test_marker_moves_off_box_covering_center(self):
        box = TextOverlay(type="narration", text="Context.", x=50, y=42, anchor="center", max_width_percent=40)
        [resolved] = resolve_marker_collisions(["center"], [box])

        self.assertNotEqual(resolved, "center")
        cx, cy = compass_to_percent(resolved)
        self.assertFalse(circle_intersects_box(cx, cy, MARKER_RADIUS, overlay_rect(box)))
        # top and bottom are equally close; the scan reaches top first
        self.assertEqual(resolved, "top")

    def test_only_colliding_markers_move(self):
        box = TextOverlay(type="caption", text="Context.", x=50, y=42, anchor="center", max_width_percent=40)
        resolved = resolve_marker_collisions(["top-left", "center", "right"], [box])
        self.assertEqual(resolved, ["top-left", "top", "right"])

    def test_rect_follows_anchor(self):
        box = TextOverlay(type="caption", text="Kyiv", x=97, y=40, anchor="top-right", max_width_percent=30)
        rect = overlay_rect(box)
        self.assertEqual((rect.left, rect.top, rect.right, rect.bottom), (67, 40, 97, 48))
        self.assertEqual(resolve_marker_collisions(["right"], [box]), ["top-right"])

    def test_long_text_rect_is_taller_and_width_defaults(self):
        rect = overlay_rect(TextOverlay(type="narration", text=LONG_TEXT, x=0, y=10, anchor="top-left"))
        self.assertEqual(rect.height, 15)
        self.assertEqual(rect.width, 30)

    def test_marker_keeps_position_when_nothing_is_free(self):
        bands = [
            TextOverlay(type="narration", text=LONG_TEXT, x=0, y=y, anchor="top-left", max_width_percent=100)
            for y in (10, 40, 70)
        ]
        self.assertEqual(resolve_marker_collisions(["center", "top"], bands), ["center", "top"])


class TestPanelMarkers(unittest.TestCase):
    def setUp(self):
        self.panel = ComicPanel(
            panel_index=3,
            focal_point="right",
            overlays=[
                TextOverlay(type="dialogue", text="We must act.", speaker="Minister",
                            character_position="left", audio_url="audio/p3-0.mp3"),
                TextOverlay(type="narration", text="Context.", x=50, y=12, anchor="center", max_width_percent=40),
                TextOverlay(type="dialogue", text="Not yet.", speaker="General", audio_url="audio/p3-2.mp3"),
                TextOverlay(type="dialogue", text="Silent line.", speaker="Aide"),
            ],
        )

    def test_initial_positions_priority(self):
        self.assertEqual(initial_marker_positions(self.panel), ["left", "right"])

        no_focal = self.panel.model_copy(update={"focal_point": None})
        self.assertEqual(initial_marker_positions(no_focal), ["left", "center"])

    def test_resolve_panel_markers_keys_by_overlay_index(self):
        markers = resolve_panel_markers(self.panel)
        self.assertEqual(markers, {0: "left", 2: "right"})

    def test_panel_without_voiced_dialogue(self):
        panel = ComicPanel(overlays=[TextOverlay(type="caption", text="1989")])
        self.assertEqual(resolve_panel_markers(panel), {})

if __name__ == "__main__":
    unittest.main()
