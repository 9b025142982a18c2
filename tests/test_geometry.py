import unittest
from audiocomic.core.geometry import (
    BoundingBox,
    anchor_left,
    chars_per_line,
    circle_intersects_box,
    estimate_bbox,
    estimate_text_height,
    round_half_up,
)

class TestGeometry(unittest.TestCase):
    def test_round_half_up(self):
        """Halves round up, unlike Python's built-in round()."""
        self.assertEqual(round_half_up(10.5), 11)
        self.assertEqual(round_half_up(22.5), 23)
        self.assertEqual(round_half_up(33.6), 34)
        self.assertEqual(round_half_up(30.4), 30)

    def test_touching_boxes_do_not_intersect(self):
        a = BoundingBox(0, 0, 10, 10)
        self.assertFalse(a.intersects(BoundingBox(10, 0, 20, 10)))
        self.assertFalse(a.intersects(BoundingBox(0, 10, 10, 20)))
        self.assertTrue(a.intersects(BoundingBox(9, 9, 20, 20)))

    def test_intersects_any(self):
        box = BoundingBox(0, 0, 10, 10)
        self.assertFalse(box.intersects_any([]))
        self.assertTrue(box.intersects_any([BoundingBox(50, 50, 60, 60), BoundingBox(5, 5, 6, 6)]))

    def test_anchor_left(self):
        self.assertEqual(anchor_left(3, 30, "top-left"), 3)
        self.assertEqual(anchor_left(97, 30, "top-right"), 67)
        self.assertEqual(anchor_left(50, 30, "center"), 35)
        self.assertEqual(anchor_left(50, 30, None), 35)

    def test_chars_per_line(self):
        self.assertEqual(chars_per_line(30), 11)
        self.assertEqual(chars_per_line(27), 9)
        self.assertEqual(chars_per_line(10), 8)

    def test_empty_text_gets_minimum_height(self):
        self.assertEqual(estimate_text_height("", 30), 11)

    def test_height_is_capped(self):
        self.assertEqual(estimate_text_height("x" * 500, 50), 35)

    def test_estimate_bbox_is_padded(self):
        box = estimate_bbox(97, 3, "top-right", 30, "Short line.")
        self.assertEqual(box, BoundingBox(63, -1, 101, 18))

    def test_shift(self):
        box = BoundingBox(0, 0, 10, 10)
        box.shift(dx=5, dy=-2)
        self.assertEqual(box, BoundingBox(5, -2, 15, 8))

    def test_circle_box_intersection(self):
        box = BoundingBox(10, 10, 20, 20)
        self.assertTrue(circle_intersects_box(15, 15, 3, box))
        self.assertTrue(circle_intersects_box(22.9, 15, 3, box))
        # Exactly one radius away is not a hit
        self.assertFalse(circle_intersects_box(23, 15, 3, box))
        self.assertFalse(circle_intersects_box(50, 50, 3, box))

if __name__ == "__main__":
    unittest.main()
