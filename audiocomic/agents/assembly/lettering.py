from typing import List, Optional
from audiocomic.core.agent import BaseAgent
from audiocomic.core.geometry import anchor_left, chars_per_line, estimate_text_height
from audiocomic.core.models import CharacterVoiceProfile, ComicPanel
from audiocomic.agents.assembly.marker_collision import MARKER_RADIUS, compass_to_percent, resolve_panel_markers
from PIL import Image, ImageDraw, ImageFont # Using Pillow for simple rendering
import os
import textwrap

OVERLAY_COLORS = {
    "dialogue": ("white", "black"),
    "narration": ("#f5e6b8", "#3a2e12"),
    "caption": ("#1f2933", "white"),
}

# Narrator markers sit low in the panel regardless of their compass position
NARRATOR_MARKER_Y = 75


class LetteringAgent(BaseAgent):
    """
    Draws placed overlays and voice markers onto a panel image.
    Used to preview placement; the reader renders the real thing.
    """

    def _load_font(self, size: int):
        font_path = self.config.get("font_path", "arial.ttf")
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            return ImageFont.load_default()

    def process(self, panel: ComicPanel, voices: Optional[List[CharacterVoiceProfile]] = None,
                output_path: Optional[str] = None) -> Optional[str]:
        """
        Adds overlay boxes and markers to the panel image and saves a copy.
        Returns the lettered image path, or None when the panel has no image.
        """
        self.logger.info(f"Adding lettering to Panel {panel.panel_index}...")

        if not panel.image_url or not os.path.exists(panel.image_url):
            self.logger.warning(f"No image found for Panel {panel.panel_index}, skipping lettering.")
            return None

        narrators = {v.speaker for v in (voices or []) if v.is_narrator}

        with Image.open(panel.image_url) as source:
            img = source.convert("RGB")
        draw = ImageDraw.Draw(img)
        width, height = img.size
        font = self._load_font(self.config.get("font_size", max(12, width // 50)))

        for overlay in panel.overlays:
            if not overlay.is_placed:
                self.logger.debug(f"Skipping unplaced {overlay.type} overlay on Panel {panel.panel_index}")
                continue

            box_width = overlay.max_width_percent or 30
            left_pct = anchor_left(overlay.x, box_width, overlay.anchor)
            box_height = estimate_text_height(overlay.text, box_width)
            box = [
                left_pct / 100 * width,
                overlay.y / 100 * height,
                (left_pct + box_width) / 100 * width,
                (overlay.y + box_height) / 100 * height,
            ]
            fill, ink = OVERLAY_COLORS[overlay.type]
            draw.rectangle(box, fill=fill, outline="black", width=2)

            label = overlay.text
            if overlay.type == "dialogue" and overlay.speaker:
                label = f"{overlay.speaker.upper()}: {label}"
            wrapped = textwrap.fill(label, chars_per_line(box_width))
            draw.multiline_text((box[0] + 6, box[1] + 4), wrapped, fill=ink, font=font)

        radius = MARKER_RADIUS / 100 * width
        for index, position in resolve_panel_markers(panel).items():
            cx, cy = compass_to_percent(position)
            if panel.overlays[index].speaker in narrators:
                cy = NARRATOR_MARKER_Y
            cx, cy = cx / 100 * width, cy / 100 * height
            draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill="#f59e0b", outline="black", width=2)

        if output_path is None:
            root, ext = os.path.splitext(panel.image_url)
            output_path = f"{root}_lettered{ext or '.png'}"
        img.save(output_path)
        return output_path
