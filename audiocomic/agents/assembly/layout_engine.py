from typing import List, Any, Dict
from audiocomic.core.agent import BaseAgent
from audiocomic.core.models import ArticleManifest, ComicPage, ComicPanel
from audiocomic.core.geometry import estimate_bbox
from audiocomic.agents.assembly.bubble_placement import place_overlays

# Bump whenever bubble_placement changes output; stored manifests below it get re-placed
PLACEMENT_VERSION = 4

PANELS_PER_PAGE = 10


def group_into_pages(panels: List[ComicPanel], per_page: int = PANELS_PER_PAGE) -> List[ComicPage]:
    """Re-indexes panels sequentially and groups them into pages of `per_page`."""
    indexed = [panel.model_copy(update={"panel_index": idx}) for idx, panel in enumerate(panels)]
    return [
        ComicPage(page_number=page_idx + 1, panels=indexed[start:start + per_page])
        for page_idx, start in enumerate(range(0, len(indexed), per_page))
    ]


def count_overlaps(panel: ComicPanel) -> int:
    boxes = [
        estimate_bbox(o.x, o.y, o.anchor, o.max_width_percent, o.text)
        for o in panel.overlays if o.is_placed and o.max_width_percent
    ]
    return sum(1 for i, box in enumerate(boxes) for other in boxes[i + 1:] if box.intersects(other))


class LayoutEngine(BaseAgent):
    def __init__(self, agent_name: str = "LayoutEngine", config: Dict[str, Any] = None):
        super().__init__(agent_name, config)
        self.panels_per_page = self.config.get("panels_per_page", PANELS_PER_PAGE)

    def place_panel(self, panel: ComicPanel) -> ComicPanel:
        overlays = place_overlays(panel.overlays, panel.focal_point)
        self.logger.debug(
            f"Panel {panel.panel_index}: placed {len(overlays)} overlay(s) "
            f"(focal point: {panel.focal_point or 'none'})"
        )
        return panel.model_copy(update={"overlays": overlays})

    def process(self, panels: List[ComicPanel]) -> List[ComicPanel]:
        """
        Places the text overlays of every panel. Returns new panels; the
        input panels are not modified.
        """
        self.logger.info(f"Placing overlays for {len(panels)} panel(s)...")
        return [self.place_panel(panel) for panel in panels]

    def critique(self, input_data: List[ComicPanel], result: List[ComicPanel]) -> Dict[str, Any]:
        """Flags panels whose overlays still overlap after nudging."""
        crowded = [panel.panel_index for panel in result if count_overlaps(panel) > 0]
        if crowded:
            return {"passed": False, "feedback": f"Overlapping overlays remain on panel(s) {crowded}"}
        return {"passed": True, "feedback": "No overlapping overlays."}

    def paginate(self, panels: List[ComicPanel]) -> List[ComicPage]:
        return group_into_pages(panels, self.panels_per_page)

    def needs_placement(self, manifest: ArticleManifest) -> bool:
        return manifest.placement_version < PLACEMENT_VERSION

    def migrate_manifest(self, manifest: ArticleManifest) -> ArticleManifest:
        """
        Re-places every panel of a stored manifest produced by an older
        placement algorithm. Current manifests are returned as-is.
        """
        if not self.needs_placement(manifest):
            return manifest

        self.logger.info(
            f"Re-placing '{manifest.slug}': placement v{manifest.placement_version} -> v{PLACEMENT_VERSION}"
        )
        pages = [
            page.model_copy(update={"panels": self.process(page.panels)})
            for page in manifest.pages
        ]
        return manifest.model_copy(update={"pages": pages, "placement_version": PLACEMENT_VERSION})
