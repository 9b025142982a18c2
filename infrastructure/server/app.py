from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import os
import logging
from typing import Dict, List, Optional
from audiocomic.core.models import ArticleIndexEntry, CamelModel, ComicPanel, FocalPoint, TextOverlay
from audiocomic.core.storage import LocalStorage
from audiocomic.agents.assembly.bubble_placement import place_overlays
from audiocomic.agents.assembly.layout_engine import LayoutEngine
from audiocomic.agents.assembly.marker_collision import resolve_panel_markers
from audiocomic.agents.infrastructure.resilience_agent import get_resilience_agent

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("AudioComicServer")

app = FastAPI(title="Audio Comic Server")

# Enable CORS for the reader frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

storage = LocalStorage()
layout_engine = LayoutEngine("LayoutEngine")


class PlacementRequest(CamelModel):
    overlays: List[TextOverlay]
    focal_point: Optional[FocalPoint] = None


@app.get("/api/health")
async def health():
    return get_resilience_agent().check_system_health()


@app.get("/api/articles", response_model=List[ArticleIndexEntry], response_model_by_alias=True)
async def list_articles():
    return storage.get_article_index()


@app.get("/api/articles/{slug}")
async def get_article(slug: str):
    """Returns the manifest, re-placing overlays first if it predates the current placement version."""
    manifest = storage.get_manifest(slug)
    if not manifest:
        raise HTTPException(status_code=404, detail="Article not found")

    if layout_engine.needs_placement(manifest):
        manifest = layout_engine.migrate_manifest(manifest)
        storage.save_article(manifest)
        logger.info(f"Re-placed stored article '{slug}' on read")
    return manifest.model_dump(by_alias=True, exclude_none=True)


@app.delete("/api/articles/{slug}")
async def delete_article(slug: str):
    if not storage.delete_article(slug):
        raise HTTPException(status_code=404, detail="Article not found")
    return {"status": "success", "slug": slug}


@app.post("/api/place")
async def place(request: PlacementRequest):
    overlays = place_overlays(request.overlays, request.focal_point)
    return {"overlays": [o.model_dump(by_alias=True, exclude_none=True) for o in overlays]}


@app.post("/api/markers")
async def markers(panel: ComicPanel) -> Dict[str, FocalPoint]:
    """Resolved marker position per voiced dialogue overlay, keyed by overlay index."""
    return {str(index): position for index, position in resolve_panel_markers(panel).items()}


# Static files for generated panel images
if os.path.exists(storage.root_dir):
    app.mount("/output", StaticFiles(directory=storage.root_dir), name="output")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
