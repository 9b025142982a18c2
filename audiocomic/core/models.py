from typing import Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, RootModel
from pydantic.alias_generators import to_camel

FocalPoint = Literal[
    "center", "left", "right", "top", "bottom",
    "top-left", "top-right", "bottom-left", "bottom-right",
]
OverlayType = Literal["dialogue", "narration", "caption"]
Anchor = Literal["top-left", "top-right", "bottom-left", "bottom-right", "center"]
PanelLayout = Literal["normal", "wide", "tall", "large"]


class CamelModel(BaseModel):
    """Base model that reads and writes the camelCase keys used in stored manifests."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


class TextOverlay(CamelModel):
    type: OverlayType = Field(..., description="dialogue, narration or caption")
    text: str = Field("", description="The overlay text as displayed")
    speaker: Optional[str] = Field(None, description="Attributed speaker for dialogue lines")
    character_position: Optional[FocalPoint] = Field(None, description="Where the speaking character sits in the artwork")
    audio_url: Optional[str] = Field(None, description="Synthesized voice clip for this line, if any")
    x: Optional[float] = Field(None, description="Horizontal position in panel percent")
    y: Optional[float] = Field(None, description="Vertical position in panel percent")
    anchor: Optional[Anchor] = Field(None, description="Which corner of the box (x, y) refers to")
    max_width_percent: Optional[float] = Field(None, description="Box width as a percent of panel width")

    @property
    def is_placed(self) -> bool:
        return self.x is not None and self.y is not None


class ComicPanel(CamelModel):
    panel_index: int = Field(0, description="Sequential index of the panel across the article")
    artwork_prompt: str = Field("", description="Visual description sent to the image generator")
    source_excerpt: Optional[str] = Field(None, description="Article passage this panel adapts")
    layout: PanelLayout = Field("normal", description="Size class of the panel on the page")
    focal_point: Optional[FocalPoint] = Field(None, description="Where the artwork puts its main subject")
    overlays: List[TextOverlay] = Field(default_factory=list, description="Text overlays layered on the panel")
    image_url: Optional[str] = Field(None, description="Location of the generated artwork")


class ComicPage(CamelModel):
    page_number: int = Field(..., description="1-based page number")
    panels: List[ComicPanel] = Field(default_factory=list)


class ArtStyle(CamelModel):
    name: str = Field(..., description="Short name of the art style")
    description: str = Field("", description="2-3 sentence description of the style")
    color_palette: str = Field("", description="Color palette notes")
    rendering_notes: str = Field("", description="Technical rendering notes for consistency")


class ArticleScript(CamelModel):
    """One chunk of generated script, as returned by the script writer."""
    art_style: Optional[ArtStyle] = Field(None, description="Required on the first chunk only")
    panels: List[ComicPanel] = Field(default_factory=list)


class ArticleManifest(CamelModel):
    title: str
    slug: str
    source_url: str = ""
    art_style: ArtStyle
    created_at: str = Field(..., description="ISO-8601 creation timestamp")
    total_panels: int = 0
    pages: List[ComicPage] = Field(default_factory=list)
    script_url: Optional[str] = None
    placement_version: int = Field(0, description="Version of the placement algorithm that produced the coordinates")
    status: Literal["complete", "partial"] = "complete"
    audio_enabled: bool = False

    def iter_panels(self):
        for page in self.pages:
            yield from page.panels


class ArticleIndexEntry(CamelModel):
    title: str
    slug: str
    source_url: str = ""
    art_style_name: str = ""
    created_at: str
    total_panels: int = 0
    page_count: int = 0
    thumbnail_url: Optional[str] = None
    status: Literal["complete", "partial"] = "complete"


class CharacterVoiceProfile(CamelModel):
    speaker: str
    voice_id: str
    voice_description: str = ""
    is_narrator: bool = False


class SpeakerMapping(RootModel[Dict[str, str]]):
    """Original speaker name -> the voice name it shares with other speakers."""
    pass
