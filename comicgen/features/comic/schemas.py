# comicgen/features/comic/schemas.py
from typing import List, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_LAYOUT = "grid-0"
DEFAULT_PANEL_COUNT = 4
BLANK_LAYOUT = "blank"
SLIDE_LAYOUT = "full-page"
SLIDE_GRID = "grid-1"

# every other layout is a 4-panel grid
LAYOUT_PANEL_COUNTS = {
    "grid-2": 2,
    "grid-3a": 3,
    "grid-3b": 3,
}

def panel_count_for_layout(layout_id: str) -> int:
    return LAYOUT_PANEL_COUNTS.get(layout_id, DEFAULT_PANEL_COUNT)

def canvas_layout(layout_id: str) -> str:
    return f"canvas-{layout_id}"


class RenderedPanel(BaseModel):
    """One finished panel as the UI reads it; dialogue travels as `caption`."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    src: str
    narration: Optional[str] = None
    dialogue: Optional[str] = Field(None, alias="caption")


class Spread(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    primary_panels: List[RenderedPanel] = Field(default_factory=list, alias="rightPanels")
    secondary_panels: List[RenderedPanel] = Field(default_factory=list, alias="leftPanels")
    primary_layout: str = Field(..., alias="rightLayout")
    secondary_layout: str = Field(BLANK_LAYOUT, alias="leftLayout")


class ComicResponse(BaseModel):
    title: str
    spreads: List[Spread]


class StoryRequest(BaseModel):
    """Immutable, normalized input to the generation pipeline."""
    model_config = ConfigDict(frozen=True)

    story: str
    style: str = ""
    panel_count: int = DEFAULT_PANEL_COUNT
    layout_id: str = DEFAULT_LAYOUT
    want_narration: bool = True
    want_dialogue: bool = True


class ComicGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    story: str = Field("", validation_alias=AliasChoices("story", "description"))
    style: str = ""
    layout_id: str = Field(DEFAULT_LAYOUT, validation_alias=AliasChoices("layoutId", "layout_id", "grid"))
    panel_count: Optional[int] = Field(
        None, ge=1, le=12, validation_alias=AliasChoices("panelCount", "panel_count"),
        description="Overrides the count implied by the layout",
    )
    want_narration: bool = Field(True, validation_alias=AliasChoices("wantNarration", "want_narration", "captions"))
    want_dialogue: bool = Field(True, validation_alias=AliasChoices("wantDialogue", "want_dialogue", "bubbles"))
    format: Literal["comic", "slide"] = "comic"
    selected_panel_index: Optional[int] = Field(
        None, validation_alias=AliasChoices("selectedPanelIndex", "selected_panel_index", "selectedPanel"),
    )
    existing_panels: Optional[List[RenderedPanel]] = Field(
        None, validation_alias=AliasChoices("existingPanels", "existing_panels"),
    )
    title: Optional[str] = None

    @field_validator("story", "style", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("layout_id", mode="before")
    @classmethod
    def _default_layout(cls, v):
        return v or DEFAULT_LAYOUT

    @property
    def is_slide(self) -> bool:
        # the single-panel grid is rendered as one full-page image, not scripted
        return self.format == "slide" or self.layout_id == SLIDE_GRID

    @property
    def is_panel_regeneration(self) -> bool:
        return self.selected_panel_index is not None and self.existing_panels is not None

    def to_story_request(self) -> StoryRequest:
        return StoryRequest(
            story=self.story.strip(),
            style=self.style.strip(),
            panel_count=self.panel_count or panel_count_for_layout(self.layout_id),
            layout_id=self.layout_id,
            want_narration=self.want_narration,
            want_dialogue=self.want_dialogue,
        )
