# comicgen/features/script/schemas.py
from typing import Iterator, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Character(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = Field(
        "",
        validation_alias=AliasChoices("description", "visualDescription", "visual_description", "appearance"),
    )

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v


class PanelScript(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scene: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("scene", "sceneDescription", "scene_description", "art_description", "description"),
    )
    narration: Optional[str] = None
    dialogue: Optional[str] = Field(None, validation_alias=AliasChoices("dialogue", "caption", "speech"))

    @field_validator("narration", "dialogue", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        if not isinstance(v, str):
            v = str(v)
        return v if v.strip() else None


class PanelGroup(BaseModel):
    """Panels of one spread, by page side (the UI reads rightPanels first)."""
    model_config = ConfigDict(populate_by_name=True)

    primary: List[PanelScript] = Field(default_factory=list, validation_alias=AliasChoices("primary", "rightPanels"))
    secondary: List[PanelScript] = Field(default_factory=list, validation_alias=AliasChoices("secondary", "leftPanels"))

    @property
    def panel_count(self) -> int:
        return len(self.primary) + len(self.secondary)


class ScriptDocument(BaseModel):
    title: str = "Generated Comic"
    characters: List[Character] = Field(default_factory=list)
    spreads: List[PanelGroup]

    @property
    def panel_count(self) -> int:
        return sum(g.panel_count for g in self.spreads)

    def iter_panels(self) -> Iterator[PanelScript]:
        """Panels in reading order: each spread's primary side, then its secondary side."""
        for group in self.spreads:
            yield from group.primary
            yield from group.secondary

    def first_panel(self) -> Optional[PanelScript]:
        return next(self.iter_panels(), None)
