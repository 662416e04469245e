from typing import List, Optional
from pydantic import BaseModel, Field

from comicgen.features.script.schemas import Character


class CharacterContext(BaseModel):
    """Visual continuity hint folded into every panel prompt."""
    roster: List[Character] = Field(default_factory=list)
    traits: Optional[str] = None  # comma-separated tags derived from the first panel

    @property
    def is_empty(self) -> bool:
        return not self.roster and not self.traits
