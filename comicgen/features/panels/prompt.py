# comicgen/features/panels/prompt.py
from typing import Optional

from comicgen.features.characters.schemas import CharacterContext

def truncate_words(text: str, max_words: int) -> str:
    words = (text or "").split()
    if len(words) <= max_words:
        return " ".join(words)
    return " ".join(words[:max_words])

def _style_line(style: str) -> str:
    if style:
        return (
            f"Style: {style}, comic book art, bold ink lines, vibrant colors, dramatic lighting. "
            "The style changes only the rendering technique, never who or what the subjects are."
        )
    return "Style: comic book art, bold ink lines, vibrant colors, dramatic lighting."

def _character_block(context: Optional[CharacterContext]) -> str:
    if context is None or context.is_empty:
        return ""
    if context.roster:
        lines = [f"- {c.name}: {c.description}".rstrip(": ") for c in context.roster]
        return (
            "Characters (keep each one identical across panels; every character must remain "
            "visually distinct from every other):\n" + "\n".join(lines) + "\n"
        )
    return (
        f"Main character constant traits: {context.traits}. "
        "Any other character must remain visually distinct from the main character.\n"
    )

def build_panel_prompt(
    scene: str,
    style: str,
    context: Optional[CharacterContext] = None,
    *,
    max_scene_words: int = 120,
) -> str:
    """
    Final text-to-image prompt: style directive, character block, then the
    scene, capped at `max_scene_words` words.
    """
    return (
        "Comic book panel.\n"
        f"{_style_line(style)}\n"
        f"{_character_block(context)}"
        f"Scene: {truncate_words(scene, max_scene_words)}\n"
        "NO text, captions or speech bubbles in the image."
    )
