# tests/test_characters_service.py
import pytest

from comicgen.features.characters.service import parse_trait_tags, resolve_character_context
from comicgen.features.script.schemas import Character, PanelGroup, PanelScript, ScriptDocument
from conftest import FakeChatClient, FakeImagesClient, connection_error, png_bytes, real_png


def _doc(characters=None) -> ScriptDocument:
    return ScriptDocument(
        title="T",
        characters=characters or [],
        spreads=[PanelGroup(primary=[PanelScript(scene="cat on a roof"), PanelScript(scene="cat jumps")])],
    )

def test_parse_trait_tags_limits_and_cleans():
    raw = "<think>looking...</think>\n- orange fur, red scarf, green eyes, small, ninja mask, tail, whiskers, bell\nextra line"
    assert parse_trait_tags(raw) == "orange fur, red scarf, green eyes, small, ninja mask, tail, whiskers"
    assert parse_trait_tags("   ") == ""

@pytest.mark.asyncio
async def test_script_roster_wins(make_services):
    images = FakeImagesClient([png_bytes(2000)])
    vision = FakeChatClient(["should not be asked"])
    services = make_services(images=images, vision=vision)
    roster = [Character(name="Mochi", description="black cat, red scarf")]

    result = await resolve_character_context(_doc(roster), "", services=services)

    assert [c.name for c in result.context.roster] == ["Mochi"]
    assert result.first_panel is None
    assert images.calls == [] and vision.calls == []

@pytest.mark.asyncio
async def test_no_roster_and_no_vision_gives_empty_context(make_services):
    images = FakeImagesClient([png_bytes(2000)])
    result = await resolve_character_context(_doc(), "", services=make_services(images=images))

    assert result.context.is_empty
    assert result.first_panel is None
    assert images.calls == []

@pytest.mark.asyncio
async def test_first_panel_rendered_early_and_analyzed(make_services):
    images = FakeImagesClient([real_png()])
    vision = FakeChatClient(["orange fur, red scarf, green eyes"])
    services = make_services(images=images, vision=vision)

    result = await resolve_character_context(_doc(), "watercolor", services=services)

    assert result.context.traits == "orange fur, red scarf, green eyes"
    assert result.first_panel is not None
    assert result.first_panel.src == "mem://panel-1"
    assert len(images.calls) == 1
    assert "cat on a roof" in images.calls[0]["prompt"]
    parts = vision.calls[0]["messages"][0]["content"]
    assert parts[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")

@pytest.mark.asyncio
async def test_vision_failure_keeps_early_render(make_services):
    services = make_services(images=FakeImagesClient([real_png()]), vision=FakeChatClient([connection_error()]))
    result = await resolve_character_context(_doc(), "", services=services)

    assert result.context.is_empty
    assert result.first_panel is not None

@pytest.mark.asyncio
async def test_early_render_failure_is_absorbed(make_services):
    images = FakeImagesClient([connection_error()])
    services = make_services(images=images, vision=FakeChatClient(["tags"]))
    result = await resolve_character_context(_doc(), "", services=services)

    assert result.context.is_empty
    assert result.first_panel is None
    assert len(images.calls) == 3

@pytest.mark.asyncio
async def test_undecodable_panel_is_sent_with_its_own_type(make_services):
    # passes the size check but Pillow cannot decode it
    vision = FakeChatClient(["orange fur, red scarf"])
    services = make_services(images=FakeImagesClient([png_bytes(2000)]), vision=vision)

    result = await resolve_character_context(_doc(), "", services=services)

    assert result.context.traits == "orange fur, red scarf"
    url = vision.calls[0]["messages"][0]["content"][1]["image_url"]["url"]
    assert url.startswith("data:image/png;base64,")
