# tests/test_comic_endpoint.py
import pytest
from fastapi.testclient import TestClient

from comicgen.deps import get_services
from comicgen.main import app
from conftest import FakeChatClient, FakeImagesClient, png_bytes, script_json


@pytest.fixture
def client():
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()

def _use(services):
    app.dependency_overrides[get_services] = lambda: services


def test_generate_comic_two_panel_layout(client, make_services):
    chat = FakeChatClient([script_json(2, title="Ninja Cat")])
    _use(make_services(chat=chat, images=FakeImagesClient([png_bytes(2000)])))

    r = client.post("/api/v1/generate/comic", json={
        "story": "a ninja cat saves a city",
        "style": "",
        "layoutId": "grid-2",
        "wantNarration": True,
        "wantDialogue": False,
    })

    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Ninja Cat"
    spread = body["spreads"][0]
    assert spread["rightLayout"] == "canvas-grid-2"
    assert spread["leftLayout"] == "blank"
    panels = spread["rightPanels"] + spread["leftPanels"]
    assert len(panels) == 2
    assert all("caption" not in p and p["narration"] for p in panels)
    assert "EXACTLY 2 panels" in chat.calls[0]["messages"][0]["content"]

def test_single_panel_regeneration(client, make_services):
    chat = FakeChatClient([script_json(4)])
    _use(make_services(chat=chat, images=FakeImagesClient([png_bytes(2000)])))

    existing = [{"src": "https://img/1.png", "caption": "hi"}, {"src": "https://img/2.png", "narration": "later"}]
    r = client.post("/api/v1/generate/comic", json={
        "story": "closer shot of the cat",
        "layoutId": "grid-2",
        "selectedPanelIndex": 1,
        "existingPanels": existing,
    })

    assert r.status_code == 200
    panels = r.json()["spreads"][0]["rightPanels"]
    assert panels[0] == existing[0]
    assert panels[1] == {"src": "mem://panel-1", "narration": "later"}
    assert chat.calls == []

def test_regeneration_out_of_range_is_400(client, make_services):
    _use(make_services())
    r = client.post("/api/v1/generate/comic", json={
        "story": "x", "selectedPanelIndex": 3, "existingPanels": [{"src": "a"}],
    })
    assert r.status_code == 400
    assert "out of range" in r.json()["error"]

def test_empty_story_is_400(client, make_services):
    _use(make_services())
    r = client.post("/api/v1/generate/comic", json={"story": "", "layoutId": "grid-2"})
    assert r.status_code == 400
    assert r.json() == {"error": "A story description is required."}

def test_missing_image_key_is_500(client, make_services):
    _use(make_services(chat=FakeChatClient([script_json(4)]), image_api_key=""))
    r = client.post("/api/v1/generate/comic", json={"story": "a ninja cat saves a city"})
    assert r.status_code == 500
    assert "IMAGE_API_KEY" in r.json()["error"]

def test_invalid_panel_count_is_422(client, make_services):
    _use(make_services())
    r = client.post("/api/v1/generate/comic", json={"story": "x", "panelCount": 50})
    assert r.status_code == 422
    assert r.json()["error"].startswith("Invalid request:")

def test_health_reports_backends(client, make_services):
    _use(make_services(vision_api_key=""))
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["text_backend"] is True
    assert body["vision_analysis"] is False
