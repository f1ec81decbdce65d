"""Tests for health check, CORS headers, and the capture / note REST routes.

Exercises the FastAPI app through an async HTTP client backed by a
memory-only orchestrator, verifying status codes, the JSON error envelope,
and owner scoping via the ``X-Owner-Id`` header.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from auranotes.api.app import create_app
from auranotes.services.orchestrator import set_orchestrator


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def client(app, orchestrator):
    """AsyncClient talking to the app with the test orchestrator installed."""
    set_orchestrator(orchestrator)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    set_orchestrator(None)


# ---------------------------------------------------------------------------
# Health check / CORS
# ---------------------------------------------------------------------------


async def test_health_returns_200(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["version"] == "0.1.0"
    assert "timestamp" in body


async def test_cors_allows_frontend_origin(client):
    resp = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.headers.get("access-control-allow-origin") == "http://localhost:5173"


async def test_cors_rejects_unknown_origin(client):
    resp = await client.options(
        "/health",
        headers={
            "Origin": "http://evil.example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert "access-control-allow-origin" not in resp.headers


# ---------------------------------------------------------------------------
# Capture routes
# ---------------------------------------------------------------------------


async def test_capture_lifecycle(client, orchestrator):
    resp = await client.post("/api/v1/capture/start", json={"title": "Standup", "style": "meeting"})
    assert resp.status_code == 200
    note = resp.json()
    assert note["title"] == "Standup"
    assert note["style"] == "meeting"

    orchestrator.source.deliver("we will ship on friday", is_final=True)

    resp = await client.get("/api/v1/capture/state")
    state = resp.json()
    assert state["status"] == "listening"
    assert state["note_id"] == note["id"]
    assert state["raw_transcript"] == "we will ship on friday "

    assert (await client.post("/api/v1/capture/pause")).json()["status"] == "paused"
    assert (await client.post("/api/v1/capture/resume")).json()["status"] == "listening"

    resp = await client.post("/api/v1/capture/stop")
    assert resp.status_code == 200
    state = resp.json()
    assert state["status"] == "idle"
    assert state["curated_content"] == "# Curated"


async def test_capture_start_without_body(client):
    resp = await client.post("/api/v1/capture/start")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Untitled note"
    assert resp.json()["owner_id"] == "local"


async def test_capture_start_twice_conflicts(client):
    await client.post("/api/v1/capture/start")
    resp = await client.post("/api/v1/capture/start")
    assert resp.status_code == 409
    assert resp.json()["code"] == "CAPTURE_ALREADY_ACTIVE"


async def test_stop_when_idle_conflicts(client):
    resp = await client.post("/api/v1/capture/stop")
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "INVALID_CAPTURE_STATE"
    assert "timestamp" in body


async def test_capture_denied_returns_403(client, orchestrator):
    orchestrator.source.report_error("not-allowed")
    resp = await client.post("/api/v1/capture/start")
    assert resp.status_code == 403
    assert resp.json()["code"] == "PERMISSION_DENIED"


# ---------------------------------------------------------------------------
# Note routes
# ---------------------------------------------------------------------------


async def test_ingest_text_and_list_by_owner(client):
    resp = await client.post(
        "/api/v1/notes/text",
        json={"title": "Paste", "text": "pasted words"},
        headers={"X-Owner-Id": "alice"},
    )
    assert resp.status_code == 200
    note = resp.json()
    assert note["owner_id"] == "alice"
    assert note["curated_content"] == "# Curated"

    mine = (await client.get("/api/v1/notes", headers={"X-Owner-Id": "alice"})).json()
    others = (await client.get("/api/v1/notes", headers={"X-Owner-Id": "bob"})).json()
    assert [n["id"] for n in mine] == [note["id"]]
    assert others == []


async def test_ingest_text_validation_error(client):
    resp = await client.post("/api/v1/notes/text", json={"title": "Empty", "text": ""})
    assert resp.status_code == 422
    assert resp.json()["code"] == "VALIDATION_ERROR"


async def test_ingest_files(client):
    resp = await client.post(
        "/api/v1/notes/files",
        files=[
            ("files", ("a.txt", b"alpha", "text/plain")),
            ("files", ("b.md", b"# beta", "text/markdown")),
        ],
        data={"title": "Uploads"},
    )
    assert resp.status_code == 200
    note = resp.json()
    assert note["title"] == "Uploads"
    assert "--- START OF FILE: a.txt ---" in note["raw_transcript"]
    assert "# beta" in note["raw_transcript"]


async def test_get_missing_note_404(client):
    resp = await client.get("/api/v1/notes/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOTE_NOT_FOUND"


async def test_refine_active_note(client):
    await client.post("/api/v1/notes/text", json={"text": "pasted words"})

    resp = await client.post("/api/v1/notes/active/refine", json={"instructions": "shorter"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["applied"] is True
    assert body["note"]["curated_content"] == "# Refined"
    assert body["last_error"] is None


async def test_refine_without_active_note(client):
    resp = await client.post("/api/v1/notes/active/refine", json={"instructions": "shorter"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "NO_ACTIVE_NOTE"


async def test_select_and_delete(client, orchestrator):
    first = (await client.post("/api/v1/notes/text", json={"text": "one"})).json()
    await client.post("/api/v1/notes/text", json={"text": "two"})

    resp = await client.post(f"/api/v1/notes/{first['id']}/select")
    assert resp.status_code == 200
    assert orchestrator.active_note_id == first["id"]

    resp = await client.delete(f"/api/v1/notes/{first['id']}")
    assert resp.json() == {"id": first["id"], "deleted": True}
    assert (await client.get(f"/api/v1/notes/{first['id']}")).status_code == 404
    assert orchestrator.active_note_id is None


async def test_export_markdown(client):
    note = (await client.post("/api/v1/notes/text", json={"title": "My Note", "text": "raw"})).json()

    resp = await client.get(f"/api/v1/notes/{note['id']}/export")

    body = resp.json()
    assert body["filename"] == "my_note.md"
    assert body["markdown_content"].startswith("# My Note\n")
    assert "## AI Notes\n# Curated" in body["markdown_content"]


async def test_mind_map_and_flashcards(client, mock_llm):
    note = (await client.post("/api/v1/notes/text", json={"text": "raw"})).json()

    mock_llm.generate.return_value = "mindmap\n  root((Topic))"
    resp = await client.post(f"/api/v1/notes/{note['id']}/mindmap")
    assert resp.status_code == 200
    assert resp.json()["mermaid"].startswith("mindmap")

    mock_llm.generate.return_value = '[{"id": "1", "front": "Q", "back": "A"}]'
    resp = await client.post(f"/api/v1/notes/{note['id']}/flashcards")
    assert resp.status_code == 200
    assert resp.json()["cards"] == [{"id": "1", "front": "Q", "back": "A"}]


async def test_mind_map_on_empty_note_conflicts(client):
    note = (await client.post("/api/v1/capture/start")).json()
    resp = await client.post(f"/api/v1/notes/{note['id']}/mindmap")
    assert resp.status_code == 409
    assert resp.json()["code"] == "EMPTY_NOTE"


async def test_malformed_artifact_returns_502(client, mock_llm):
    note = (await client.post("/api/v1/notes/text", json={"text": "raw"})).json()
    mock_llm.generate.return_value = "I cannot draw that."

    resp = await client.post(f"/api/v1/notes/{note['id']}/mindmap")

    assert resp.status_code == 502
    assert resp.json()["code"] == "MALFORMED_RESULT"
