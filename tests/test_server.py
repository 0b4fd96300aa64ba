import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from core.errors import GenerationError
from mock.templates import Template, render_template
from server.app import create_app
from server.controller import PAID_DISABLED, PAID_INSTRUCTION, SessionController


@pytest.fixture
def client(controller):
    return TestClient(create_app(controller))


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "backend": "mock"}


def test_models_route(client):
    resp = client.get("/api/models")
    assert resp.status_code == 200
    models = resp.json()
    assert any(m["isPaid"] and m["disabled"] for m in models)
    assert any(not m["isPaid"] and not m["disabled"] for m in models)


def test_generate_route(client, free_model):
    resp = client.post("/api/generate", json={"systemPrompt": "Todo list", "modelId": free_model})
    assert resp.status_code == 200
    assert 'id="task-list"' in resp.json()["html"]


def test_generate_missing_description_is_400(client, free_model):
    resp = client.post("/api/generate", json={"modelId": free_model})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Field 'systemPrompt' is required"}


def test_generate_paid_model_is_403(client, paid_model):
    resp = client.post("/api/generate", json={"systemPrompt": "calc", "modelId": paid_model})
    assert resp.status_code == 403
    assert resp.json() == {"error": PAID_DISABLED, "message": PAID_INSTRUCTION}


def test_interact_route_records_history(client, free_model):
    """An interaction updates the page and shows up in the caller's history."""
    html = render_template(Template.CALCULATOR)
    action = json.dumps({"type": "click", "element": "button", "id": "multiply"})
    resp = client.post(
        "/api/interact",
        json={"systemPrompt": "calculator", "modelId": free_model, "currentHtml": html, "action": action},
    )
    assert resp.status_code == 200
    assert "Result: 0" in resp.json()["html"]

    history = client.get("/api/history").json()
    assert [a["action"]["id"] for a in history["actions"]] == ["multiply"]


def test_interact_missing_action_is_400(client, free_model):
    resp = client.post("/api/interact", json={"systemPrompt": "c", "modelId": free_model, "currentHtml": "<p></p>"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Field 'action' is required"


def test_dialog_route(client, free_model):
    resp = client.post(
        "/api/dialog",
        json={"systemPrompt": "calc", "modelId": free_model, "message": "add a heading \"Hi\""},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"response", "html"}
    assert "Hi" in body["html"]
    assert len(client.get("/api/history").json()["dialogHistory"]) == 2


def test_history_empty_for_new_caller(client):
    assert client.get("/api/history").json() == {
        "actions": [],
        "comments": [],
        "dialogHistory": [],
        "lastReset": None,
    }


def test_comment_and_reset_routes(client):
    resp = client.post("/api/history/comment", json={"comment": "bigger buttons"})
    assert resp.json() == {"success": True, "message": "Comment added"}
    assert client.get("/api/history").json()["comments"][0]["text"] == "bigger buttons"

    resp = client.post("/api/history/reset")
    assert resp.json() == {"success": True, "message": "History reset"}
    history = client.get("/api/history").json()
    assert history["comments"] == []
    assert history["lastReset"].endswith("Z")


def test_comment_missing_is_400(client):
    resp = client.post("/api/history/comment", json={})
    assert resp.status_code == 400


def test_generation_error_is_500_with_details(config, free_model):
    backend = AsyncMock()
    backend.name = "stub"
    backend.generate = AsyncMock(side_effect=GenerationError("Model returned status 502", {"error": "bad gateway"}))
    client = TestClient(create_app(SessionController(config, backend)))
    resp = client.post("/api/generate", json={"systemPrompt": "calc", "modelId": free_model})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Model returned status 502", "details": {"error": "bad gateway"}}


def test_lifespan_builds_controller_from_config():
    with TestClient(create_app()) as client:
        resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.parametrize(
    "path,payload",
    [
        ("/api/generate", {"systemPrompt": ["x"], "modelId": "m"}),
        ("/api/interact", {"systemPrompt": "c", "modelId": "m", "currentHtml": 5, "action": "{}"}),
        ("/api/history/comment", {"comment": {"text": "nested"}}),
    ],
)
def test_malformed_body_uses_error_shape(client, path, payload):
    resp = client.post(path, json=payload)
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid request body"
    assert body["details"]
    assert "detail" not in body


def test_unparseable_body_is_400(client):
    resp = client.post("/api/generate", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"
