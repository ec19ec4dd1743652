"""
Tests for the Flask service in web.app.

Test Coverage:
- GET /health
- POST /diagram with a bare and a wrapped analysis
- POST /diagram/next continuing, rescuing and generating
- 400 responses for malformed bodies
- Incoming equation text is never executed
"""

import pytest

from core.settings import DiagramSettings
from web.app import create_app


@pytest.fixture
def client():
    app = create_app(DiagramSettings())
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_health(client):
    response = client.get("/health")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "ok"
    assert "long_division" in body["categories"]
    assert body["tables"]["elements"] == 20


def test_diagram_from_bare_analysis(client):
    response = client.post("/diagram", json={"questionText": "Divide 7248 by 8", "subject": "math"})
    body = response.get_json()

    assert response.status_code == 200
    assert body["diagram"]["type"] == "long_division"
    assert body["diagram"]["visibleStep"] == 0
    assert body["diagram"]["data"]["quotient"] == 906


def test_diagram_from_wrapped_analysis(client):
    response = client.post("/diagram", json={"analysis": {"questionText": "Who wrote Hamlet?", "subject": "language"}})

    assert response.status_code == 200
    assert response.get_json() == {"diagram": None}


def test_diagram_rejects_non_json(client):
    response = client.post("/diagram", data="divide 10 by 2", content_type="text/plain")

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_diagram_rejects_missing_question(client):
    response = client.post("/diagram", json={"subject": "math"})
    body = response.get_json()

    assert response.status_code == 400
    assert body["details"]


def test_next_turn_continues_previous(client, fbd_diagram):
    response = client.post("/diagram/next", json={"previous": fbd_diagram.to_payload(), "message": "Now weight."})
    body = response.get_json()

    assert response.status_code == 200
    assert body["source"] == "continued"
    assert body["diagram"]["visibleStep"] == 1
    assert body["phase"] == "in_progress"
    assert body["message"] == "Now weight."


def test_next_turn_rescues_ascii(client):
    response = client.post("/diagram/next", json={"message": "```\n  ____\n8 | 7248\n```\nStart with 7."})
    body = response.get_json()

    assert body["source"] == "rescued"
    assert body["stripAscii"] is True
    assert body["diagram"]["type"] == "long_division"
    assert body["message"] == "Start with 7."


def test_next_turn_generates_from_analysis(client):
    response = client.post("/diagram/next", json={
        "analysis": {"questionText": "Draw the Bohr model of a sodium atom", "subject": "science"},
        "message": "Let's look at sodium.",
    })
    body = response.get_json()

    assert body["source"] == "generated"
    assert body["diagram"]["type"] == "atom"
    assert body["regressed"] is False


def test_next_turn_rejects_bad_message(client):
    response = client.post("/diagram/next", json={"message": 42})

    assert response.status_code == 400


def test_next_turn_incoming_equation_is_not_executed(client, tmp_path):
    marker = tmp_path / "marker"
    incoming = {
        "type": "equation",
        "visibleStep": 0,
        "totalSteps": 1,
        "data": {
            "originalEquation": "x + 2 = 3",
            "variable": "x",
            "solution": f"__import__('os').system('touch {marker}')",
            "steps": [],
        },
    }
    response = client.post("/diagram/next", json={"incoming": incoming, "message": "Check this."})

    assert response.status_code == 200
    assert response.get_json()["source"] == "incoming"
    assert not marker.exists()
