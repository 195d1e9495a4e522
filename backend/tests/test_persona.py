import json

import httpx

from app.routers.persona import build_inquiry_payload


def test_build_inquiry_payload_drops_empty_fields():
    payload = build_inquiry_payload({"name": "Ada King Lovelace", "email": "ada@example.com"}, "itmpl_1")

    attributes = payload["data"]["attributes"]
    assert payload["data"]["type"] == "inquiry"
    assert attributes["inquiry-template-id"] == "itmpl_1"
    assert attributes["fields"] == {
        "name-first": "Ada",
        "name-last": "King Lovelace",
        "email-address": "ada@example.com",
    }


def test_missing_key(client, upstream, test_settings):
    test_settings.persona_api_key = None

    response = client.post("/api/persona/inquiry", json={"templateId": "itmpl_1"})

    assert response.status_code == 503
    assert response.json() == {"error": "Persona not configured. Set PERSONA_API_KEY."}
    assert upstream.requests == []


def test_missing_template(client, upstream):
    response = client.post("/api/persona/inquiry", json={"name": "Ada Lovelace"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing templateId"}
    assert upstream.requests == []


def test_creates_inquiry_with_bearer_auth(client, upstream):
    created = {"data": {"id": "inq_123", "type": "inquiry"}}
    upstream.responder = lambda request: httpx.Response(201, json=created)

    response = client.post(
        "/api/persona/inquiry",
        json={"name": "Ada Lovelace", "dob": "1815-12-10", "templateId": "itmpl_1"},
    )

    assert response.status_code == 200
    assert response.json() == created
    sent = upstream.requests[0]
    assert sent.method == "POST"
    assert sent.headers["authorization"] == "Bearer test-persona-key"
    fields = json.loads(sent.content)["data"]["attributes"]["fields"]
    assert fields == {"name-first": "Ada", "name-last": "Lovelace", "birthdate": "1815-12-10"}


def test_upstream_error_keeps_status_and_detail(client, upstream):
    upstream.responder = lambda request: httpx.Response(422, json={"errors": [{"title": "Template not found"}]})

    response = client.post("/api/persona/inquiry", json={"templateId": "itmpl_missing"})

    assert response.status_code == 422
    assert response.json() == {"error": "Template not found"}
