import httpx

PREDICTIONS = {"status": "OK", "predictions": [{"description": "1 Main St, Springfield, IL, USA"}]}


def test_autocomplete_requires_input(client, upstream):
    response = client.post("/api/places/autocomplete", json={"input": ""})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing or invalid input"}
    assert upstream.requests == []


def test_autocomplete_relays_predictions(client, upstream):
    upstream.responder = lambda request: httpx.Response(200, json=PREDICTIONS)

    response = client.post("/api/places/autocomplete", json={"input": " 1 Main ", "sessionToken": "abc"})

    assert response.status_code == 200
    assert response.json() == PREDICTIONS
    params = upstream.requests[0].url.params
    assert upstream.requests[0].url.path.endswith("/autocomplete/json")
    assert params["input"] == "1 Main"
    assert params["key"] == "test-google-key"
    assert params["types"] == "address"
    assert params["components"] == "country:us"
    assert params["sessiontoken"] == "abc"


def test_google_logical_errors_are_relayed_with_200(client, upstream):
    body = {"status": "REQUEST_DENIED", "error_message": "API key invalid"}
    upstream.responder = lambda request: httpx.Response(200, json=body)

    response = client.post("/api/places/geocode", json={"address": "1 Main St"})

    assert response.status_code == 200
    assert response.json() == body


def test_details_requires_place_id(client):
    response = client.post("/api/places/details", json={"placeId": 42})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing or invalid placeId"}


def test_details_uses_default_fields(client, upstream):
    upstream.responder = lambda request: httpx.Response(200, json={"status": "OK", "result": {}})

    client.post("/api/places/details", json={"placeId": "ChIJ123"})

    params = upstream.requests[0].url.params
    assert params["place_id"] == "ChIJ123"
    assert params["fields"] == "address_components,formatted_address,geometry"


def test_missing_key_fails_before_body_validation(client, upstream, test_settings):
    test_settings.google_maps_api_key = None

    response = client.post("/api/places/geocode", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "Google Maps API key not configured"}
    assert upstream.requests == []


def test_invalid_json_body(client):
    response = client.post(
        "/api/places/autocomplete",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}
