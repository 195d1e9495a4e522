"""Google Places / Geocoding proxies (legacy REST). The API key stays server-side."""

import logging
from typing import Dict

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.errors import ApiError, UpstreamError, UpstreamUnavailable, error_response
from app.services.upstream import (
    UpstreamClient,
    get_http_client,
    read_json_object,
    require_credential,
    translate_upstream_status,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_TYPES = "address"
DEFAULT_COMPONENTS = "country:us"
DEFAULT_DETAIL_FIELDS = "address_components,formatted_address,geometry"
MISSING_KEY = "Google Maps API key not configured"


def _string_or(value, default: str) -> str:
    return value if isinstance(value, str) else default


async def _relay(http: httpx.AsyncClient, tag: str, url: str, params: Dict[str, str]):
    """Call Google and relay its JSON. Google reports logical errors with a 200."""
    client = UpstreamClient(http, tag)
    try:
        data = await client.request_json("GET", url, params=params)
    except UpstreamError as e:
        return error_response(translate_upstream_status(e.status_code), e.detail or "Upstream error")
    except UpstreamUnavailable:
        return error_response(502, "Upstream request failed")

    if isinstance(data, dict) and data.get("error_message"):
        logger.error(f"[{tag}] {data['error_message']}")
    return JSONResponse(content=data)


@router.post("/autocomplete")
async def autocomplete(
    request: Request,
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Place autocomplete. Body: { input, sessionToken?, types?, components? }"""
    key = require_credential(settings.google_maps_api_key, MISSING_KEY)
    body = await read_json_object(request)

    text = body.get("input")
    if not isinstance(text, str) or not text.strip():
        raise ApiError(400, "Missing or invalid input")

    params = {
        "input": text.strip(),
        "key": key,
        "types": _string_or(body.get("types", DEFAULT_TYPES), DEFAULT_TYPES),
        "components": _string_or(body.get("components", DEFAULT_COMPONENTS), DEFAULT_COMPONENTS),
    }
    session_token = body.get("sessionToken")
    if session_token and isinstance(session_token, str):
        params["sessiontoken"] = session_token

    return await _relay(http, "places/autocomplete", f"{settings.google_places_url}/autocomplete/json", params)


@router.post("/details")
async def details(
    request: Request,
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Place details. Body: { placeId, sessionToken?, fields? }"""
    key = require_credential(settings.google_maps_api_key, MISSING_KEY)
    body = await read_json_object(request)

    place_id = body.get("placeId")
    if not isinstance(place_id, str) or not place_id:
        raise ApiError(400, "Missing or invalid placeId")

    params = {
        "place_id": place_id,
        "key": key,
        "fields": _string_or(body.get("fields", DEFAULT_DETAIL_FIELDS), DEFAULT_DETAIL_FIELDS),
    }
    session_token = body.get("sessionToken")
    if session_token and isinstance(session_token, str):
        params["sessiontoken"] = session_token

    return await _relay(http, "places/details", f"{settings.google_places_url}/details/json", params)


@router.post("/geocode")
async def geocode(
    request: Request,
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Geocode a free-form address. Body: { address }"""
    key = require_credential(settings.google_maps_api_key, MISSING_KEY)
    body = await read_json_object(request)

    address = body.get("address")
    if not isinstance(address, str) or not address.strip():
        raise ApiError(400, "Missing or invalid address")

    params = {"address": address.strip(), "key": key}
    return await _relay(http, "places/geocode", settings.google_geocode_url, params)
