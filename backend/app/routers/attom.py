"""ATTOM property-data proxies: viewport parcels, address resolution and snapshots."""

import logging
import math
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings, settings as app_settings
from app.errors import ApiError, UpstreamError, UpstreamUnavailable, error_response
from app.services.attom import (
    build_section_expiry,
    map_snapshot_to_parcels,
    normalize_address,
    radius_from_bbox,
    resolve_attom_id_from_snapshot,
    tile_key_for_center,
)
from app.services.cache import TTLCache
from app.services.upstream import (
    UpstreamClient,
    get_http_client,
    read_json_object,
    require_credential,
    translate_upstream_status,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_ZOOM = 15
SNAPSHOT_DELTA_DEGREES = 0.002
MISSING_KEY = "ATTOM API key not configured"

parcel_cache = TTLCache(
    ttl_seconds=app_settings.parcel_cache_ttl_seconds,
    max_entries=app_settings.cache_max_entries,
)
address_cache = TTLCache(
    ttl_seconds=app_settings.attom_address_cache_ttl_seconds,
    max_entries=app_settings.cache_max_entries,
)
snapshot_cache = TTLCache(
    ttl_seconds=app_settings.attom_snapshot_cache_ttl_seconds,
    max_entries=app_settings.cache_max_entries,
)


def get_parcel_cache() -> TTLCache:
    """Get the process-wide parcel tile cache."""
    return parcel_cache


def get_address_cache() -> TTLCache:
    return address_cache


def get_snapshot_cache() -> TTLCache:
    return snapshot_cache


def _parse_float(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return number


def _parse_zoom(value) -> int:
    try:
        zoom = int(value)
    except (TypeError, ValueError):
        return DEFAULT_ZOOM
    return max(0, min(zoom, 22))


def parse_bounds(source: Dict[str, Any]) -> Optional[Dict[str, float]]:
    """n, s, e, w as finite degrees within the globe, or None."""
    bounds = {k: _parse_float(source.get(k)) for k in ("n", "s", "e", "w")}
    if not all(math.isfinite(v) for v in bounds.values()):
        return None
    if any(abs(bounds[k]) > 90 for k in ("n", "s")) or any(abs(bounds[k]) > 180 for k in ("e", "w")):
        return None
    return bounds


async def fetch_snapshot(http: httpx.AsyncClient, settings: Settings, api_key: str, tag: str, bounds: Dict[str, float]):
    """ATTOM snapshot search around the bbox center."""
    n, s, e, w = bounds["n"], bounds["s"], bounds["e"], bounds["w"]
    client = UpstreamClient(http, tag)
    return await client.request_json(
        "GET",
        settings.attom_snapshot_url,
        params={
            "latitude": (n + s) / 2,
            "longitude": (e + w) / 2,
            "radius": radius_from_bbox(n, s, e, w),
            "radiusunit": "miles",
        },
        headers={"Accept": "application/json", "APIKey": api_key},
    )


@router.api_route("/parcels", methods=["GET", "POST"])
async def parcels_in_viewport(
    request: Request,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_parcel_cache),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Parcels inside a map viewport. Inputs n, s, e, w (degrees) and optional zoom."""
    source: Dict[str, Any] = dict(request.query_params)
    if request.method == "POST":
        body = await read_json_object(request)
        if body:
            source = body

    bounds = parse_bounds(source)
    if bounds is None:
        raise ApiError(400, "Missing or invalid n,s,e,w")

    api_key = require_credential(settings.attom_api_key, MISSING_KEY)

    center_lat = (bounds["n"] + bounds["s"]) / 2
    center_lng = (bounds["e"] + bounds["w"]) / 2
    tile_key = tile_key_for_center(center_lat, center_lng, _parse_zoom(source.get("zoom")))

    async def fetch():
        data = await fetch_snapshot(http, settings, api_key, "attom/parcels", bounds)
        return map_snapshot_to_parcels(data)

    try:
        parcels, hit = await cache.get_or_set(tile_key, fetch)
    except UpstreamError as e:
        return JSONResponse(
            status_code=translate_upstream_status(e.status_code),
            content={"error": "Upstream API error", "details": e.detail[:200]},
        )
    except UpstreamUnavailable:
        return error_response(502, "Upstream request failed")

    if not hit:
        logger.info(f"[attom/parcels] tile {tile_key}: {len(parcels)} parcels (cache miss)")
    return {"parcels": parcels, "tileKey": tile_key, "cache": "hit" if hit else "miss"}


@router.post("/address")
async def resolve_address(
    request: Request,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_address_cache),
    snapshots: TTLCache = Depends(get_snapshot_cache),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Resolve an address to an ATTOM id. Body: { address, n, s, e, w }

    A successful lookup also primes the snapshot cache for the matched id.
    """
    body = await read_json_object(request)
    address = body.get("address")
    if not address:
        raise ApiError(400, "Missing address")
    bounds = parse_bounds(body)
    if bounds is None:
        raise ApiError(400, "Missing bounds")

    api_key = require_credential(settings.attom_api_key, MISSING_KEY)

    normalized = normalize_address(address)
    address_key = normalized or f"lat:{bounds['n']}-{bounds['e']}"

    async def fetch():
        data = await fetch_snapshot(http, settings, api_key, "attom/address", bounds)
        match = resolve_attom_id_from_snapshot(data, normalized)
        if match is None:
            return None
        await snapshots.set(match["attomId"], {
            "attomId": match["attomId"],
            "payload": data,
            "meta": {
                "sectionExpiry": build_section_expiry(),
                "hint": {"latitude": match["latitude"], "longitude": match["longitude"]},
            },
        })
        return {"addressKey": address_key, "attomId": match["attomId"], "parcel": match}

    try:
        record, hit = await cache.get_or_set(address_key, fetch)
    except (UpstreamError, UpstreamUnavailable):
        return error_response(502, "Upstream request failed")

    if record is None:
        return {"attomId": None, "parcel": None}
    return {**record, "cache": "hit" if hit else "miss"}


@router.get("/snapshot")
async def property_snapshot(
    attomId: Optional[str] = None,
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_snapshot_cache),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Cached ATTOM snapshot for one property. lat/lng are needed only on a cache miss."""
    if not attomId:
        raise ApiError(400, "Missing attomId")

    async def fetch():
        latitude = _parse_float(lat)
        longitude = _parse_float(lng)
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            raise ApiError(400, "lat and lng required for cache miss")
        api_key = require_credential(settings.attom_api_key, MISSING_KEY)
        bounds = {
            "n": latitude + SNAPSHOT_DELTA_DEGREES,
            "s": latitude - SNAPSHOT_DELTA_DEGREES,
            "e": longitude + SNAPSHOT_DELTA_DEGREES,
            "w": longitude - SNAPSHOT_DELTA_DEGREES,
        }
        data = await fetch_snapshot(http, settings, api_key, "attom/snapshot", bounds)
        return {
            "attomId": attomId,
            "payload": data,
            "meta": {
                "sectionExpiry": build_section_expiry(),
                "hint": {"latitude": latitude, "longitude": longitude},
            },
        }

    try:
        record, hit = await cache.get_or_set(attomId, fetch)
    except (UpstreamError, UpstreamUnavailable):
        return error_response(502, "Upstream request failed")

    return {**record, "cache": "hit" if hit else "miss"}
