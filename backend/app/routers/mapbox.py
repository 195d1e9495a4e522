"""Mapbox geocoding proxy. The access token stays server-side."""

import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings, settings as app_settings
from app.errors import ApiError, UpstreamError, UpstreamUnavailable, error_response
from app.services.cache import TTLCache
from app.services.upstream import (
    UpstreamClient,
    get_http_client,
    require_credential,
    translate_upstream_status,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LIMIT = 5
MAX_LIMIT = 10
LEADING_INT = re.compile(r"\s*[-+]?\d+")
CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"

geocode_cache = TTLCache(
    ttl_seconds=app_settings.geocode_cache_ttl_seconds,
    max_entries=app_settings.cache_max_entries,
)


def get_geocode_cache() -> TTLCache:
    """Get the process-wide geocode response cache."""
    return geocode_cache


def clamp_limit(raw: Optional[str]) -> int:
    """Parse the leading integer of the requested count, defaulting to 5 and capping at 10."""
    match = LEADING_INT.match(raw or "")
    limit = int(match.group(0)) if match else 0
    if limit == 0:
        limit = DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


@router.get("/geocode")
async def geocode(
    q: Optional[str] = None,
    limit: Optional[str] = None,
    types: Optional[str] = None,
    country: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_geocode_cache),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Forward geocoding (autocomplete) through Mapbox."""
    token = require_credential(settings.mapbox_access_token, "Mapbox access token not configured")

    query = (q or "").strip()
    if not query:
        raise ApiError(400, "Missing query (q)")

    params = {
        "access_token": token,
        "limit": str(clamp_limit(limit)),
        "types": types or "address,place",
        "country": country or "US",
        "autocomplete": "true",
    }
    cache_key = TTLCache.make_key(query, params["limit"], params["types"], params["country"])

    client = UpstreamClient(http, "mapbox/geocode")
    url = f"{settings.mapbox_geocode_url}/{quote(query, safe='')}.json"

    async def fetch():
        return await client.request_json("GET", url, params=params)

    try:
        data, hit = await cache.get_or_set(cache_key, fetch)
    except UpstreamError as e:
        status = translate_upstream_status(e.status_code)
        if e.payload is not None:
            return JSONResponse(status_code=status, content=e.payload)
        return error_response(status, "Upstream error")
    except UpstreamUnavailable:
        return error_response(502, "Upstream request failed")

    if not hit:
        logger.debug(f"[mapbox/geocode] cache miss for {cache_key!r}, stats={cache.stats()}")
    return JSONResponse(content=data, headers={"Cache-Control": CACHE_CONTROL})
