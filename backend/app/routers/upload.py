"""File upload proxy to Vercel Blob. The read-write token stays server-side."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.errors import ApiError, UpstreamError, UpstreamUnavailable, error_response
from app.services.upstream import (
    UpstreamClient,
    get_http_client,
    require_credential,
    translate_upstream_status,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_CONTENT_PREFIXES = ("image/", "video/")
ALLOWED_CONTENT_TYPES = ("application/pdf",)
BLOB_API_VERSION = "7"


def is_allowed_content_type(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    content_type = content_type.split(";")[0].strip().lower()
    return content_type in ALLOWED_CONTENT_TYPES or content_type.startswith(ALLOWED_CONTENT_PREFIXES)


def clean_pathname(pathname: str) -> str:
    """Normalize a blob pathname and refuse traversal segments."""
    parts = [p for p in pathname.replace("\\", "/").split("/") if p and p != "."]
    if not parts or ".." in parts:
        raise ApiError(400, "Invalid pathname")
    return "/".join(parts)


@router.post("")
async def upload(
    file: Optional[UploadFile] = File(None),
    pathname: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Upload an image, video or PDF and return the public blob record."""
    token = require_credential(
        settings.blob_read_write_token,
        "Upload not configured. Set BLOB_READ_WRITE_TOKEN.",
        status_code=503,
    )
    if file is None:
        raise ApiError(400, "Missing file")
    if not is_allowed_content_type(file.content_type):
        raise ApiError(400, "Content type not allowed")

    target = clean_pathname(pathname or file.filename or "")
    data = await file.read()

    client = UpstreamClient(http, "upload")
    try:
        blob = await client.request_json(
            "PUT",
            f"{settings.blob_api_url}/{quote(target)}",
            content=data,
            headers={
                "Authorization": f"Bearer {token}",
                "x-api-version": BLOB_API_VERSION,
                "x-content-type": file.content_type,
                "x-add-random-suffix": "1",
            },
        )
    except UpstreamError as e:
        return error_response(translate_upstream_status(e.status_code), e.detail or "Upload failed")
    except UpstreamUnavailable:
        return error_response(502, "Upstream request failed")

    logger.info(f"Uploaded {len(data)} bytes to blob path {target}")
    return JSONResponse(content=blob)
