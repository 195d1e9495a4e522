"""Persona identity-verification proxy: creates inquiries server-side."""

import logging
from typing import Any, Dict

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.errors import ApiError, UpstreamError, UpstreamUnavailable, error_response
from app.services.upstream import UpstreamClient, get_http_client, read_json_object, require_credential

logger = logging.getLogger(__name__)

router = APIRouter()


def build_inquiry_payload(body: Dict[str, Any], template_id: str) -> Dict[str, Any]:
    """Build the Persona inquiry document, dropping empty field values."""
    name = body.get("name") if isinstance(body.get("name"), str) else ""
    name_parts = name.split()
    fields = {
        "name-first": name_parts[0] if name_parts else "",
        "name-last": " ".join(name_parts[1:]),
        "birthdate": body.get("dob") or "",
        "email-address": body.get("email") or "",
    }
    return {
        "data": {
            "type": "inquiry",
            "attributes": {
                "inquiry-template-id": template_id,
                "reference-id": body.get("referenceId") or body.get("reference_id") or None,
                "fields": {k: v for k, v in fields.items() if v not in ("", None)},
            },
        },
    }


@router.post("/inquiry")
async def create_inquiry(
    request: Request,
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Create a Persona inquiry. Body: { name, dob, email, templateId }"""
    body = await read_json_object(request)
    api_key = require_credential(
        settings.persona_api_key,
        "Persona not configured. Set PERSONA_API_KEY.",
        status_code=503,
    )

    template_id = body.get("templateId") or body.get("inquiry-template-id") or ""
    template_id = template_id.strip() if isinstance(template_id, str) else ""
    if not template_id:
        raise ApiError(400, "Missing templateId")

    client = UpstreamClient(http, "persona/inquiry")
    try:
        data = await client.request_json(
            "POST",
            settings.persona_inquiries_url,
            json=build_inquiry_payload(body, template_id),
            headers={"Authorization": f"Bearer {api_key}"},
        )
    except UpstreamError as e:
        return error_response(e.status_code, e.detail or "Persona API error")
    except UpstreamUnavailable:
        return error_response(502, "Upstream request failed")

    return JSONResponse(content=data if data is not None else {})
