"""Shared plumbing for the third-party API proxies."""

import json as json_module
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.errors import ApiError, UpstreamError, UpstreamUnavailable

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Client for calling a third-party JSON API on behalf of a proxy endpoint."""

    def __init__(self, http: httpx.AsyncClient, name: str):
        self.http = http
        self.name = name

    async def request_json(
        self,
        method: str,
        url: str,
        params: Dict = None,
        json: Any = None,
        headers: Dict = None,
        content: bytes = None,
    ) -> Any:
        """Make an upstream request and return the decoded JSON body.

        Raises UpstreamUnavailable on transport failures and UpstreamError on
        non-success statuses.
        """
        try:
            response = await self.http.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=headers,
                content=content,
            )
        except httpx.TransportError as e:
            logger.error(f"[{self.name}] transport failure: {e}")
            raise UpstreamUnavailable(str(e)) from e

        if not response.is_success:
            payload = _safe_json(response)
            detail = _error_detail(payload, response)
            logger.error(f"[{self.name}] upstream error {response.status_code}: {detail}")
            raise UpstreamError(response.status_code, detail, payload)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"[{self.name}] undecodable upstream body: {e}")
            raise UpstreamUnavailable("Upstream returned an unreadable body") from e


def _safe_json(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def _error_detail(payload: Any, response: httpx.Response) -> str:
    if isinstance(payload, dict):
        for field in ("message", "error_message", "error"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            title = errors[0].get("title")
            if title:
                return str(title)
    return response.text[:200]


def translate_upstream_status(status_code: int) -> int:
    """Upstream 401 is passed through; every other failure becomes 502."""
    return 401 if status_code == 401 else 502


def require_credential(value: Optional[str], message: str, status_code: int = 500) -> str:
    """Fail before any upstream call when a server-held secret is missing."""
    if not value:
        logger.error(f"Configuration error: {message}")
        raise ApiError(status_code, message)
    return value


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Read a JSON request body as a dict; empty and non-object bodies become {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json_module.loads(raw)
    except ValueError:
        raise ApiError(400, "Invalid JSON")
    return body if isinstance(body, dict) else {}


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    """Dependency providing an HTTP client for the duration of a request."""
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
        yield client
