import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app
from app.routers.attom import get_address_cache, get_parcel_cache, get_snapshot_cache
from app.routers.mapbox import get_geocode_cache
from app.services.cache import TTLCache
from app.services.upstream import get_http_client


class FakeUpstream:
    """Records outgoing requests and answers them with ``responder``."""

    def __init__(self):
        self.requests = []
        self.responder = lambda request: httpx.Response(200, json={})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def test_settings():
    return Settings(
        mapbox_access_token="test-mapbox-token",
        google_maps_api_key="test-google-key",
        persona_api_key="test-persona-key",
        blob_read_write_token="test-blob-token",
        attom_api_key="test-attom-key",
    )


@pytest.fixture
def client(test_settings, upstream):
    geocode_cache = TTLCache(ttl_seconds=300, max_entries=16)
    parcel_cache = TTLCache(ttl_seconds=1800, max_entries=16)
    address_cache = TTLCache(ttl_seconds=3600, max_entries=16)
    snapshot_cache = TTLCache(ttl_seconds=3600, max_entries=16)

    async def http_override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http:
            yield http

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_client] = http_override
    app.dependency_overrides[get_geocode_cache] = lambda: geocode_cache
    app.dependency_overrides[get_parcel_cache] = lambda: parcel_cache
    app.dependency_overrides[get_address_cache] = lambda: address_cache
    app.dependency_overrides[get_snapshot_cache] = lambda: snapshot_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
