from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Upstream credentials (each endpoint treats its own absence as fatal)
    mapbox_access_token: Optional[str] = None
    google_maps_api_key: Optional[str] = None
    persona_api_key: Optional[str] = None
    blob_read_write_token: Optional[str] = None
    attom_api_key: Optional[str] = None

    # Upstream endpoints
    mapbox_geocode_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    google_places_url: str = "https://maps.googleapis.com/maps/api/place"
    google_geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    persona_inquiries_url: str = "https://withpersona.com/api/v1/inquiries"
    blob_api_url: str = "https://blob.vercel-storage.com"
    attom_snapshot_url: str = "https://api.gateway.attomdata.com/propertyapi/v1.0.0/allevents/snapshot"
    http_timeout_seconds: float = 30.0

    # Response caches
    geocode_cache_ttl_seconds: int = 300
    parcel_cache_ttl_seconds: int = 30 * 60
    attom_address_cache_ttl_seconds: int = 120 * 24 * 3600
    attom_snapshot_cache_ttl_seconds: int = 30 * 24 * 3600
    cache_max_entries: int = 1024

    # Document extraction
    ollama_url: str = "http://localhost:11434"
    ocr_model: str = "qwen2.5vl:7b"
    ocr_timeout_seconds: float = 300.0
    firebase_credentials_path: Optional[str] = None
    firebase_storage_bucket: Optional[str] = None

    # App settings
    app_name: str = "Marketplace Backend"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()


def get_settings() -> Settings:
    """Dependency returning the process-wide settings."""
    return settings
