"""Resolves document bytes from Firebase Storage or a direct URL."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from firebase_admin import storage

from app.config import Settings
from app.services.firebase import get_firebase_app

logger = logging.getLogger(__name__)


class DocumentFetchError(Exception):
    """The document could not be obtained from any source."""


@dataclass
class FetchedDocument:
    data: bytes
    content_type: Optional[str] = None
    url: Optional[str] = None


class FirebaseStorageReader:
    """Reads objects from the configured Firebase Storage bucket."""

    def __init__(self, credentials_path: Optional[str] = None, bucket: Optional[str] = None):
        self.credentials_path = credentials_path
        self.bucket_name = bucket

    def read(self, path: str) -> FetchedDocument:
        app = get_firebase_app(self.credentials_path, self.bucket_name)
        blob = storage.bucket(self.bucket_name, app=app).blob(path.lstrip("/"))
        data = blob.download_as_bytes()
        return FetchedDocument(data=data, content_type=blob.content_type, url=path)


class DocumentSource:
    """Prefers a storage path lookup and falls back to fetching the URL."""

    def __init__(self, http: httpx.AsyncClient, storage_reader=None):
        self.http = http
        self.storage_reader = storage_reader

    async def resolve(self, url: Optional[str] = None, path: Optional[str] = None) -> FetchedDocument:
        if not url and not path:
            raise ValueError("A url or storage path is required")

        if path and self.storage_reader is not None:
            try:
                loop = asyncio.get_running_loop()
                document = await loop.run_in_executor(None, self.storage_reader.read, path)
                logger.info(f"Read {len(document.data)} bytes from storage path {path}")
                return document
            except Exception as e:
                logger.warning(f"Storage lookup failed for {path}: {e}")

        if not url:
            raise DocumentFetchError(f"Storage lookup failed for {path} and no url was given")
        return await self.fetch_url(url)

    async def fetch_url(self, url: str) -> FetchedDocument:
        try:
            response = await self.http.get(url)
        except httpx.TransportError as e:
            raise DocumentFetchError(f"Could not reach {url}: {e}") from e
        if not response.is_success:
            raise DocumentFetchError(f"Fetching {url} returned {response.status_code}")
        logger.info(f"Downloaded {len(response.content)} bytes from {url}")
        return FetchedDocument(
            data=response.content,
            content_type=response.headers.get("content-type"),
            url=url,
        )


def get_storage_reader(settings: Settings) -> Optional[FirebaseStorageReader]:
    if not settings.firebase_storage_bucket:
        return None
    return FirebaseStorageReader(settings.firebase_credentials_path, settings.firebase_storage_bucket)
