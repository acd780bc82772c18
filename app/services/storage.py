"""
Storage gateway for player photos, payment slips and the QR code.

Uses the Supabase Storage REST API over httpx.
Falls back to simulation mode (files written under MEDIA_DIR and served
from /media) when SUPABASE_URL is not set.
"""

import asyncio
import logging
import os
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object could not be stored or addressed."""


def build_object_name(prefix: str, filename: Optional[str]) -> str:
    """Return ``<prefix>_<uuid4><.ext>`` keeping the original file extension."""
    ext = os.path.splitext(filename or "")[1].lower()
    return f"{prefix}_{uuid.uuid4()}{ext}"


class SupabaseStorage:
    """Thin async client for one Supabase Storage bucket."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self._transport = transport
        self._timeout = timeout

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{name}"

    async def upload(
        self,
        data: bytes,
        content_type: Optional[str],
        prefix: str,
        filename: Optional[str],
    ) -> str:
        """Store ``data`` under a fresh object name and return its public URL."""
        if not data:
            raise StorageError("File buffer is missing.")

        name = build_object_name(prefix, filename)
        headers = self._headers()
        headers["Content-Type"] = content_type or "application/octet-stream"
        headers["x-upsert"] = "true"

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/storage/v1/object/{self.bucket}/{name}",
                    headers=headers,
                    content=data,
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Upload of {name} failed: {e}") from e

        if resp.status_code >= 400:
            raise StorageError(f"Upload of {name} failed ({resp.status_code}): {resp.text}")

        url = self.public_url(name)
        logger.info(f"Uploaded {name} to bucket {self.bucket}")
        return url

    async def remove(self, url: str) -> None:
        """Delete an object previously returned by :meth:`upload`."""
        prefix = self.public_url("")
        if not url.startswith(prefix):
            raise StorageError(f"{url} does not belong to bucket {self.bucket}")
        name = url[len(prefix):]

        try:
            async with self._client() as client:
                resp = await client.request(
                    "DELETE",
                    f"{self.base_url}/storage/v1/object/{self.bucket}",
                    headers=self._headers(),
                    json={"prefixes": [name]},
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Removal of {name} failed: {e}") from e

        if resp.status_code >= 400:
            raise StorageError(f"Removal of {name} failed ({resp.status_code}): {resp.text}")
        logger.info(f"Removed {name} from bucket {self.bucket}")


class LocalStorage:
    """Simulation backend: writes files to disk and serves them from /media."""

    def __init__(self, media_dir: str, base_url: str):
        self.media_dir = Path(media_dir)
        self.base_url = base_url.rstrip("/")

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/media/{name}"

    async def upload(
        self,
        data: bytes,
        content_type: Optional[str],
        prefix: str,
        filename: Optional[str],
    ) -> str:
        if not data:
            raise StorageError("File buffer is missing.")

        name = build_object_name(prefix, filename)
        path = self.media_dir / name
        try:
            await asyncio.to_thread(self.media_dir.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e

        print(f"\n{'='*60}")
        print(f"  🗂  STORAGE SIMULATION MODE")
        print(f"  Saved: {path}")
        print(f"{'='*60}\n")
        return self.public_url(name)

    async def remove(self, url: str) -> None:
        prefix = self.public_url("")
        if not url.startswith(prefix):
            raise StorageError(f"{url} is not a local media URL")
        path = self.media_dir / url[len(prefix):]
        await asyncio.to_thread(path.unlink, missing_ok=True)


StorageGateway = Union[SupabaseStorage, LocalStorage]


@lru_cache
def get_storage() -> StorageGateway:
    """FastAPI dependency: the configured storage backend."""
    if not settings.SUPABASE_URL:
        return LocalStorage(settings.MEDIA_DIR, settings.BACKEND_URL)
    return SupabaseStorage(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY,
        settings.STORAGE_BUCKET,
    )
