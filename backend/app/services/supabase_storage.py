"""
Site Content API — Supabase Storage Client
===========================================

What:  ObjectStore implementation over the Supabase Storage REST API.
How:   Plain HTTP with httpx — the storage API is four endpoints and does not
       justify pulling in the full Supabase SDK:

           POST   {url}/storage/v1/object/{bucket}/{key}         upload
           DELETE {url}/storage/v1/object/{bucket}/{key}         delete
           GET    {url}/storage/v1/bucket                        health check
                  {url}/storage/v1/object/public/{bucket}/{key}  public URL

Auth:
    The service key is sent both as a bearer token and as `apikey`, which is
    what the Supabase gateway expects for server-side calls.

Failure handling:
    One attempt per call, bounded by STORAGE_TIMEOUT. Any non-2xx response or
    transport error is logged with the status/body and raised as
    ObjectStorageError; the caller aborts the request.
"""

import logging
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from app.config import settings
from app.exceptions import ObjectStorageError
from app.services.object_store import ObjectStore

logger = logging.getLogger(__name__)


class SupabaseStorage(ObjectStore):
    """
    Supabase Storage client.

    Args:
        base_url:   Supabase project URL (https://<ref>.supabase.co)
        api_key:    Service key with write access to the buckets
        overwrite:  Send `x-upsert: true` so an existing key is replaced
        timeout:    Per-call timeout in seconds
        transport:  Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        overwrite: Optional[bool] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_key
        self.overwrite = settings.storage_overwrite if overwrite is None else overwrite
        self.timeout = timeout or settings.storage_timeout
        self._transport = transport

    def _headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _object_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{bucket}/{quote(key)}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(key)}"

    async def upload(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        headers = self._headers(content_type)
        if self.overwrite:
            headers["x-upsert"] = "true"

        try:
            async with self._client() as client:
                res = await client.post(self._object_url(bucket, key), headers=headers, content=content)
        except httpx.HTTPError as e:
            logger.error("Supabase upload to %s/%s failed: %s", bucket, key, str(e))
            raise ObjectStorageError(
                context={"bucket": bucket, "key": key, "error": type(e).__name__},
            ) from e

        if res.status_code >= 300:
            logger.error(
                "Supabase upload to %s/%s rejected: %d %s",
                bucket, key, res.status_code, res.text,
            )
            raise ObjectStorageError(
                context={"bucket": bucket, "key": key, "status": res.status_code},
            )

        logger.info("Uploaded %s/%s (%d bytes)", bucket, key, len(content))
        return self.public_url(bucket, key)

    async def delete(self, bucket: str, key: str) -> bool:
        try:
            async with self._client() as client:
                res = await client.delete(self._object_url(bucket, key), headers=self._headers())
        except httpx.HTTPError as e:
            raise ObjectStorageError(
                message="Failed to delete stored object",
                context={"bucket": bucket, "key": key, "error": type(e).__name__},
            ) from e

        if res.status_code == 404:
            return False
        if res.status_code >= 300:
            raise ObjectStorageError(
                message="Failed to delete stored object",
                context={"bucket": bucket, "key": key, "status": res.status_code},
            )
        return True

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                res = await client.get(f"{self.base_url}/storage/v1/bucket", headers=self._headers())
            return res.status_code < 300
        except httpx.HTTPError as e:
            logger.warning("Supabase storage health check failed: %s", str(e))
            return False
