"""
Site Content API — Local Filesystem Object Store
=================================================

What:  ObjectStore implementation that writes uploads under STORAGE_ROOT.
Why:   Lets the API run without a Supabase project (local development,
       demos). Objects are served back by GET /files/{bucket}/{key}.

Directory Structure:
    storage/
    ├── myhomebucket/
    │   ├── 1717171717171.png
    │   └── 1717171718000.jpg
    └── myblogbucket/
        └── 1717171719123.webp
"""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import aiofiles

from app.config import settings
from app.exceptions import ObjectStorageError
from app.services.object_store import ObjectStore

logger = logging.getLogger(__name__)


class LocalStorage(ObjectStore):
    """
    Filesystem-backed object store.

    Args:
        storage_root:     Directory holding one sub-directory per bucket.
        public_base_url:  Address the API is reachable at; public URLs are
                          `<public_base_url>/files/<bucket>/<key>`.
        overwrite:        Replace an existing key instead of failing.
    """

    def __init__(
        self,
        storage_root: Optional[str] = None,
        public_base_url: Optional[str] = None,
        overwrite: Optional[bool] = None,
    ):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.overwrite = settings.storage_overwrite if overwrite is None else overwrite
        self.storage_root.mkdir(parents=True, exist_ok=True)

    def resolve(self, bucket: str, key: str) -> Path:
        """
        Absolute path of `bucket/key`, guaranteed to stay inside storage_root.

        Raises:
            ObjectStorageError: the bucket/key would escape the storage root
        """
        path = (self.storage_root / bucket / key).resolve()
        if self.storage_root not in path.parents:
            raise ObjectStorageError(
                message="Invalid object path",
                context={"bucket": bucket, "key": key},
            )
        return path

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/files/{bucket}/{quote(key)}"

    async def upload(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        path = self.resolve(bucket, key)
        if path.exists() and not self.overwrite:
            logger.error("Refusing to overwrite existing object %s/%s", bucket, key)
            raise ObjectStorageError(
                context={"bucket": bucket, "key": key, "reason": "duplicate key"},
            )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store %s/%s: %s", bucket, key, str(e))
            raise ObjectStorageError(
                context={"bucket": bucket, "key": key, "os_error": str(e)},
            ) from e

        logger.info("Stored %s/%s (%d bytes, %s)", bucket, key, len(content), content_type)
        return self.public_url(bucket, key)

    async def delete(self, bucket: str, key: str) -> bool:
        path = self.resolve(bucket, key)
        if not path.exists():
            return False
        try:
            os.remove(path)
        except OSError as e:
            raise ObjectStorageError(
                message="Failed to delete stored object",
                context={"bucket": bucket, "key": key, "os_error": str(e)},
            ) from e
        return True

    async def health_check(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)
