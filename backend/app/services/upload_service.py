"""
Site Content API — Image Upload Service
========================================

What:  Turns an uploaded file into a stored object and a public URL.
Why:   Keeps key generation, size limits and content-type resolution in one
       place so the dispatcher only deals with "file in, URL out".
Who:   Called by EntityDispatcher before any database write.

Key scheme:
    <epoch milliseconds><original extension>, e.g. 1717171717171.png

    Keys are not content-addressed. Two uploads into the same bucket within
    the same millisecond collide; with STORAGE_OVERWRITE off the second one
    fails with ObjectStorageError rather than silently replacing the first.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import magic

from app.config import settings
from app.exceptions import ObjectStorageError, ValidationError
from app.services.object_store import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# libmagic only needs the header bytes to identify a format
SNIFF_BYTES = 2048


@dataclass(frozen=True)
class IncomingFile:
    """A file part taken out of the request, fully read into memory."""

    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class StoredObject:
    """Where an upload ended up."""

    bucket: str
    key: str
    url: str


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class UploadService:
    """
    Validates and stores uploaded images.

    Args:
        store:      Object store receiving the bytes.
        max_size:   Upper bound in bytes (default: settings.max_file_size).
        clock:      Returns epoch milliseconds; injectable for deterministic keys.
    """

    def __init__(
        self,
        store: ObjectStore,
        max_size: Optional[int] = None,
        clock: Callable[[], int] = _epoch_millis,
    ):
        self.store = store
        self.max_size = max_size or settings.max_file_size
        self.clock = clock

    def validate_size(self, upload: IncomingFile, field: Optional[str] = None) -> None:
        """
        Reject empty files and files above the configured limit.

        Raises:
            ValidationError with a human-readable size message (→ 400)
        """
        size = len(upload.content)
        if size == 0:
            raise ValidationError(
                message=f"Uploaded file '{upload.filename}' is empty.",
                field=field,
            )
        if size > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB."
                ),
                field=field,
                context={"max_size": self.max_size, "actual_size": size},
            )

    def generate_key(self, filename: str) -> str:
        """Timestamp key keeping the original extension (case preserved)."""
        return f"{self.clock()}{Path(filename).suffix}"

    @staticmethod
    def resolve_content_type(upload: IncomingFile) -> str:
        """
        Content type for the stored object.

        The part's declared type wins; otherwise the type is read from the
        file's magic bytes, so a renamed file is stored as what it really is.
        """
        if upload.content_type:
            return upload.content_type
        sniffed = magic.from_buffer(upload.content[:SNIFF_BYTES], mime=True)
        return sniffed or DEFAULT_CONTENT_TYPE

    async def store_image(
        self,
        bucket: str,
        upload: IncomingFile,
        field: Optional[str] = None,
    ) -> StoredObject:
        """
        Validate and upload an image.

        Args:
            bucket: Target bucket (from the entity configuration).
            upload: The file taken from the request.
            field:  Form field name, used in validation messages.

        Returns:
            StoredObject with the key and public URL.

        Raises:
            ValidationError:    empty or oversized file (→ 400)
            ObjectStorageError: the store rejected or could not take the file (→ 500)
        """
        self.validate_size(upload, field)
        key = self.generate_key(upload.filename)
        content_type = self.resolve_content_type(upload)

        url = await self.store.upload(bucket, key, upload.content, content_type)
        logger.info("Image '%s' stored as %s/%s", upload.filename, bucket, key)
        return StoredObject(bucket=bucket, key=key, url=url)

    async def discard(self, stored: StoredObject) -> None:
        """
        Best-effort removal of an object nothing will reference.

        Used when the row that should have pointed at the object could not be
        written. A failure here is logged, not raised — the request has
        already failed for a more important reason.
        """
        try:
            removed = await self.store.delete(stored.bucket, stored.key)
            if removed:
                logger.info("Discarded orphaned upload %s/%s", stored.bucket, stored.key)
        except ObjectStorageError as e:
            logger.warning(
                "Failed to discard orphaned upload %s/%s: %s",
                stored.bucket, stored.key, e.message,
            )
