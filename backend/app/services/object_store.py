"""
Site Content API — Abstract Object Store Interface
===================================================

What:  Abstract base class for the blob store that holds uploaded images.
Why:   The dispatcher only needs "put these bytes under this key and give me a
       public URL". Hiding the provider behind this contract lets production
       use Supabase Storage, local development use the filesystem, and tests
       use an in-memory fake — without the dispatcher knowing which.
How:   Concrete stores inherit from ObjectStore and implement every method.

Contract notes:
    - Keys are chosen by the caller; the store never renames.
    - `public_url` is deterministic (base address + bucket + key) and does not
      touch the network.
    - A single attempt per call: no retry, no checksum verification.
    - Every provider failure surfaces as ObjectStorageError.
"""

from abc import ABC, abstractmethod


class ObjectStore(ABC):
    """
    Interface for storing uploaded images.

    Implementations:
        - SupabaseStorage: Supabase Storage REST API (production)
        - LocalStorage:    files under STORAGE_ROOT (development)
    """

    @abstractmethod
    async def upload(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        """
        Store `content` at `bucket/key` and return its public URL.

        Whether an existing object at `key` is overwritten is a property of
        the store's configuration (STORAGE_OVERWRITE); without overwrite a
        duplicate key fails.

        Raises:
            ObjectStorageError: transport, permission or duplicate-key failure
        """
        ...

    @abstractmethod
    async def delete(self, bucket: str, key: str) -> bool:
        """
        Remove the object at `bucket/key`.

        Returns:
            True if an object was removed, False if nothing was there.

        Raises:
            ObjectStorageError: the store could not be reached or refused
        """
        ...

    @abstractmethod
    def public_url(self, bucket: str, key: str) -> str:
        """Publicly resolvable URL for `bucket/key`."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability check used by GET /health."""
        ...
