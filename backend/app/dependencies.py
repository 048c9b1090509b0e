"""
Site Content API — FastAPI Dependencies
========================================

What:  Builds the object store and the dispatcher for route handlers.
Why:   Routes receive collaborators through Depends(), so tests swap the
       object store (and the DB session) via `app.dependency_overrides`
       without patching module globals.
"""

import logging
from functools import lru_cache

from fastapi import Depends

from app.config import settings
from app.services.entity_service import EntityDispatcher
from app.services.local_storage import LocalStorage
from app.services.object_store import ObjectStore
from app.services.supabase_storage import SupabaseStorage
from app.services.upload_service import UploadService

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """The process-wide object store selected by STORAGE_BACKEND."""
    if settings.storage_backend == "local":
        logger.info("Using local object store at %s", settings.storage_root)
        return LocalStorage()
    logger.info("Using Supabase object store at %s", settings.supabase_url or "<unset>")
    return SupabaseStorage()


def get_entity_dispatcher(store: ObjectStore = Depends(get_object_store)) -> EntityDispatcher:
    return EntityDispatcher(UploadService(store))
