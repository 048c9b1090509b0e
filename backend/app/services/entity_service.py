"""
Site Content API — Generic Entity Dispatcher
=============================================

What:  One handler for every content entity: given an entity name, an HTTP
       verb, an optional id, a body and an optional file, performs the single
       matching operation and returns the resulting record(s).
Why:   The eight content types are identical apart from their registry entry.
       A single dispatch function keyed on the verb replaces eight copies of
       the same five route handlers.
Who:   Called by the routes in app.routes.content.

Orchestration Flow (POST/PUT with a file):
    ┌──────────┐    ┌────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Validate │───▶│  Upload    │───▶│ image_field  │───▶│  Persist     │
    │  body    │    │ (store)    │    │   := URL     │    │ (gateway)    │
    └──────────┘    └────────────┘    └──────────────┘    └──────────────┘

    - The body is validated before the upload, so a malformed request never
      leaves an object behind.
    - The upload happens before persistence, so no row ever references an
      image that failed to store.
    - If persistence fails after a successful upload, the new object is
      deleted again (best effort, CLEANUP_ORPHANED_UPLOADS).

Verb table:
    collection path (no id)   GET → all rows       POST → created row(s)
    item path (id)            GET → one row / 404  PUT  → updated row(s) / 404
                              DELETE → confirmation, even if the id is absent
    anything else             MethodNotAllowedError (405)
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import MethodNotAllowedError, NotFoundError, ValidationError
from app.registry import COLLECTION_VERBS, ITEM_VERBS, EntityConfig, get_entity
from app.schemas.content import validate_payload
from app.services.table_gateway import Record, TableGateway
from app.services.upload_service import IncomingFile, StoredObject, UploadService

logger = logging.getLogger(__name__)

DispatchResult = Union[Record, List[Record], Dict[str, Any]]


class EntityDispatcher:
    """
    Stateless per request; the only state consulted is the entity registry.

    Args:
        uploads:          Upload service wrapping the object store.
        cleanup_orphans:  Delete a fresh upload when its row cannot be written
                          (default: settings.cleanup_orphaned_uploads).
    """

    def __init__(self, uploads: UploadService, cleanup_orphans: Optional[bool] = None):
        self.uploads = uploads
        self.cleanup_orphans = (
            settings.cleanup_orphaned_uploads if cleanup_orphans is None else cleanup_orphans
        )

    async def handle(
        self,
        db: AsyncSession,
        entity: str,
        verb: str,
        record_id: Optional[int] = None,
        body: Optional[Mapping[str, Any]] = None,
        upload: Optional[IncomingFile] = None,
    ) -> DispatchResult:
        """
        Dispatch one request.

        Raises:
            NotFoundError:         unknown entity, or no row for GET/PUT by id
            MethodNotAllowedError: verb not supported on this path/entity
            ValidationError:       malformed body or file
            ObjectStorageError:    upload failed (no row written)
            RecordRejectedError:   database refused the data
            DatabaseError:         database unreachable
        """
        config = get_entity(entity)
        verb = verb.upper()
        self._check_verb(config, verb, record_id)
        gateway = TableGateway(db)
        body = body or {}

        if verb == "GET" and record_id is None:
            return await gateway.select_all(config.table)
        if verb == "GET":
            return await self._read_one(gateway, config, record_id)
        if verb == "POST":
            return await self._create(gateway, config, body, upload)
        if verb == "PUT":
            return await self._update(gateway, config, record_id, body, upload)
        return await self._delete(gateway, config, record_id)

    # ── Verb checks ───────────────────────────────────────────────────────

    @staticmethod
    def _check_verb(config: EntityConfig, verb: str, record_id: Optional[int]) -> None:
        path_verbs = ITEM_VERBS if record_id is not None else COLLECTION_VERBS
        allowed = path_verbs & config.verbs
        if verb not in allowed:
            raise MethodNotAllowedError(
                verb,
                allowed=allowed,
                context={"entity": config.name},
            )

    # ── Upload helpers ────────────────────────────────────────────────────

    async def _store_upload(
        self, config: EntityConfig, upload: Optional[IncomingFile]
    ) -> Optional[StoredObject]:
        if upload is None:
            return None
        if not config.image_field:
            logger.debug("Ignoring file '%s' for %s: no image field", upload.filename, config.name)
            return None
        return await self.uploads.store_image(config.bucket, upload, field=config.image_field)

    async def _discard(self, stored: Optional[StoredObject]) -> None:
        if stored is not None and self.cleanup_orphans:
            await self.uploads.discard(stored)

    # ── Operations ────────────────────────────────────────────────────────

    async def _read_one(self, gateway: TableGateway, config: EntityConfig, record_id: int) -> Record:
        row = await gateway.select_by_id(config.table, record_id)
        if row is None:
            raise NotFoundError(resource=config.name, resource_id=str(record_id))
        return row

    async def _create(
        self,
        gateway: TableGateway,
        config: EntityConfig,
        body: Mapping[str, Any],
        upload: Optional[IncomingFile],
    ) -> List[Record]:
        values = validate_payload(config, body)
        stored = await self._store_upload(config, upload)
        if stored is not None:
            values[config.image_field] = stored.url

        try:
            if config.replace_existing:
                rows = await gateway.replace_all(config.table, values)
            else:
                rows = await gateway.insert(config.table, values)
        except Exception:
            await self._discard(stored)
            raise

        logger.info(
            "Created %s id=%s%s",
            config.name,
            ",".join(str(row.get("id")) for row in rows),
            " (replaced existing)" if config.replace_existing else "",
        )
        return rows

    async def _update(
        self,
        gateway: TableGateway,
        config: EntityConfig,
        record_id: int,
        body: Mapping[str, Any],
        upload: Optional[IncomingFile],
    ) -> List[Record]:
        values = validate_payload(config, body, partial=True)
        if not values and (upload is None or not config.image_field):
            raise ValidationError(message="No fields to update were provided.")

        stored = await self._store_upload(config, upload)
        if stored is not None:
            values[config.image_field] = stored.url

        try:
            rows = await gateway.update(config.table, record_id, values)
        except Exception:
            await self._discard(stored)
            raise

        if not rows:
            await self._discard(stored)
            raise NotFoundError(resource=config.name, resource_id=str(record_id))

        logger.info("Updated %s id=%s fields=%s", config.name, record_id, sorted(values))
        return rows

    async def _delete(
        self, gateway: TableGateway, config: EntityConfig, record_id: int
    ) -> Dict[str, Any]:
        rows = await gateway.delete_by_id(config.table, record_id)
        logger.info("Deleted %s id=%s (%d row(s))", config.name, record_id, len(rows))
        return {"message": f"{config.label} deleted", "data": rows}
