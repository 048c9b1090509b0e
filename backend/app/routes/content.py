"""
Site Content API — Content Route Handlers
==========================================

What:  Registers the CRUD routes for every entity in the registry.
Why:   The routes are identical for all entities; one loop over the registry
       replaces hand-written handler sets per content type.
How:   Each entity gets two paths. Every verb on those paths funnels into
       EntityDispatcher.handle(), which decides between the operation and a
       405 — so verbs without a documented route still get our error format.

Route Inventory (per entity E):
    POST    /E              create (multipart/form-data or JSON)
    GET     /E              list all rows
    GET     /E/{record_id}  one row, 404 if absent
    PUT     /E/{record_id}  partial update (multipart/form-data or JSON)
    DELETE  /E/{record_id}  delete, succeeds even if absent
    (hidden) PUT/PATCH/DELETE /E and POST/PATCH /E/{record_id} → 405

Request bodies:
    Forms are the primary format (the admin panel sends multipart forms with
    the image in the field named after the entity's image column). JSON
    bodies are accepted for text-only writes.
"""

import logging
from datetime import date
from typing import Any, Dict, FrozenSet, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.database import get_db_session
from app.dependencies import get_entity_dispatcher
from app.exceptions import ValidationError
from app.registry import (
    COLLECTION_VERBS,
    ENTITY_REGISTRY,
    ITEM_VERBS,
    ROUTED_VERBS,
    EntityConfig,
)
from app.schemas.content import DeleteResponse, ErrorResponse
from app.services.entity_service import EntityDispatcher
from app.services.upload_service import IncomingFile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content"])

WRITE_VERBS = frozenset({"POST", "PUT", "PATCH"})

_ERROR_RESPONSES = {
    400: {"description": "Invalid input or rejected by the database", "model": ErrorResponse},
    500: {"description": "Upload or server error", "model": ErrorResponse},
}


async def read_payload(
    request: Request, config: EntityConfig, accepted: FrozenSet[str]
) -> Tuple[Dict[str, Any], Optional[IncomingFile]]:
    """
    Split a write request into text fields and the optional image file.

    Bodies of verbs the path does not accept are left unread, so the
    dispatcher answers them with 405 whatever they contain.

    Returns:
        (fields, file) — fields exclude every file part; file is the part
        submitted under the entity's image field, if it carries a filename.

    Raises:
        ValidationError: invalid JSON, or a file under an unexpected field
    """
    if request.method not in WRITE_VERBS or request.method not in accepted:
        return {}, None

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise ValidationError(message="Request body is not valid JSON.")
        if not isinstance(data, dict):
            raise ValidationError(message="Request body must be a JSON object.")
        return data, None

    form = await request.form()
    fields: Dict[str, Any] = {}
    upload: Optional[IncomingFile] = None
    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            fields[key] = value
            continue
        # Browsers submit an empty part for an untouched file input
        if not value.filename:
            continue
        if key != config.image_field:
            raise ValidationError(
                message=f"Unexpected file field '{key}'.",
                field=key,
                context={"expected": config.image_field},
            )
        upload = IncomingFile(
            filename=value.filename,
            content=await value.read(),
            content_type=value.content_type,
        )
    return fields, upload


def _form_schema(config: EntityConfig) -> Dict[str, Any]:
    """OpenAPI request body for the entity's writable fields."""
    properties: Dict[str, Any] = {}
    for name, python_type in config.fields.items():
        properties[name] = {"type": "string"}
        if python_type is date:
            properties[name]["format"] = "date"
    if config.image_field:
        properties[config.image_field] = {"type": "string", "format": "binary"}
    return {
        "requestBody": {
            "content": {"multipart/form-data": {"schema": {"type": "object", "properties": properties}}},
        }
    }


def register_entity_routes(target: APIRouter, config: EntityConfig) -> None:
    """Add the collection and item routes for one entity to `target`."""
    collection_path = f"/{config.route}"
    item_path = f"/{config.route}/{{record_id}}"
    collection_verbs = COLLECTION_VERBS & config.verbs
    item_verbs = ITEM_VERBS & config.verbs

    async def collection_endpoint(
        request: Request,
        db: AsyncSession = Depends(get_db_session),
        dispatcher: EntityDispatcher = Depends(get_entity_dispatcher),
    ):
        fields, upload = await read_payload(request, config, collection_verbs)
        return await dispatcher.handle(db, config.name, request.method, None, fields, upload)

    async def item_endpoint(
        record_id: int,
        request: Request,
        db: AsyncSession = Depends(get_db_session),
        dispatcher: EntityDispatcher = Depends(get_entity_dispatcher),
    ):
        fields, upload = await read_payload(request, config, item_verbs)
        return await dispatcher.handle(db, config.name, request.method, record_id, fields, upload)

    not_found = {404: {"description": f"No {config.name} row with this id", "model": ErrorResponse}}

    target.add_api_route(
        collection_path, collection_endpoint, methods=["POST"],
        name=f"create_{config.name}",
        summary=f"Create {config.name}" + (" (replaces existing)" if config.replace_existing else ""),
        responses=_ERROR_RESPONSES,
        openapi_extra=_form_schema(config),
    )
    target.add_api_route(
        collection_path, collection_endpoint, methods=["GET"],
        name=f"list_{config.name}",
        summary=f"List all {config.name}",
        responses=_ERROR_RESPONSES,
    )
    target.add_api_route(
        item_path, item_endpoint, methods=["GET"],
        name=f"get_{config.name}",
        summary=f"Get one {config.name} row",
        responses={**_ERROR_RESPONSES, **not_found},
    )
    target.add_api_route(
        item_path, item_endpoint, methods=["PUT"],
        name=f"update_{config.name}",
        summary=f"Update one {config.name} row",
        responses={**_ERROR_RESPONSES, **not_found},
        openapi_extra=_form_schema(config),
    )
    target.add_api_route(
        item_path, item_endpoint, methods=["DELETE"],
        name=f"delete_{config.name}",
        summary=f"Delete one {config.name} row",
        response_model=DeleteResponse,
        responses=_ERROR_RESPONSES,
    )

    # Remaining verbs reach the dispatcher too, which answers 405
    target.add_api_route(
        collection_path, collection_endpoint,
        methods=[verb for verb in ROUTED_VERBS if verb not in COLLECTION_VERBS],
        name=f"unsupported_{config.name}_collection",
        include_in_schema=False,
    )
    target.add_api_route(
        item_path, item_endpoint,
        methods=[verb for verb in ROUTED_VERBS if verb not in ITEM_VERBS],
        name=f"unsupported_{config.name}_item",
        include_in_schema=False,
    )


for _config in ENTITY_REGISTRY.values():
    register_entity_routes(router, _config)
