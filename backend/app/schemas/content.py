"""
Site Content API — Pydantic Request/Response Schemas
=====================================================

What:  Request payload models for each content entity, plus the shared
       response envelopes.
Why:   Form bodies arrive as an untyped bag of strings. Validating them
       against the entity's column list rejects unknown fields and malformed
       dates before anything reaches the database.
How:   Payload models are generated from the registry with `create_model`,
       one per entity, and cached. Every field is optional — POST stores
       omitted fields as null, PUT applies only the fields that were sent.
"""

from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, create_model, model_validator
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import ValidationError
from app.registry import EntityConfig


# ══════════════════════════════════════════════════════════════════════════
# Request Models — generated per entity
# ══════════════════════════════════════════════════════════════════════════


class RecordPayload(BaseModel):
    """
    Base for generated entity payloads.

    HTML forms submit an empty string for an untouched input. For text
    columns that is a legitimate value; for typed columns (dates) it means
    "no value" and is stored as null.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)

    @model_validator(mode="before")
    @classmethod
    def blank_typed_fields_to_none(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for key, value in data.items():
            field_info = cls.model_fields.get(key)
            if value == "" and field_info is not None and field_info.annotation != Optional[str]:
                cleaned[key] = None
        return cleaned


@lru_cache(maxsize=None)
def payload_model(config: EntityConfig) -> Type[RecordPayload]:
    """Build (once) the payload model for an entity from its column types."""
    definitions = {
        name: (Optional[python_type], None)
        for name, python_type in config.fields.items()
    }
    return create_model(
        f"{config.model.__name__}Payload",
        __base__=RecordPayload,
        **definitions,
    )


def validate_payload(
    config: EntityConfig,
    body: Mapping[str, Any],
    partial: bool = False,
) -> Dict[str, Any]:
    """
    Validate a request body against the entity's payload model.

    Args:
        config:  Entity whose columns define the allowed fields.
        body:    Raw form/JSON fields (file parts already removed).
        partial: True for PUT — only fields present in `body` are returned.

    Returns:
        Column name → Python value, ready for the table gateway.

    Raises:
        ValidationError: unknown field or a value of the wrong type (→ 400)
    """
    model = payload_model(config)
    try:
        payload = model.model_validate(dict(body))
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(
            message=f"Invalid value for '{field}': {first['msg']}" if field else first["msg"],
            field=field,
            context={"errors": errors},
        ) from e
    return payload.model_dump(exclude_unset=partial)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class DeleteResponse(BaseModel):
    """
    What:  Confirmation returned by DELETE /E/{id}.
    Why:   `data` lists the rows actually removed; it is empty when the id did
           not exist, which is still a success (deletes are idempotent).
    """
    message: str = Field(description="Human-readable confirmation, e.g. 'Tagline deleted'")
    data: List[Dict[str, Any]] = Field(default_factory=list, description="Deleted rows")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "taglines with ID '42' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Object store status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
