"""
Site Content API — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, one per failure bucket the API reports.
Why:   Services raise; global handlers in main.py translate to HTTP responses,
       so no route contains try/except boilerplate.
How:   Each exception carries a user-facing message and an optional context
       dict (logged server-side, only selectively returned to the client).

Exception Hierarchy:
    SiteContentError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── RecordRejectedError      → 400 Bad Request (database refused the data)
    ├── NotFoundError            → 404 Not Found
    ├── MethodNotAllowedError    → 405 Method Not Allowed
    ├── ObjectStorageError       → 500 Internal Server Error (upload failed)
    └── DatabaseError            → 500 Internal Server Error (connectivity)
"""

from typing import Any, Dict, Iterable, Optional


class SiteContentError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only by 400-class handlers)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SiteContentError):
    """
    Raised when client input fails validation.

    When:    Unknown or malformed fields, oversized/empty upload, empty update.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class RecordRejectedError(SiteContentError):
    """
    Raised when the database refuses an operation because of the submitted data.

    When:    Constraint violation, value of the wrong type for a column.
    HTTP:    400 Bad Request — the database's own message is passed through,
             the way the hosted store's error message always was.
    """

    def __init__(
        self,
        message: str = "The database rejected the operation",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SiteContentError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown entity name, GET /E/{id} or PUT /E/{id} with no matching row.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class MethodNotAllowedError(SiteContentError):
    """
    Raised when a verb is not supported on the requested path.

    When:    POST on an item path, PUT/DELETE on a collection path, PATCH, or a
             verb the entity's configuration does not enable.
    HTTP:    405 Method Not Allowed (with an Allow header)
    """

    def __init__(
        self,
        method: str,
        allowed: Iterable[str] = (),
        context: Optional[Dict[str, Any]] = None,
    ):
        self.allowed = sorted(allowed)
        ctx = context or {}
        ctx["method"] = method
        ctx["allowed"] = self.allowed
        super().__init__(message=f"Method {method} is not allowed on this path", context=ctx)


class ObjectStorageError(SiteContentError):
    """
    Raised when an object store call fails.

    When:    Storage unreachable, permission denied, duplicate key without overwrite.
    HTTP:    500 Internal Server Error. The request is aborted before any row is
             written, so no record ever references a missing image.
    """

    def __init__(
        self,
        message: str = "Failed to upload image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SiteContentError):
    """
    Raised when database operations fail for reasons unrelated to the input.

    When:    Connection lost, pool exhausted, server shutting down.
    HTTP:    500 Internal Server Error — the message returned to the client is
             generic; the driver error is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
