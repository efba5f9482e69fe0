"""
RequestGraph Backend — Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions for the failure modes of the store.
Why:   The HTTP layer must not depend on any storage engine's error
       representation. The store raises these; global handlers in main.py
       turn them into JSON error responses.
How:   Each exception carries a message, an optional context dict, and a
       FailureKind — the three-valued taxonomy the route layer consumes.
Who:   Raised by the storage layer and services; caught by global handlers.

Exception Hierarchy:
    RequestGraphError (base)   kind=UNEXPECTED  → 500 Internal Server Error
    ├── ValidationError        kind=UNEXPECTED  → 400 Bad Request (client can fix)
    ├── NotFoundError          kind=NOT_FOUND   → 404 Not Found
    ├── ConflictError          kind=CONFLICT    → 409 Conflict
    └── DatabaseError          kind=UNEXPECTED  → 500 Internal Server Error
"""

from enum import Enum
from typing import Any, Dict, Optional


class FailureKind(str, Enum):
    """Typed outcome of a failed store operation."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNEXPECTED = "unexpected"


class RequestGraphError(Exception):
    """
    Base exception for all RequestGraph application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where noted)
        kind:     FailureKind consumed by the route layer
    """

    kind: FailureKind = FailureKind.UNEXPECTED

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RequestGraphError):
    """
    Raised when client input fails a rule the schema layer cannot express.

    When:    Malformed _key, malformed _from/_to handle, missing edge
             endpoints, undecodable pagination cursor.
    HTTP:    400 Bad Request

    Pydantic schema violations are left to FastAPI (422).
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


class NotFoundError(RequestGraphError):
    """
    Raised when the target document does not exist.

    When:    get/replace/patch/delete of an absent key.
    HTTP:    404 Not Found
    """

    kind = FailureKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "document",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with key '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(RequestGraphError):
    """
    Raised on a uniqueness or revision violation.

    When:
        - create with a _key that already exists in the collection
        - replace/patch with a stale _rev (or If-Match header)
        - a concurrent writer changed the document between read and write
    HTTP:    409 Conflict

    Not retried: the client decides whether to re-read and try again.
    """

    kind = FailureKind.CONFLICT

    def __init__(
        self,
        message: str = "The document was modified or already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(RequestGraphError):
    """
    Raised when a storage operation fails for any other reason.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Driver messages and SQL are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
