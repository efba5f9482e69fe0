"""
RequestGraph Backend — Storage Error Translator
=================================================

What:  Maps SQLAlchemy / DBAPI exceptions to the application's typed failures.
Why:   The store is the only layer that knows which database engine is in use;
       everything above it sees NotFoundError, ConflictError or DatabaseError.
How:   Pure functions: inspect the exception (SQLSTATE where the driver exposes
       one, message text for SQLite) and build the matching exception.
       Nothing is retried here.

Mapping:
    unique violation (23505 / "UNIQUE constraint failed")  → CONFLICT
    serialization failure / deadlock (40001, 40P01)        → CONFLICT
    SQLite "database is locked"                            → CONFLICT
    StaleDataError (revision changed under an UPDATE)      → CONFLICT
    NoResultFound                                          → NOT_FOUND
    anything else                                          → UNEXPECTED
"""

import logging
from typing import Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import (
    ConflictError,
    DatabaseError,
    FailureKind,
    NotFoundError,
    RequestGraphError,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
WRITE_CONFLICT_STATES = {"40001", "40P01"}


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    """SQLSTATE from the DBAPI error or the driver exception it wraps."""
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str):
                return code
    return None


def failure_kind(exc: BaseException) -> FailureKind:
    """Classifies a storage exception into the three-valued taxonomy."""
    if isinstance(exc, RequestGraphError):
        return exc.kind
    if isinstance(exc, NoResultFound):
        return FailureKind.NOT_FOUND
    if isinstance(exc, StaleDataError):
        return FailureKind.CONFLICT
    if isinstance(exc, DBAPIError):
        state = _sqlstate(exc)
        text = str(exc.orig).lower()
        if isinstance(exc, IntegrityError):
            if state == UNIQUE_VIOLATION or "unique constraint failed" in text:
                return FailureKind.CONFLICT
            return FailureKind.UNEXPECTED
        if state in WRITE_CONFLICT_STATES:
            return FailureKind.CONFLICT
        if isinstance(exc, OperationalError) and "database is locked" in text:
            return FailureKind.CONFLICT
    return FailureKind.UNEXPECTED


def translate_storage_error(
    exc: BaseException,
    collection: str,
    key: Optional[str] = None,
) -> RequestGraphError:
    """
    Builds the application exception for a failed storage call.

    Usage:
        try:
            await session.flush()
        except SQLAlchemyError as e:
            raise translate_storage_error(e, self.name, key) from e
    """
    if isinstance(exc, RequestGraphError):
        return exc

    context = {"collection": collection, "original_error": type(exc).__name__}
    if key is not None:
        context["key"] = key

    kind = failure_kind(exc)
    if kind is FailureKind.NOT_FOUND:
        return NotFoundError(resource=collection, resource_id=key, context=context)
    if kind is FailureKind.CONFLICT:
        message = "The document was modified concurrently"
        if isinstance(exc, IntegrityError):
            message = f"A document with key '{key}' already exists in {collection}"
        return ConflictError(message=message, context=context)

    logger.error("Unexpected storage error on %s/%s: %s", collection, key, exc)
    return DatabaseError(context=context)
