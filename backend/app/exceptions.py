"""
Blog Backend - Exception Hierarchy and Error Kinds
====================================================

What:  Application exceptions raised by the service layer, each tagged with an
       ErrorKind that decides the HTTP status.
How:   Services raise; a single handler registered in main.py looks the kind
       up in STATUS_BY_KIND and answers with an empty-bodied response. The
       message and context are logged server-side and never returned.

Exception Hierarchy:
    BlogError (base, kind=INTERNAL)
    ├── NotFoundError      kind=NOT_FOUND    → 404
    ├── ValidationError    kind=BAD_REQUEST  → 400
    ├── DatabaseError      kind=INTERNAL     → 500
    └── FileStorageError   kind=INTERNAL     → 500

Anything that is not a BlogError is treated as INTERNAL by the catch-all
handler.
"""

import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Outcome classes a service call can fail with."""

    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"


# The one place where error kinds become status codes
STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.INTERNAL: 500,
}


def status_for(kind: ErrorKind) -> int:
    return STATUS_BY_KIND.get(kind, 500)


class BlogError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Human-readable description (logged, not returned)
        context:  Additional debug info (logged, not returned)
        kind:     ErrorKind used to pick the HTTP status
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(BlogError):
    """
    Raised when a referenced post or comment does not exist.

    This is the service layer's invalid-argument signal: "get by id" lookups
    raise it instead of returning None, and mutations raise it when their
    target is missing.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(BlogError):
    """
    Raised when client input is rejected before or during processing.

    Examples: empty image upload, image larger than max_image_size, a comment
    body whose postId disagrees with the URL.
    """

    kind = ErrorKind.BAD_REQUEST

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


class DatabaseError(BlogError):
    """
    Raised when a database operation fails unexpectedly.

    Services wrap SQLAlchemy errors in this type; the original exception type
    is kept in the context for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(BlogError):
    """Raised when a post image cannot be written to or read from disk."""

    def __init__(
        self,
        message: str = "Image storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
