"""
CaterHub Backend — Custom Exception Hierarchy
===============================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message, an optional context dict, and
       the HTTP status and machine-readable code it maps to. The global
       handler registered in main.py renders them in the response envelope.
Who:   Raised by services, dependencies and the image storage; caught by the
       global handler.

Exception Hierarchy:
    CaterHubError (base)
    ├── ValidationError                 → 400 (missing/malformed input)
    │   ├── InvalidReferenceError       → 400 (referenced lookup/entity missing)
    │   ├── ReferencedByPackageItemError→ 400 (dish still used by package items)
    │   ├── PartialOwnershipMismatchError→400 (link-batch ids not all owned)
    │   └── UploadError                 → 400 (image rejected or not storable)
    ├── AuthError                       → 401 (missing/invalid/expired token)
    ├── ForbiddenError                  → 403 (role mismatch)
    │   └── InvalidOwnerError           → 403 (dashboard for a non-caterer)
    ├── NotFoundOrForbiddenError        → 404 (missing or owned by another tenant)
    ├── ConflictError                   → 409 (duplicate email)
    ├── RateLimitExceededError          → 429
    └── DatabaseError                   → 500

Design Decision:
    "Missing" and "owned by someone else" are deliberately the same
    exception with the same message, so a caterer cannot test for the
    existence of another tenant's rows.
"""

from typing import Any, Dict, Optional


class CaterHubError(Exception):
    """
    Base exception for all CaterHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` for 4xx errors,
                  logged only for 5xx errors
    """

    status_code: int = 500
    code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CaterHubError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, bad email, short password, bad role,
             unparsable numbers in form data.
    HTTP:    400 Bad Request (FastAPI's own 422 is remapped to 400 as well)
    """

    status_code = 400
    code = "validation_error"

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


class InvalidReferenceError(ValidationError):
    """
    Raised when a write references a row that does not exist.

    When:    Unknown cuisine type / category / subcategory / package type /
             free form, a subcategory outside its category, or a dish or
             package id that is not owned by the caller.
    """

    code = "invalid_reference"

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if entity:
            ctx["entity"] = entity
        super().__init__(message=message, context=ctx)
        self.entity = entity


class ReferencedByPackageItemError(ValidationError):
    """Raised when deleting a dish that package items still point at."""

    code = "referenced_by_package_item"

    def __init__(
        self,
        message: str = "Cannot delete dish. It is being used in one or more packages",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PartialOwnershipMismatchError(ValidationError):
    """
    Raised when a batch of package item ids does not fully resolve to rows
    owned by the caller. Nothing in the batch is written.
    """

    code = "partial_ownership_mismatch"

    def __init__(
        self,
        message: str = "Some package items not found or do not belong to this caterer",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UploadError(ValidationError):
    """
    Raised when an uploaded image is rejected or cannot be stored.

    When:    Not an image, over the size limit, undecodable, disk write failed.
    HTTP:    400 Bad Request
    """

    code = "upload_error"

    def __init__(
        self,
        message: str = "Image upload failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field="image", context=context)


class AuthError(CaterHubError):
    """Missing, malformed, invalid or expired credentials (401)."""

    status_code = 401
    code = "unauthorized"

    def __init__(
        self,
        message: str = "Invalid or expired token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(CaterHubError):
    """Authenticated identity lacks the role a route group requires (403)."""

    status_code = 403
    code = "forbidden"

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidOwnerError(ForbiddenError):
    """The owner id handed to a tenant operation is not a caterer account."""

    code = "invalid_owner"

    def __init__(
        self,
        message: str = "User is not a caterer",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundOrForbiddenError(CaterHubError):
    """
    Raised when a row is missing OR belongs to another tenant.

    Why one exception:
        Reporting the two cases differently would let a caterer enumerate
        other tenants' ids. The message is the same either way.
    """

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = message or (
            f"{resource} not found or you don't have permission to access it"
        )
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(CaterHubError):
    """Raised when a unique value (email) is already taken (409)."""

    status_code = 409
    code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(CaterHubError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header for HTTP-compliant clients.
    """

    status_code = 429
    code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(CaterHubError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. Constraint
        names and SQL are logged server-side only.
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
