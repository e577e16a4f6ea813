"""
core/errors.py -- Typed error taxonomy for the reporting API.

Services and the access policy raise these; api/main.py maps every subclass of
ReportingError to the JSON envelope with a fixed HTTP status. Route handlers
never build error responses by hand.

Each class carries:
  status_code -- the HTTP status the API boundary returns
  reason      -- stable machine-readable code, safe for clients to branch on
  message     -- human-readable text (instance-level, defaults per class)

Layer rule: core/ is the kernel. No imports from api/, auth/, academics/, or
reports/.
"""

from __future__ import annotations

from collections.abc import Iterable


class ReportingError(Exception):
    """Base class for every error the API boundary knows how to render."""

    status_code: int = 500
    reason: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, errors: list[dict] | None = None) -> None:
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class ValidationError(ReportingError):
    """Malformed input. errors holds one {field, message} entry per problem."""

    status_code = 400
    reason = "validation_error"
    default_message = "Validation failed."


# ---------------------------------------------------------------------------
# Authentication (401)
# ---------------------------------------------------------------------------


class AuthError(ReportingError):
    status_code = 401
    reason = "unauthorized"
    default_message = "Authentication required."


class InvalidCredentials(AuthError):
    # One message for unknown email and wrong password alike.
    reason = "invalid_credentials"
    default_message = "Invalid email or password."


class InvalidToken(AuthError):
    reason = "invalid_token"
    default_message = "Invalid authentication token."


class UserNotFound(AuthError):
    reason = "user_not_found"
    default_message = "User account not found."


# ---------------------------------------------------------------------------
# Authorization (403, except CannotDeleteSelf)
# ---------------------------------------------------------------------------


class AuthzError(ReportingError):
    status_code = 403
    reason = "forbidden"
    default_message = "Access denied."


class Forbidden(AuthzError):
    """The actor's role is outside the allowed set for the operation.

    operation and required_roles are kept on the instance for logging and are
    rendered into the message, e.g.
    "Access denied for create class. Required roles: program_leader".
    """

    def __init__(self, operation: str, required_roles: Iterable[str] = ()) -> None:
        self.operation = operation
        self.required_roles = tuple(required_roles)
        message = f"Access denied for {operation}."
        if self.required_roles:
            message += f" Required roles: {', '.join(self.required_roles)}"
        super().__init__(message)


class ForbiddenFaculty(AuthzError):
    reason = "forbidden_faculty"
    default_message = "You can only act on records in your own faculty."


class CannotDeleteSelf(AuthzError):
    status_code = 400
    reason = "cannot_delete_self"
    default_message = "You cannot delete your own account."


# ---------------------------------------------------------------------------
# Conflicts (400)
# ---------------------------------------------------------------------------


class ConflictError(ReportingError):
    status_code = 400
    reason = "conflict"
    default_message = "The request conflicts with existing data."


class DuplicateEmail(ConflictError):
    reason = "duplicate_email"
    default_message = "User already exists with this email."


class DuplicateRating(ConflictError):
    reason = "duplicate_rating"
    default_message = "You have already rated this lecture."


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class NotFoundError(ReportingError):
    status_code = 404
    reason = "not_found"
    default_message = "Resource not found."


class InvalidRoleError(NotFoundError):
    """A referenced user exists but does not hold the role the field requires."""

    reason = "invalid_role"
    default_message = "Referenced user does not hold the required role."


class ReferencedEntityError(ReportingError):
    status_code = 400
    reason = "referenced_entity"
    default_message = (
        "Cannot delete record. It is associated with existing records "
        "(reports, classes, courses, ratings). Reassign or delete those records first."
    )


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class StoreUnavailable(ReportingError):
    status_code = 500
    reason = "store_unavailable"
    default_message = "The database is currently unavailable."
