"""
auth/models.py -- Domain dataclass for the user account.

Pattern: Data class (pure data container, zero logic). Stores map rows to
instances; services and routes do the work.

Layer rule: no imports from api/, academics/, or reports/.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.policy import Role

ROLES: tuple[str, ...] = tuple(r.value for r in Role)

# Roles a program leader may assign through /api/users. Self-registration
# accepts every role in ROLES.
MANAGED_ROLES: tuple[str, ...] = (
    Role.student.value,
    Role.lecturer.value,
    Role.principal_lecturer.value,
)


@dataclass
class User:
    """An account in the reporting system.

    role and faculty are the two fields the access policy reads. They are
    re-read from the store on every request, so a role change or deactivation
    takes effect on the next call, not at token expiry.

    hashed_password never leaves the service layer; the API serializes users
    through api.models.UserOut, which has no password field.
    """

    email: str
    first_name: str
    last_name: str
    role: str  # one of ROLES
    faculty: str
    id: int | None = None
    hashed_password: str | None = None
    active: bool = True
    created_at: str | None = None
