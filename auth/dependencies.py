"""
auth/dependencies.py -- FastAPI Depends() helper for authentication.

One auth method: the Authorization: Bearer <token> header. get_current_user()
resolves it to a freshly fetched User or raises a typed AuthError that the
API boundary renders as a 401 envelope.

Role checks do NOT happen here. Routes pass the User to a service, and the
service asks core.policy.

Layer rule: no imports from academics/ or reports/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.tokens import resolve_identity
from core.errors import InvalidToken


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = bearer_token(request)
    if token is None:
        raise InvalidToken("Authentication required.")
    return resolve_identity(request.app.state.user_store, token)
