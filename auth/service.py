"""
auth/service.py -- UserService: account management behind the access policy.

Every method takes the acting User first and asks core.policy.enforce()
before touching the store. The policy either raises, or returns the row
filter that list/get pass straight to the store.

Layer rule: no imports from api/, academics/, or reports/.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from auth.models import MANAGED_ROLES, ROLES, User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.errors import DuplicateEmail, NotFoundError, ValidationError
from core.policy import Action, Resource, Target, enforce

logger = logging.getLogger("luct.auth")


class UserService:
    def __init__(self, store: UserStore) -> None:
        self.store = store

    def list(self, actor: User) -> tuple[list[User], int]:
        row_filter = enforce(actor, Resource.user, Action.list)
        users = self.store.list_users(row_filter)
        return users, len(users)

    def get(self, actor: User, user_id: int) -> User:
        row_filter = enforce(actor, Resource.user, Action.get)
        user = self.store.get_user(user_id, row_filter)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    def create(self, actor: User, profile: User, password: str) -> User:
        """Create an account on behalf of a program leader.

        Program leaders cannot mint other program leaders here; that role is
        only reachable through self-registration or the CLI.
        """
        enforce(actor, Resource.user, Action.create)
        if profile.role not in MANAGED_ROLES:
            raise ValidationError(
                errors=[{"field": "role", "message": f"Role must be one of: {', '.join(MANAGED_ROLES)}"}]
            )
        if self.store.get_by_email(profile.email) is not None:
            raise DuplicateEmail()
        user = replace(
            profile,
            faculty=profile.faculty or get_settings().default_faculty,
            hashed_password=hash_password(password),
        )
        user_id = self.store.create_user(user)
        logger.info("User %s created user %s (%s)", actor.id, user_id, user.role)
        return self.store.get_by_id(user_id)

    def update(self, actor: User, user_id: int, **fields) -> User:
        """Apply a partial update. Only keys that are present are written."""
        enforce(actor, Resource.user, Action.update, Target(id=user_id))
        if "role" in fields and fields["role"] not in ROLES:
            raise ValidationError(errors=[{"field": "role", "message": f"Role must be one of: {', '.join(ROLES)}"}])
        if not self.store.update_user(user_id, **fields):
            raise NotFoundError("User not found.")
        return self.store.get_by_id(user_id)

    def delete(self, actor: User, user_id: int) -> None:
        enforce(actor, Resource.user, Action.delete, Target(id=user_id))
        if not self.store.delete_user(user_id):
            raise NotFoundError("User not found.")
        logger.info("User %s deleted user %s", actor.id, user_id)
