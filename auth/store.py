"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  email is UNIQUE in SQL. create_user() maps the IntegrityError to
  DuplicateEmail so two concurrent registrations cannot both succeed.

Row filters:
  list_users() and get_user() accept the RowFilter the access policy returned
  and AND it into the WHERE clause. A row outside the filter is simply not
  returned; the service turns that into NotFoundError.

The users table is exported as `users_table` because academics/ and reports/
declare foreign keys to it and join lecturer names from it.

Layer rule: no imports from api/, academics/, or reports/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, String, Table, Text, func, select
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.database import Database, metadata, row_filter_clause
from core.errors import DuplicateEmail, ReferencedEntityError
from core.policy import RowFilter

logger = logging.getLogger("luct.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users_table = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("role", String(30), nullable=False, server_default="student"),
    Column("faculty", String(100), nullable=False, server_default="ICT"),
    Column("active", Boolean, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
)

_users = users_table

# Columns update_user() will write. id, email, password_hash and created_at
# are immutable through the API.
_UPDATABLE = frozenset({"first_name", "last_name", "role", "faculty", "active"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(db)
        store.create_user(User(email="pl@luct.ac.ls", first_name="P", last_name="L",
                               role="program_leader", faculty="ICT",
                               hashed_password=hash_password("secret")))
        user = store.get_by_email("pl@luct.ac.ls")
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        db.create_tables([_users])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count_users(self) -> int:
        with self.db.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.db.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key, unfiltered. Used by identity resolution."""
        with self.db.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user(self, user_id: int, row_filter: RowFilter | None = None) -> User | None:
        """Look up a user by primary key within the caller's row filter."""
        stmt = _users.select().where(_users.c.id == user_id)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_users, row_filter))
        with self.db.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self, row_filter: RowFilter | None = None) -> list[User]:
        """Return users within row_filter ordered by role, then first name."""
        stmt = _users.select().order_by(_users.c.role, _users.c.first_name)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_users, row_filter))
        with self.db.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateEmail if the email is already registered, including
        when a concurrent insert wins the race on the UNIQUE constraint.
        """
        try:
            with self.db.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        email=user.email,
                        password_hash=user.hashed_password,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        role=user.role,
                        faculty=user.faculty,
                        active=user.active,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateEmail() from exc

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: first_name, last_name, role, faculty, active.
        Returns True if a row was updated, False if user_id was not found.
        """
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if not fields:
            return self.get_by_id(user_id) is not None
        with self.db.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Raises ReferencedEntityError when a class, course, report or rating
        still points at the user (foreign keys do not cascade).
        """
        try:
            with self.db.connect() as conn:
                result = conn.execute(_users.delete().where(_users.c.id == user_id))
                conn.commit()
        except IntegrityError as exc:
            logger.info("Refused to delete user %s: still referenced", user_id)
            raise ReferencedEntityError() from exc
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        hashed_password=row.password_hash,
        first_name=row.first_name,
        last_name=row.last_name,
        role=row.role,
        faculty=row.faculty,
        active=bool(row.active),
        created_at=row.created_at,
    )
