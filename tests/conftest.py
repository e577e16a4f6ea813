"""
tests/conftest.py -- Shared test fixtures for the reporting API tests.

This module provides:
  - make_stores(): one isolated in-memory Database plus every store on it
  - seed_users(): one account per role, in two faculties
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores / people: function-scoped fixtures for store and service tests
  - rating_count: counts stored ratings with its own query, so tests can
    check the UNIQUE(report_id, student_id) outcome without a store helper
  - api: module-scoped TestClient with a bearer header per seeded account

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process. A uuid
suffix keeps every fixture instance on its own database.

Environment must be set before any core/auth import: DEBUG so get_settings()
auto-generates SECRET_KEY, RATE_LIMIT_ENABLED so the suite can log in more
than 10 times a minute, BCRYPT_ROUNDS at the floor to keep hashing fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# CRITICAL: set before any core/auth import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "10")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from academics.store import AcademicStore
from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.database import Database
from reports.store import ReportStore, ratings_table

PASSWORD = "secret123"

# name -> (role, faculty)
PEOPLE: dict[str, tuple[str, str]] = {
    "leader": ("program_leader", "ICT"),
    "prl": ("principal_lecturer", "ICT"),
    "lecturer": ("lecturer", "ICT"),
    "biz_lecturer": ("lecturer", "Business"),
    "student": ("student", "ICT"),
    "biz_student": ("student", "Business"),
}


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


@dataclass
class Stores:
    db: Database
    users: UserStore
    academics: AcademicStore
    reports: ReportStore


def make_stores(db_suffix: str) -> Stores:
    """Create every store on one isolated named shared-memory SQLite database."""
    url = f"sqlite:///file:test_luct_{db_suffix}_{uuid.uuid4().hex[:8]}?mode=memory&cache=shared&uri=true"
    db = Database(url)
    return Stores(db=db, users=UserStore(db), academics=AcademicStore(db), reports=ReportStore(db))


def seed_users(users: UserStore) -> dict[str, User]:
    """Insert one account per entry in PEOPLE, all with password PASSWORD."""
    hashed = hash_password(PASSWORD)
    seeded: dict[str, User] = {}
    for name, (role, faculty) in PEOPLE.items():
        user_id = users.create_user(
            User(
                email=f"{name}@luct.ac.ls",
                first_name=name.replace("_", " ").title(),
                last_name="Test",
                role=role,
                faculty=faculty,
                hashed_password=hashed,
            )
        )
        seeded[name] = users.get_by_id(user_id)
    return seeded


def _patch_lifespan(stores: Stores):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    the isolated test database rather than the configured one.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.db = stores.db
        app.state.user_store = stores.users
        app.state.academic_store = stores.academics
        app.state.report_store = stores.reports
        yield

    return test_lifespan


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


# ---------------------------------------------------------------------------
# Function-scoped fixtures -- fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[Stores, None, None]:
    s = make_stores("unit")
    yield s
    s.db.close()


@pytest.fixture
def people(stores: Stores) -> dict[str, User]:
    return seed_users(stores.users)


@pytest.fixture
def rating_count():
    """Return count(db, report_id, student_id=None): stored ratings read straight from the table."""

    def count(db: Database, report_id: int, student_id: int | None = None) -> int:
        stmt = select(func.count()).select_from(ratings_table).where(ratings_table.c.report_id == report_id)
        if student_id is not None:
            stmt = stmt.where(ratings_table.c.student_id == student_id)
        with db.connect() as conn:
            return conn.execute(stmt).scalar()

    return count


# ---------------------------------------------------------------------------
# Module-scoped fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    stores: Stores
    people: dict[str, User]
    headers: dict[str, dict[str, str]] = field(default_factory=dict)


@pytest.fixture(scope="module")
def api() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, the real policy and real SQL, on a throwaway DB.
    headers[name] is a ready Authorization header for each seeded account.
    """
    stores = make_stores("api")
    people = seed_users(stores.users)
    app.router.lifespan_context = _patch_lifespan(stores)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            stores=stores,
            people=people,
            headers={name: bearer(user) for name, user in people.items()},
        )

    stores.db.close()
