"""
core/database.py -- The shared store client: one Engine, one bounded pool.

Every store (auth/store.py, academics/store.py, reports/store.py) receives the
same Database instance by injection. The instance is created once in the
application lifespan (api/main.py) and disposed on shutdown; business logic
never reaches for a module-level engine.

Pooling:
  Server databases (PostgreSQL, MySQL) get a QueuePool bounded by
  db_pool_size + db_max_overflow with db_pool_timeout seconds of wait.
  SQLite files use SQLAlchemy's default pool without sizing arguments.
  In-memory URLs (":memory:" or "mode=memory") get SingletonThreadPool
  explicitly: one connection per thread, and the pool holds them open so a
  shared-cache database outlives any single request.

Failure translation:
  connect() turns OperationalError and pool TimeoutError into StoreUnavailable
  so callers see one error kind for "the database is not answering".
  IntegrityError is NOT translated here -- stores map it to domain errors
  (DuplicateEmail, DuplicateRating, ReferencedEntityError) because only they
  know which constraint was violated.

Layer rule: core/ is the kernel. No imports from api/, auth/, academics/, or
reports/. Table definitions live in the stores and register on `metadata`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import MetaData, Table, and_, create_engine, event, false, or_, text, true
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import SingletonThreadPool

from core.config import get_settings
from core.errors import StoreUnavailable
from core.policy import RowFilter

logger = logging.getLogger("luct.store")

metadata = MetaData()


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable foreign keys and WAL journal mode on every new SQLite connection.

    SQLite ignores FOREIGN KEY clauses unless the pragma is on, and PRAGMAs
    are per-connection, so this runs on every connect from the pool.
    """
    dbapi_conn.execute("PRAGMA foreign_keys=ON")
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_sqlite(url: str) -> bool:
    return ":memory:" in url or "mode=memory" in url or url.rstrip("/") in ("sqlite:", "sqlite:/")


def row_filter_clause(table: Table, row_filter: RowFilter):
    """Compile a policy RowFilter into a WHERE clause over table's columns.

    Each mapping in any_of is AND-ed; the mappings are OR-ed together.
    A tuple/list value becomes IN. An empty any_of matches nothing.
    """
    alternatives = []
    for conditions in row_filter.any_of:
        clauses = []
        for column, value in conditions.items():
            col = table.c[column]
            if isinstance(value, (tuple, list, set, frozenset)):
                clauses.append(col.in_(list(value)))
            else:
                clauses.append(col == value)
        alternatives.append(and_(*clauses) if clauses else true())
    if not alternatives:
        return false()
    return or_(*alternatives)


class Database:
    """Injected store client wrapping a pooled SQLAlchemy Engine.

    Usage:
        db = Database()                                    # settings.database_url
        db = Database("postgresql+psycopg://u:pw@host/db")
        with db.connect() as conn:
            conn.execute(...)
        db.close()
    """

    def __init__(
        self,
        db_url: str | None = None,
        *,
        pool_size: int | None = None,
        max_overflow: int | None = None,
        pool_timeout: int | None = None,
    ) -> None:
        settings = get_settings()
        self.url = db_url or settings.database_url
        engine_kwargs: dict = {}
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(self.url):
                engine_kwargs["poolclass"] = SingletonThreadPool
        else:
            engine_kwargs.update(
                pool_size=pool_size or settings.db_pool_size,
                max_overflow=max_overflow if max_overflow is not None else settings.db_max_overflow,
                pool_timeout=pool_timeout or settings.db_pool_timeout,
                pool_pre_ping=True,
            )
        self.engine: Engine = create_engine(self.url, **engine_kwargs)
        if self.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Check a connection out of the pool for the duration of the block."""
        try:
            with self.engine.connect() as conn:
                yield conn
        except (OperationalError, PoolTimeoutError) as exc:
            logger.error("Store unavailable: %s", exc)
            raise StoreUnavailable() from exc

    def create_tables(self, tables: list) -> None:
        """Create the given tables if they do not exist yet. Idempotent."""
        try:
            metadata.create_all(self.engine, tables=tables)
        except OperationalError as exc:
            logger.error("Schema creation failed: %s", exc)
            raise StoreUnavailable() from exc

    def ping(self) -> bool:
        """Return True if a trivial query succeeds. Used by the health endpoint."""
        try:
            with self.connect() as conn:
                conn.execute(text("SELECT 1"))
        except StoreUnavailable:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
