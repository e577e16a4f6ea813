"""
academics/store.py -- SQLAlchemy Core persistence for classes and courses.

Pattern: Repository + Data Mapper. AcademicStore is the repository for both
entities; _row_to_class / _row_to_course are the mappers.

Every read LEFT JOINs the users table (aliased as "lecturer") so the lecturer's
first and last name travel with the row. A class or course without a lecturer
comes back with those fields as None.

Row filters from core.policy are compiled against the classes/courses table
columns and AND-ed into the WHERE clause.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or reports/. The users table is imported from
auth/store.py for the foreign keys and the name join.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, Text, select
from sqlalchemy.exc import IntegrityError

from academics.models import Class, Course
from auth.store import users_table
from core.database import Database, metadata, row_filter_clause
from core.errors import ReferencedEntityError
from core.policy import RowFilter

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

classes_table = Table(
    "classes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("class_name", String(100), nullable=False),
    Column("faculty", String(100), nullable=False),
    Column("total_registered_students", Integer, nullable=False),
    Column("description", Text),
    Column("lecturer_id", Integer, ForeignKey("users.id")),
    Column("active", Boolean, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
)

courses_table = Table(
    "courses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("course_code", String(20), nullable=False),
    Column("course_name", String(200), nullable=False),
    Column("faculty", String(100), nullable=False),
    Column("description", Text),
    Column("lecturer_id", Integer, ForeignKey("users.id")),
    Column("program_leader_id", Integer, ForeignKey("users.id")),
    Column("active", Boolean, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
)

_classes = classes_table
_courses = courses_table
_lecturer = users_table.alias("lecturer")

_CLASS_FIELDS = frozenset({"class_name", "faculty", "total_registered_students", "description", "active"})
_COURSE_FIELDS = frozenset({"course_code", "course_name", "faculty", "description", "active"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _with_lecturer(table: Table):
    """SELECT table.*, lecturer names FROM table LEFT JOIN users AS lecturer."""
    return select(
        table,
        _lecturer.c.first_name.label("lecturer_first_name"),
        _lecturer.c.last_name.label("lecturer_last_name"),
    ).select_from(table.outerjoin(_lecturer, table.c.lecturer_id == _lecturer.c.id))


def _check_fields(fields: dict, allowed: frozenset) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {sorted(unknown)!r}")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AcademicStore:
    """Repository for Class and Course entities.

    Usage:
        store = AcademicStore(db)
        class_id = store.create_class(Class(class_name="BSCSM Y2", faculty="ICT",
                                            total_registered_students=40))
        store.set_class_lecturer(class_id, lecturer_id)
        classes = store.list_classes(RowFilter(any_of=({"faculty": "ICT"},)))
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        db.create_tables([users_table, _classes, _courses])

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def list_classes(self, row_filter: Optional[RowFilter] = None) -> list[Class]:
        stmt = _with_lecturer(_classes).order_by(_classes.c.class_name)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_classes, row_filter))
        with self.db.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_class(r) for r in rows]

    def get_class(self, class_id: int, row_filter: Optional[RowFilter] = None) -> Optional[Class]:
        stmt = _with_lecturer(_classes).where(_classes.c.id == class_id)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_classes, row_filter))
        with self.db.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_class(row) if row is not None else None

    def create_class(self, klass: Class) -> int:
        """Insert a class and return its ID. lecturer_id is never set here."""
        with self.db.connect() as conn:
            result = conn.execute(
                _classes.insert().values(
                    class_name=klass.class_name,
                    faculty=klass.faculty,
                    total_registered_students=klass.total_registered_students,
                    description=klass.description,
                    active=klass.active,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_class(self, class_id: int, **fields) -> bool:
        """Update mutable fields. Accepted: class_name, faculty,
        total_registered_students, description, active."""
        _check_fields(fields, _CLASS_FIELDS)
        if not fields:
            return self.get_class(class_id) is not None
        with self.db.connect() as conn:
            result = conn.execute(_classes.update().where(_classes.c.id == class_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def set_class_lecturer(self, class_id: int, lecturer_id: int) -> bool:
        with self.db.connect() as conn:
            result = conn.execute(_classes.update().where(_classes.c.id == class_id).values(lecturer_id=lecturer_id))
            conn.commit()
        return result.rowcount > 0

    def delete_class(self, class_id: int) -> bool:
        with self.db.connect() as conn:
            result = conn.execute(_classes.delete().where(_classes.c.id == class_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    def list_courses(self, row_filter: Optional[RowFilter] = None) -> list[Course]:
        stmt = _with_lecturer(_courses).order_by(_courses.c.course_code)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_courses, row_filter))
        with self.db.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_course(r) for r in rows]

    def get_course(self, course_id: int, row_filter: Optional[RowFilter] = None) -> Optional[Course]:
        stmt = _with_lecturer(_courses).where(_courses.c.id == course_id)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_courses, row_filter))
        with self.db.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_course(row) if row is not None else None

    def create_course(self, course: Course) -> int:
        """Insert a course and return its ID. lecturer_id is never set here."""
        with self.db.connect() as conn:
            result = conn.execute(
                _courses.insert().values(
                    course_code=course.course_code,
                    course_name=course.course_name,
                    faculty=course.faculty,
                    description=course.description,
                    program_leader_id=course.program_leader_id,
                    active=course.active,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_course(self, course_id: int, **fields) -> bool:
        """Update mutable fields. Accepted: course_code, course_name, faculty,
        description, active."""
        _check_fields(fields, _COURSE_FIELDS)
        if not fields:
            return self.get_course(course_id) is not None
        with self.db.connect() as conn:
            result = conn.execute(_courses.update().where(_courses.c.id == course_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def set_course_lecturer(self, course_id: int, lecturer_id: int) -> bool:
        with self.db.connect() as conn:
            result = conn.execute(_courses.update().where(_courses.c.id == course_id).values(lecturer_id=lecturer_id))
            conn.commit()
        return result.rowcount > 0

    def delete_course(self, course_id: int) -> bool:
        """Delete a course. Raises ReferencedEntityError while reports point at it."""
        try:
            with self.db.connect() as conn:
                result = conn.execute(_courses.delete().where(_courses.c.id == course_id))
                conn.commit()
        except IntegrityError as exc:
            raise ReferencedEntityError() from exc
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_class(row) -> Class:
    return Class(
        id=row.id,
        class_name=row.class_name,
        faculty=row.faculty,
        total_registered_students=row.total_registered_students,
        description=row.description,
        lecturer_id=row.lecturer_id,
        active=bool(row.active),
        created_at=row.created_at,
        lecturer_first_name=row.lecturer_first_name,
        lecturer_last_name=row.lecturer_last_name,
    )


def _row_to_course(row) -> Course:
    return Course(
        id=row.id,
        course_code=row.course_code,
        course_name=row.course_name,
        faculty=row.faculty,
        description=row.description,
        lecturer_id=row.lecturer_id,
        program_leader_id=row.program_leader_id,
        active=bool(row.active),
        created_at=row.created_at,
        lecturer_first_name=row.lecturer_first_name,
        lecturer_last_name=row.lecturer_last_name,
    )
