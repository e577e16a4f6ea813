"""
reports/store.py -- SQLAlchemy Core persistence for lecture reports and ratings.

Pattern: Repository + Data Mapper. ReportStore is the repository;
_row_to_report / _row_to_rating are the mappers.

Joins (all LEFT so a deleted-course or missing-name case still returns the row):
  reports        + courses(course_code, course_name) + users(lecturer names)
  my ratings     + lecture_reports(class_name, topic_taught, date_of_lecture)
                 + courses(course_code, course_name)
  report ratings + users(rater first_name, last_name, role)

Uniqueness:
  UNIQUE(report_id, student_id) on ratings is the source of truth for "one
  rating per student per report". create_rating() maps the IntegrityError to
  DuplicateRating, so of two concurrent submissions exactly one is stored.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/. Table objects are imported from auth/ and
academics/ for foreign keys and joins.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, UniqueConstraint, select
from sqlalchemy.exc import IntegrityError

from academics.store import courses_table
from auth.store import users_table
from core.database import Database, metadata, row_filter_clause
from core.errors import DuplicateRating
from core.policy import RowFilter
from reports.models import LectureReport, Rating

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

reports_table = Table(
    "lecture_reports",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_name", String(100), nullable=False),
    Column("class_name", String(100), nullable=False),
    Column("week_of_reporting", String(50), nullable=False),
    Column("date_of_lecture", String(10), nullable=False),  # ISO 8601 date
    Column("course_id", Integer, ForeignKey("courses.id")),
    Column("lecturer_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("actual_students_present", Integer, nullable=False),
    Column("total_registered_students", Integer, nullable=False),
    Column("venue", String(100), nullable=False),
    Column("scheduled_lecture_time", String(8), nullable=False),  # HH:MM:SS
    Column("topic_taught", Text, nullable=False),
    Column("learning_outcomes", Text, nullable=False),
    Column("recommendations", Text, nullable=False, server_default=""),
    Column("prl_feedback", Text),
    Column("created_at", String(32), nullable=False),
)

ratings_table = Table(
    "ratings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("report_id", Integer, ForeignKey("lecture_reports.id"), nullable=False),
    Column("student_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("rating", Integer, nullable=False),
    Column("comment", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    UniqueConstraint("report_id", "student_id", name="uq_rating_report_student"),
)

_reports = reports_table
_ratings = ratings_table
_courses = courses_table
_lecturer = users_table.alias("lecturer")
_rater = users_table.alias("rater")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _report_select():
    return select(
        _reports,
        _courses.c.course_code,
        _courses.c.course_name,
        _lecturer.c.first_name.label("lecturer_first_name"),
        _lecturer.c.last_name.label("lecturer_last_name"),
    ).select_from(
        _reports.outerjoin(_courses, _reports.c.course_id == _courses.c.id).outerjoin(
            _lecturer, _reports.c.lecturer_id == _lecturer.c.id
        )
    )


def _rating_select():
    return select(
        _ratings,
        _reports.c.class_name,
        _reports.c.topic_taught,
        _reports.c.date_of_lecture,
        _courses.c.course_code,
        _courses.c.course_name,
    ).select_from(
        _ratings.join(_reports, _ratings.c.report_id == _reports.c.id).outerjoin(
            _courses, _reports.c.course_id == _courses.c.id
        )
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ReportStore:
    """Repository for LectureReport and Rating entities.

    Usage:
        store = ReportStore(db)
        report_id = store.create_report(report)
        store.set_feedback(report_id, "Good coverage of recursion.")
        store.create_rating(Rating(report_id=report_id, student_id=7, rating=5))
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        db.create_tables([users_table, _courses, _reports, _ratings])

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def list_reports(self, row_filter: Optional[RowFilter] = None) -> list[LectureReport]:
        """Return reports newest lecture first."""
        stmt = _report_select().order_by(_reports.c.date_of_lecture.desc(), _reports.c.id.desc())
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_reports, row_filter))
        with self.db.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_report(r) for r in rows]

    def get_report(self, report_id: int, row_filter: Optional[RowFilter] = None) -> Optional[LectureReport]:
        stmt = _report_select().where(_reports.c.id == report_id)
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_reports, row_filter))
        with self.db.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_report(row) if row is not None else None

    def create_report(self, report: LectureReport) -> int:
        with self.db.connect() as conn:
            result = conn.execute(
                _reports.insert().values(
                    faculty_name=report.faculty_name,
                    class_name=report.class_name,
                    week_of_reporting=report.week_of_reporting,
                    date_of_lecture=report.date_of_lecture,
                    course_id=report.course_id,
                    lecturer_id=report.lecturer_id,
                    actual_students_present=report.actual_students_present,
                    total_registered_students=report.total_registered_students,
                    venue=report.venue,
                    scheduled_lecture_time=report.scheduled_lecture_time,
                    topic_taught=report.topic_taught,
                    learning_outcomes=report.learning_outcomes,
                    recommendations=report.recommendations,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def set_feedback(self, report_id: int, feedback: str) -> bool:
        """Write prl_feedback. Returns False if report_id was not found."""
        with self.db.connect() as conn:
            result = conn.execute(_reports.update().where(_reports.c.id == report_id).values(prl_feedback=feedback))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def create_rating(self, rating: Rating) -> int:
        """Insert a rating and return its ID.

        Raises DuplicateRating if this student already rated this report.
        """
        try:
            with self.db.connect() as conn:
                result = conn.execute(
                    _ratings.insert().values(
                        report_id=rating.report_id,
                        student_id=rating.student_id,
                        rating=rating.rating,
                        comment=rating.comment or "",
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateRating() from exc

    def get_rating(self, rating_id: int) -> Optional[Rating]:
        """Return one rating with its report and course display fields."""
        stmt = _rating_select().where(_ratings.c.id == rating_id)
        with self.db.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_rating(row) if row is not None else None

    def list_ratings(self, row_filter: Optional[RowFilter] = None) -> list[Rating]:
        """Ratings joined with their report and course, newest first."""
        stmt = _rating_select().order_by(_ratings.c.created_at.desc(), _ratings.c.id.desc())
        if row_filter is not None:
            stmt = stmt.where(row_filter_clause(_ratings, row_filter))
        with self.db.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_rating(r) for r in rows]

    def list_report_ratings(self, report_id: int) -> list[Rating]:
        """Ratings of one report joined with the rater's name and role, newest first."""
        stmt = (
            select(_ratings, _rater.c.first_name, _rater.c.last_name, _rater.c.role)
            .select_from(_ratings.join(_rater, _ratings.c.student_id == _rater.c.id))
            .where(_ratings.c.report_id == report_id)
            .order_by(_ratings.c.created_at.desc(), _ratings.c.id.desc())
        )
        with self.db.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_rating(r) for r in rows]


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_report(row) -> LectureReport:
    return LectureReport(
        id=row.id,
        faculty_name=row.faculty_name,
        class_name=row.class_name,
        week_of_reporting=row.week_of_reporting,
        date_of_lecture=row.date_of_lecture,
        course_id=row.course_id,
        lecturer_id=row.lecturer_id,
        actual_students_present=row.actual_students_present,
        total_registered_students=row.total_registered_students,
        venue=row.venue,
        scheduled_lecture_time=row.scheduled_lecture_time,
        topic_taught=row.topic_taught,
        learning_outcomes=row.learning_outcomes,
        recommendations=row.recommendations,
        prl_feedback=row.prl_feedback,
        created_at=row.created_at,
        course_code=row.course_code,
        course_name=row.course_name,
        lecturer_first_name=row.lecturer_first_name,
        lecturer_last_name=row.lecturer_last_name,
    )


def _row_to_rating(row) -> Rating:
    # The two listing queries join different display columns; absent ones stay None.
    extra = row._mapping
    return Rating(
        id=row.id,
        report_id=row.report_id,
        student_id=row.student_id,
        rating=row.rating,
        comment=row.comment,
        created_at=row.created_at,
        class_name=extra.get("class_name"),
        topic_taught=extra.get("topic_taught"),
        date_of_lecture=extra.get("date_of_lecture"),
        course_code=extra.get("course_code"),
        course_name=extra.get("course_name"),
        first_name=extra.get("first_name"),
        last_name=extra.get("last_name"),
        role=extra.get("role"),
    )
