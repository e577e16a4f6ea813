"""Unit tests for reports/service.py against a real in-memory store.

Covers:
- report creation: lecturer only, lecturer_id forced to the actor, course check
- listing order and course/lecturer joins
- feedback: role, existence, faculty match, blank text
- ratings: student only, report must exist, one per student per report
- my-ratings and per-report ratings visibility
"""

import pytest

from academics.models import Course
from core.errors import (
    DuplicateRating,
    Forbidden,
    ForbiddenFaculty,
    NotFoundError,
    ValidationError,
)
from reports.models import LectureReport
from reports.service import RatingService, ReportService


@pytest.fixture
def reports(stores):
    return ReportService(stores.reports, stores.academics)


@pytest.fixture
def ratings(stores):
    return RatingService(stores.reports)


def _report(faculty="ICT", date="2026-03-02", course_id=None, lecturer_id=None):
    return LectureReport(
        faculty_name=faculty,
        class_name="BSCSM Y2",
        week_of_reporting="Week 6",
        date_of_lecture=date,
        course_id=course_id,
        lecturer_id=lecturer_id,
        actual_students_present=35,
        total_registered_students=40,
        venue="Hall 6",
        topic_taught="Recursion",
        learning_outcomes="Write recursive functions",
    )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def test_lecturer_creates_report_with_own_id(reports, people):
    lecturer = people["lecturer"]
    created = reports.create(lecturer, _report(lecturer_id=people["leader"].id))
    assert created.lecturer_id == lecturer.id
    assert created.lecturer_first_name == lecturer.first_name
    assert created.scheduled_lecture_time == "09:00:00"
    assert created.recommendations == ""
    assert created.prl_feedback is None


@pytest.mark.parametrize("name", ["leader", "prl", "student"])
def test_only_lecturers_create_reports(reports, people, name):
    with pytest.raises(Forbidden):
        reports.create(people[name], _report())


def test_create_with_unknown_course(reports, people):
    with pytest.raises(NotFoundError):
        reports.create(people["lecturer"], _report(course_id=999))


def test_report_joins_course(reports, stores, people):
    course_id = stores.academics.create_course(
        Course(course_code="CS101", course_name="Intro to Programming", faculty="ICT")
    )
    created = reports.create(people["lecturer"], _report(course_id=course_id))
    assert created.course_code == "CS101"
    assert created.course_name == "Intro to Programming"


def test_reports_listed_newest_lecture_first(reports, people):
    for date in ("2026-03-02", "2026-03-16", "2026-03-09"):
        reports.create(people["lecturer"], _report(date=date))
    rows, count = reports.list(people["student"])
    assert count == 3
    assert [r.date_of_lecture for r in rows] == ["2026-03-16", "2026-03-09", "2026-03-02"]


def test_get_missing_report(reports, people):
    with pytest.raises(NotFoundError):
        reports.get(people["student"], 12345)


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


def test_prl_adds_feedback_in_own_faculty(reports, people):
    report = reports.create(people["lecturer"], _report())
    updated = reports.attach_feedback(people["prl"], report.id, "Good pacing.")
    assert updated.prl_feedback == "Good pacing."


def test_prl_feedback_on_other_faculty_is_refused(reports, people):
    report = reports.create(people["biz_lecturer"], _report(faculty="Business"))
    with pytest.raises(ForbiddenFaculty):
        reports.attach_feedback(people["prl"], report.id, "Should not land.")
    assert reports.get(people["prl"], report.id).prl_feedback is None


def test_feedback_requires_principal_lecturer(reports, people):
    report = reports.create(people["lecturer"], _report())
    with pytest.raises(Forbidden):
        reports.attach_feedback(people["lecturer"], report.id, "Self praise.")


def test_feedback_on_missing_report(reports, people):
    with pytest.raises(NotFoundError):
        reports.attach_feedback(people["prl"], 999, "Anyone there?")


def test_blank_feedback_rejected(reports, people):
    report = reports.create(people["lecturer"], _report())
    with pytest.raises(ValidationError):
        reports.attach_feedback(people["prl"], report.id, "   ")


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------


def test_student_rates_once(reports, ratings, stores, people, rating_count):
    report = reports.create(people["lecturer"], _report())
    first = ratings.rate(people["student"], report.id, 5, "Clear")
    assert first.id is not None
    assert first.created_at
    assert first.comment == "Clear"
    assert first.topic_taught == "Recursion"
    with pytest.raises(DuplicateRating):
        ratings.rate(people["student"], report.id, 3)
    assert rating_count(stores.db, report.id, people["student"].id) == 1


def test_two_students_may_rate_same_report(reports, ratings, stores, people, rating_count):
    report = reports.create(people["lecturer"], _report())
    ratings.rate(people["student"], report.id, 4)
    ratings.rate(people["biz_student"], report.id, 2)
    assert rating_count(stores.db, report.id) == 2


def test_rate_missing_report(ratings, people):
    with pytest.raises(NotFoundError):
        ratings.rate(people["student"], 999, 4)


@pytest.mark.parametrize("value", [0, 6])
def test_rating_out_of_range(reports, ratings, people, value):
    report = reports.create(people["lecturer"], _report())
    with pytest.raises(ValidationError):
        ratings.rate(people["student"], report.id, value)


def test_lecturer_cannot_rate(reports, ratings, people):
    report = reports.create(people["lecturer"], _report())
    with pytest.raises(Forbidden):
        ratings.rate(people["lecturer"], report.id, 5)


def test_my_ratings_joins_report_fields(reports, ratings, people):
    report = reports.create(people["lecturer"], _report())
    ratings.rate(people["student"], report.id, 4, "Good")
    ratings.rate(people["biz_student"], report.id, 1)
    rows, count = ratings.list_mine(people["student"])
    assert count == 1
    assert rows[0].rating == 4
    assert rows[0].topic_taught == "Recursion"
    assert rows[0].class_name == "BSCSM Y2"


def test_report_ratings_visibility(reports, ratings, people):
    report = reports.create(people["lecturer"], _report())
    ratings.rate(people["student"], report.id, 5)

    rows, count = ratings.list_for_report(people["lecturer"], report.id)
    assert count == 1
    assert rows[0].first_name == people["student"].first_name
    assert rows[0].role == "student"

    assert ratings.list_for_report(people["prl"], report.id)[1] == 1
    assert ratings.list_for_report(people["leader"], report.id)[1] == 1
    with pytest.raises(Forbidden):
        ratings.list_for_report(people["biz_lecturer"], report.id)
    with pytest.raises(Forbidden):
        ratings.list_for_report(people["student"], report.id)
