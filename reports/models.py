"""
reports/models.py -- Domain dataclasses for lecture reports and ratings.

Pure data containers with zero logic. The Optional display fields at the end
of each class are filled by the store's joins and are None on a freshly
constructed instance.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class LectureReport:
    """One lecturer's account of one delivered lecture.

    lecturer_id is always the submitting lecturer, set by ReportService from
    the authenticated actor, never from the request body.

    prl_feedback is the only field that changes after creation, and only a
    principal lecturer of the same faculty can write it.
    """

    class_name: str
    week_of_reporting: str
    date_of_lecture: str  # ISO 8601 date
    actual_students_present: int
    total_registered_students: int
    venue: str
    topic_taught: str
    learning_outcomes: str
    faculty_name: str = "ICT"
    scheduled_lecture_time: str = "09:00:00"
    recommendations: str = ""
    course_id: Optional[int] = None
    lecturer_id: Optional[int] = None
    prl_feedback: Optional[str] = None
    created_at: str = ""
    id: Optional[int] = None
    # joined display fields
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    lecturer_first_name: Optional[str] = None
    lecturer_last_name: Optional[str] = None


@dataclass
class Rating:
    """A student's 1-5 star rating of a lecture report.

    UNIQUE(report_id, student_id): a student rates a report at most once.
    Ratings are append-only; the API never updates or deletes them.
    """

    report_id: int
    student_id: int
    rating: int  # 1..5
    comment: str = ""
    created_at: str = ""
    id: Optional[int] = None
    # joined from the report (my-ratings view)
    class_name: Optional[str] = None
    topic_taught: Optional[str] = None
    date_of_lecture: Optional[str] = None
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    # joined from the rater (per-report view)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
