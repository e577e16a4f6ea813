"""
api/routes/reports.py -- Lecture report, feedback, and rating endpoints.

Routes:
  GET  /api/reports                -- all reports (any authenticated role)
  GET  /api/reports/my-ratings     -- the calling student's ratings
  GET  /api/reports/{id}
  POST /api/reports                -- lecturer; lecturer_id is the caller
  POST /api/reports/{id}/rate      -- student; once per report
  PUT  /api/reports/{id}/feedback  -- principal_lecturer of the report's faculty
  GET  /api/reports/{id}/ratings   -- program_leader, principal_lecturer, owning lecturer

/my-ratings is registered before /{report_id} so the literal path wins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_rating_service, get_report_service
from api.models import FeedbackRequest, RatingCreate, RatingOut, ReportCreate, ReportOut, envelope
from auth.dependencies import get_current_user
from auth.models import User
from core.config import get_settings
from reports.models import LectureReport
from reports.service import RatingService, ReportService

router = APIRouter()


@router.get("/reports")
def list_reports(
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    reports, count = service.list(current_user)
    return envelope([ReportOut.model_validate(r) for r in reports], count=count)


@router.get("/reports/my-ratings")
def my_ratings(
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
) -> JSONResponse:
    ratings, count = service.list_mine(current_user)
    return envelope([RatingOut.model_validate(r) for r in ratings], count=count)


@router.get("/reports/{report_id}")
def get_report(
    report_id: int,
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    return envelope(ReportOut.model_validate(service.get(current_user, report_id)))


@router.post("/reports")
def create_report(
    body: ReportCreate,
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    """Submit a lecture report. Responds 200, not 201, for client compatibility."""
    report = LectureReport(
        faculty_name=body.faculty_name or get_settings().default_faculty,
        class_name=body.class_name,
        week_of_reporting=body.week_of_reporting,
        date_of_lecture=body.date_of_lecture.isoformat(),
        course_id=body.course_id,
        actual_students_present=body.actual_students_present,
        total_registered_students=body.total_registered_students,
        venue=body.venue,
        scheduled_lecture_time=body.scheduled_lecture_time.strftime("%H:%M:%S"),
        topic_taught=body.topic_taught,
        learning_outcomes=body.learning_outcomes,
        recommendations=body.recommendations,
    )
    created = service.create(current_user, report)
    return envelope(ReportOut.model_validate(created), message="Report submitted successfully!")


@router.post("/reports/{report_id}/rate")
def rate_report(
    report_id: int,
    body: RatingCreate,
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
) -> JSONResponse:
    rating = service.rate(current_user, report_id, body.rating, body.comment or "")
    return envelope(
        RatingOut.model_validate(rating),
        message=f"Thank you for your {rating.rating}-star rating!",
    )


@router.put("/reports/{report_id}/feedback")
def add_feedback(
    report_id: int,
    body: FeedbackRequest,
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    report = service.attach_feedback(current_user, report_id, body.prl_feedback)
    return envelope(ReportOut.model_validate(report), message="Feedback added successfully")


@router.get("/reports/{report_id}/ratings")
def report_ratings(
    report_id: int,
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
) -> JSONResponse:
    ratings, count = service.list_for_report(current_user, report_id)
    return envelope([RatingOut.model_validate(r) for r in ratings], count=count)
