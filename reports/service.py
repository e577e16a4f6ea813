"""
reports/service.py -- ReportService and RatingService.

ReportService
  list / get        every authenticated role
  create            lecturers only; lecturer_id is the actor, course_id must exist
  attach_feedback   principal lecturers of the report's faculty; the only
                    mutation a report ever sees

RatingService
  rate              students only; report must exist; one per student per report
  list_mine         the acting student's own ratings
  list_for_report   program leaders, principal lecturers, or the lecturer who
                    wrote the report

Checks run in a fixed order: role first (policy without target), then
existence (NotFoundError), then target-dependent policy (faculty, ownership).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from academics.store import AcademicStore
from auth.models import User
from core.errors import NotFoundError, ValidationError
from core.policy import Action, Resource, Target, enforce
from reports.models import LectureReport, Rating
from reports.store import ReportStore

logger = logging.getLogger("luct.reports")


class ReportService:
    def __init__(self, store: ReportStore, academics: AcademicStore) -> None:
        self.store = store
        self.academics = academics

    def list(self, actor: User) -> tuple[list[LectureReport], int]:
        row_filter = enforce(actor, Resource.report, Action.list)
        reports = self.store.list_reports(row_filter)
        return reports, len(reports)

    def get(self, actor: User, report_id: int) -> LectureReport:
        row_filter = enforce(actor, Resource.report, Action.get)
        report = self.store.get_report(report_id, row_filter)
        if report is None:
            raise NotFoundError("Lecture report not found.")
        return report

    def create(self, actor: User, report: LectureReport) -> LectureReport:
        enforce(actor, Resource.report, Action.create)
        if report.course_id is not None and self.academics.get_course(report.course_id) is None:
            raise NotFoundError("Course not found.")
        report.lecturer_id = actor.id
        report_id = self.store.create_report(report)
        logger.info("Lecturer %s submitted report %s (%s)", actor.id, report_id, report.class_name)
        return self.store.get_report(report_id)

    def attach_feedback(self, actor: User, report_id: int, feedback: str) -> LectureReport:
        enforce(actor, Resource.report, Action.feedback)
        if not feedback or not feedback.strip():
            raise ValidationError(errors=[{"field": "prl_feedback", "message": "Feedback is required"}])
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError("Report not found.")
        enforce(actor, Resource.report, Action.feedback, Target(id=report.id, faculty=report.faculty_name))
        self.store.set_feedback(report_id, feedback)
        logger.info("Principal lecturer %s added feedback to report %s", actor.id, report_id)
        return self.store.get_report(report_id)


class RatingService:
    def __init__(self, store: ReportStore) -> None:
        self.store = store

    def rate(self, actor: User, report_id: int, rating: int, comment: str = "") -> Rating:
        """Store the actor's rating of a report and return the stored row.

        There is no pre-check for an earlier rating: the UNIQUE(report_id,
        student_id) constraint is the only guard, and the store maps its
        violation to DuplicateRating.
        """
        enforce(actor, Resource.rating, Action.create)
        if not 1 <= rating <= 5:
            raise ValidationError(errors=[{"field": "rating", "message": "Rating must be between 1 and 5"}])
        if self.store.get_report(report_id) is None:
            raise NotFoundError("Lecture report not found.")
        record = Rating(report_id=report_id, student_id=actor.id, rating=rating, comment=comment or "")
        rating_id = self.store.create_rating(record)
        logger.info("Student %s rated report %s: %s", actor.id, report_id, rating)
        return self.store.get_rating(rating_id)

    def list_mine(self, actor: User) -> tuple[list[Rating], int]:
        row_filter = enforce(actor, Resource.rating, Action.list_mine)
        ratings = self.store.list_ratings(row_filter)
        return ratings, len(ratings)

    def list_for_report(self, actor: User, report_id: int) -> tuple[list[Rating], int]:
        report = self.store.get_report(report_id)
        if report is None:
            raise NotFoundError("Lecture report not found.")
        enforce(actor, Resource.rating, Action.list, Target(id=report.id, owner_id=report.lecturer_id))
        ratings = self.store.list_report_ratings(report_id)
        return ratings, len(ratings)
