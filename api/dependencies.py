"""
api/dependencies.py -- FastAPI Depends() providers for the resource services.

Stores live on app.state (created once in the lifespan). Services are cheap
stateless wrappers, so one is built per request from those stores. Route
handlers declare what they need:

    def list_classes(service: ClassService = Depends(get_class_service), ...)
"""

from __future__ import annotations

from fastapi import Request

from academics.service import ClassService, CourseService
from auth.service import UserService
from reports.service import RatingService, ReportService


def get_user_service(request: Request) -> UserService:
    return UserService(request.app.state.user_store)


def get_class_service(request: Request) -> ClassService:
    state = request.app.state
    return ClassService(state.academic_store, state.user_store)


def get_course_service(request: Request) -> CourseService:
    state = request.app.state
    return CourseService(state.academic_store, state.user_store)


def get_report_service(request: Request) -> ReportService:
    state = request.app.state
    return ReportService(state.report_store, state.academic_store)


def get_rating_service(request: Request) -> RatingService:
    return RatingService(request.app.state.report_store)
