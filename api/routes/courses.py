"""
api/routes/courses.py -- Course endpoints.

Routes:
  GET    /api/courses               -- courses visible to the caller
  GET    /api/courses/{id}
  POST   /api/courses               -- program_leader (becomes program_leader_id)
  POST   /api/courses/{id}/assign   -- program_leader; target must be a lecturer
  PUT    /api/courses/{id}          -- program_leader, or the assigned lecturer
  DELETE /api/courses/{id}          -- program_leader
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from academics.models import Course
from academics.service import CourseService
from api.dependencies import get_course_service
from api.models import AssignRequest, CourseCreate, CourseOut, CourseUpdate, envelope
from auth.dependencies import get_current_user
from auth.models import User

router = APIRouter()


@router.get("/courses")
def list_courses(
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    courses, count = service.list(current_user)
    return envelope([CourseOut.model_validate(c) for c in courses], count=count)


@router.get("/courses/{course_id}")
def get_course(
    course_id: int,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    return envelope(CourseOut.model_validate(service.get(current_user, course_id)))


@router.post("/courses", status_code=201)
def create_course(
    body: CourseCreate,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    course = service.create(current_user, Course(**body.model_dump()))
    return envelope(CourseOut.model_validate(course), message="Course created successfully", status_code=201)


@router.post("/courses/{course_id}/assign")
def assign_lecturer(
    course_id: int,
    body: AssignRequest,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    course = service.assign(current_user, course_id, body.lecturer_id)
    return envelope(CourseOut.model_validate(course), message="Lecturer assigned to course successfully")


@router.put("/courses/{course_id}")
def update_course(
    course_id: int,
    body: CourseUpdate,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    course = service.update(current_user, course_id, **body.model_dump(exclude_unset=True, exclude_none=True))
    return envelope(CourseOut.model_validate(course), message="Course updated successfully")


@router.delete("/courses/{course_id}")
def delete_course(
    course_id: int,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    service.delete(current_user, course_id)
    return envelope(message="Course deleted successfully")
