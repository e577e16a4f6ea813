"""
api/routes/classes.py -- Class endpoints.

Routes:
  GET    /api/classes               -- classes visible to the caller
  GET    /api/classes/my-classes    -- classes the caller teaches
  GET    /api/classes/{id}
  POST   /api/classes               -- program_leader
  POST   /api/classes/{id}/assign   -- program_leader; target must be a lecturer
  PUT    /api/classes/{id}          -- program_leader, or the assigned lecturer
  DELETE /api/classes/{id}          -- program_leader

/my-classes is registered before /{class_id} so the literal path wins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from academics.models import Class
from academics.service import ClassService
from api.dependencies import get_class_service
from api.models import AssignRequest, ClassCreate, ClassOut, ClassUpdate, envelope
from auth.dependencies import get_current_user
from auth.models import User

router = APIRouter()


@router.get("/classes")
def list_classes(
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    classes, count = service.list(current_user)
    return envelope([ClassOut.model_validate(c) for c in classes], count=count)


@router.get("/classes/my-classes")
def my_classes(
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    classes, count = service.list_mine(current_user)
    return envelope([ClassOut.model_validate(c) for c in classes], count=count)


@router.get("/classes/{class_id}")
def get_class(
    class_id: int,
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    return envelope(ClassOut.model_validate(service.get(current_user, class_id)))


@router.post("/classes", status_code=201)
def create_class(
    body: ClassCreate,
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    klass = service.create(current_user, Class(**body.model_dump()))
    return envelope(ClassOut.model_validate(klass), message="Class created successfully", status_code=201)


@router.post("/classes/{class_id}/assign")
def assign_lecturer(
    class_id: int,
    body: AssignRequest,
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    klass = service.assign(current_user, class_id, body.lecturer_id)
    return envelope(ClassOut.model_validate(klass), message="Lecturer assigned to class successfully")


@router.put("/classes/{class_id}")
def update_class(
    class_id: int,
    body: ClassUpdate,
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    klass = service.update(current_user, class_id, **body.model_dump(exclude_unset=True, exclude_none=True))
    return envelope(ClassOut.model_validate(klass), message="Class updated successfully")


@router.delete("/classes/{class_id}")
def delete_class(
    class_id: int,
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
) -> JSONResponse:
    service.delete(current_user, class_id)
    return envelope(message="Class deleted successfully")
