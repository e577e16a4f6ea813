"""
api/routes/users.py -- User management endpoints.

Routes:
  GET    /api/users        -- users visible to the caller (policy row filter)
  GET    /api/users/{id}   -- one visible user
  POST   /api/users        -- create account (program_leader)
  PUT    /api/users/{id}   -- partial update (program_leader)
  DELETE /api/users/{id}   -- delete account (program_leader, never self)

Handlers do no role checks; UserService consults core.policy.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_user_service
from api.models import UserCreate, UserOut, UserUpdate, envelope
from auth.dependencies import get_current_user
from auth.models import User
from auth.service import UserService

router = APIRouter()


@router.get("/users")
def list_users(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    users, count = service.list(current_user)
    return envelope([UserOut.model_validate(u) for u in users], count=count)


@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    return envelope(UserOut.model_validate(service.get(current_user, user_id)))


@router.post("/users", status_code=201)
def create_user(
    body: UserCreate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    profile = User(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
        faculty=body.faculty or "",
    )
    user = service.create(current_user, profile, body.password)
    return envelope(UserOut.model_validate(user), message="User created successfully", status_code=201)


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    body: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    user = service.update(current_user, user_id, **body.model_dump(exclude_unset=True, exclude_none=True))
    return envelope(UserOut.model_validate(user), message="User updated successfully")


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    service.delete(current_user, user_id)
    return envelope(message="User deleted successfully")
