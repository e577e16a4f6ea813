"""
api/routes/auth.py -- Registration, login, and current-user endpoints.

Routes:
  POST /api/auth/register  -- create an account; returns token + user (201)
  POST /api/auth/login     -- email/password login; returns token + user
  GET  /api/auth/me        -- the authenticated user, freshly read from the store

Security:
  register and login are rate-limited per client IP (Settings.login_rate_limit).
  authenticate() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import AUTH_RATE_LIMIT, limiter
from api.models import AuthOut, LoginRequest, RegisterRequest, UserOut, envelope
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate, register

router = APIRouter()


@limiter.limit(AUTH_RATE_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", status_code=201)
def register_account(request: Request, body: RegisterRequest) -> JSONResponse:
    """Self-registration. Any of the four roles may be chosen."""
    user_store: UserStore = request.app.state.user_store
    profile = User(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
        faculty=body.faculty or "",
    )
    token, user = register(user_store, profile, body.password)
    resp = envelope(
        AuthOut(token=token, user=UserOut.model_validate(user)),
        message="User registered successfully",
        status_code=201,
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(AUTH_RATE_LIMIT)
@router.post("/auth/login")
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email, wrong password and a deactivated account all produce the
    same 401 invalid_credentials.
    """
    user_store: UserStore = request.app.state.user_store
    token, user = authenticate(user_store, body.email, body.password)
    resp = envelope(
        AuthOut(token=token, user=UserOut.model_validate(user)),
        message="Login successful",
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me")
def me(current_user: User = Depends(get_current_user)) -> JSONResponse:
    return envelope(UserOut.model_validate(current_user))
