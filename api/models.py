"""
API request and response models for the reporting REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py,
academics/models.py and reports/models.py, which own the internal domain
representation. Route handlers map between the two.

Every response body is an Envelope:
    {success, message?, data?, count?, errors?: [{reason, message, field?}]}
Absent keys are omitted rather than sent as null; null inside data is kept
(a course without a lecturer has "lecturer_id": null).
"""

from datetime import date, time
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.policy import Role

# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """One machine-readable problem. field is set for input validation errors."""

    model_config = ConfigDict(frozen=True)

    reason: str
    message: str
    field: Optional[str] = None


class Envelope(BaseModel):
    """Top-level response body for every endpoint except /api/health."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    count: Optional[int] = None
    errors: Optional[list[ErrorDetail]] = None


def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    count: Optional[int] = None,
    status_code: int = 200,
) -> JSONResponse:
    """Build a success response.

    Built by hand rather than via Envelope.model_dump(exclude_none=True)
    because exclude_none would also strip null fields inside data.
    """
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if count is not None:
        body["count"] = count
    return JSONResponse(status_code=status_code, content=body)


def error_envelope(status_code: int, message: str, errors: list[ErrorDetail]) -> JSONResponse:
    body = {
        "success": False,
        "message": message,
        "errors": [e.model_dump(exclude_none=True) for e in errors],
    }
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    password max_length=72 keeps inputs inside bcrypt's 72-byte window for
    ASCII passwords.
    """

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: Role
    faculty: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(min_length=1, max_length=72)


class UserOut(BaseModel):
    """Public view of a User. There is deliberately no password field."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    faculty: str
    active: bool
    created_at: Optional[str] = None


class AuthOut(BaseModel):
    """data payload of register and login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    user: UserOut


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(RegisterRequest):
    """Request body for POST /api/users. Role restrictions are applied by UserService."""


class UserUpdate(BaseModel):
    """Request body for PUT /api/users/{id}. Only fields present are written."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[Role] = None
    faculty: Optional[str] = Field(default=None, min_length=1, max_length=100)
    active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Classes and courses
# ---------------------------------------------------------------------------


class ClassCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    class_name: str = Field(min_length=1, max_length=100)
    faculty: str = Field(min_length=1, max_length=100)
    total_registered_students: int = Field(ge=1)
    description: Optional[str] = Field(default=None, max_length=1000)


class ClassUpdate(BaseModel):
    """Request body for PUT /api/classes/{id}.

    lecturer_id is not a field here: it is only settable through
    POST /api/classes/{id}/assign. Unknown keys are ignored.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    class_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    faculty: Optional[str] = Field(default=None, min_length=1, max_length=100)
    total_registered_students: Optional[int] = Field(default=None, ge=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    active: Optional[bool] = None


class ClassOut(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    class_name: str
    faculty: str
    total_registered_students: int
    description: Optional[str]
    lecturer_id: Optional[int]
    active: bool
    created_at: str
    lecturer_first_name: Optional[str]
    lecturer_last_name: Optional[str]
    lecturer_name: Optional[str]


class CourseCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    course_code: str = Field(min_length=1, max_length=20)
    course_name: str = Field(min_length=1, max_length=200)
    faculty: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class CourseUpdate(BaseModel):
    """Request body for PUT /api/courses/{id}. lecturer_id is not updatable here."""

    model_config = ConfigDict(str_strip_whitespace=True)

    course_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    course_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    faculty: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    active: Optional[bool] = None


class CourseOut(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    course_code: str
    course_name: str
    faculty: str
    description: Optional[str]
    lecturer_id: Optional[int]
    program_leader_id: Optional[int]
    active: bool
    created_at: str
    lecturer_first_name: Optional[str]
    lecturer_last_name: Optional[str]
    lecturer_name: Optional[str]


class AssignRequest(BaseModel):
    """Request body for POST /api/classes/{id}/assign and /api/courses/{id}/assign."""

    lecturer_id: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Reports and ratings
# ---------------------------------------------------------------------------


class ReportCreate(BaseModel):
    """Request body for POST /api/reports.

    lecturer_id is not accepted: the server sets it to the caller. faculty_name
    falls back to Settings.default_faculty when omitted.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    faculty_name: Optional[str] = Field(default=None, max_length=100)
    class_name: str = Field(min_length=1, max_length=100)
    week_of_reporting: str = Field(min_length=1, max_length=50)
    date_of_lecture: date
    course_id: Optional[int] = Field(default=None, ge=1)
    actual_students_present: int = Field(ge=0)
    total_registered_students: int = Field(ge=1)
    venue: str = Field(min_length=1, max_length=100)
    scheduled_lecture_time: time = time(9, 0)
    topic_taught: str = Field(min_length=1)
    learning_outcomes: str = Field(min_length=1)
    recommendations: str = ""

    @field_validator("week_of_reporting", mode="before")
    @classmethod
    def coerce_week(cls, value: Any) -> Any:
        """Accept a bare week number (7) as well as a label ("Week 7")."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ReportOut(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    faculty_name: str
    class_name: str
    week_of_reporting: str
    date_of_lecture: str
    course_id: Optional[int]
    lecturer_id: int
    actual_students_present: int
    total_registered_students: int
    venue: str
    scheduled_lecture_time: str
    topic_taught: str
    learning_outcomes: str
    recommendations: str
    prl_feedback: Optional[str]
    created_at: str
    course_code: Optional[str]
    course_name: Optional[str]
    lecturer_first_name: Optional[str]
    lecturer_last_name: Optional[str]


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    prl_feedback: str = Field(min_length=1, max_length=5000)


class RatingCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class RatingOut(BaseModel):
    """A rating plus whichever display fields the listing joined in."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    report_id: int
    student_id: int
    rating: int
    comment: str
    created_at: str
    class_name: Optional[str] = None
    topic_taught: Optional[str] = None
    date_of_lecture: Optional[str] = None
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str]
