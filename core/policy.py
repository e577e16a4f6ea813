"""
core/policy.py -- The single access-policy decision point.

Every resource service calls enforce() before it reads or writes. No route
handler or store compares role strings itself.

decide() is a pure function of
    (actor role, actor faculty, actor id, resource, action, target fields)
and returns one of:
    Allow()                     -- proceed unrestricted
    AllowWithFilter(RowFilter)  -- proceed, but only over rows matching the filter
    Deny(error)                 -- refuse with a typed AuthzError

RowFilter is a disjunction of conjunctions over column names:

    RowFilter(any_of=({"role": "student"}, {"role": "lecturer", "faculty": "ICT"}))

means  role = 'student' OR (role = 'lecturer' AND faculty = 'ICT').
A tuple value means IN. Stores compile the filter into the WHERE clause of
the query they are building (core/database.row_filter_clause), so hidden rows
never leave the database.

Layer rule: core/ is the kernel. The actor is duck-typed (anything with id,
role and faculty) so this module does not import auth/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, Union

from core.errors import AuthzError, CannotDeleteSelf, Forbidden, ForbiddenFaculty

logger = logging.getLogger("luct.policy")


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------


class Role(str, Enum):
    student = "student"
    lecturer = "lecturer"
    principal_lecturer = "principal_lecturer"
    program_leader = "program_leader"


class Resource(str, Enum):
    user = "user"
    klass = "class"
    course = "course"
    report = "report"
    rating = "rating"


class Action(str, Enum):
    list = "list"
    list_mine = "list_mine"
    get = "get"
    create = "create"
    update = "update"
    delete = "delete"
    assign = "assign"
    feedback = "feedback"


class Actor(Protocol):
    id: Optional[int]
    role: str
    faculty: Optional[str]


@dataclass(frozen=True)
class Target:
    """The fields of the row an action is aimed at, when the rule needs them."""

    id: Optional[int] = None
    owner_id: Optional[int] = None
    faculty: Optional[str] = None


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RowFilter:
    any_of: tuple[Mapping[str, Any], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class AllowWithFilter:
    row_filter: RowFilter


@dataclass(frozen=True)
class Deny:
    error: AuthzError


Decision = Union[Allow, AllowWithFilter, Deny]

_ADMIN = (Role.program_leader.value,)
_USER_READERS = (Role.program_leader.value, Role.principal_lecturer.value, Role.lecturer.value)


def _only(**conditions: Any) -> AllowWithFilter:
    return AllowWithFilter(RowFilter(any_of=(conditions,)))


def _forbidden(resource: Resource, action: Action, roles: tuple[str, ...]) -> Deny:
    return Deny(Forbidden(f"{action.value} {resource.value}", roles))


# ---------------------------------------------------------------------------
# Per-resource rules
# ---------------------------------------------------------------------------


def _user_rules(actor: Actor, action: Action, target: Optional[Target]) -> Decision:
    if actor.role == Role.program_leader:
        if action is Action.delete and target is not None and target.id == actor.id:
            return Deny(CannotDeleteSelf())
        if action in (Action.list, Action.get, Action.create, Action.update, Action.delete):
            return Allow()
    elif action in (Action.list, Action.get):
        if actor.role == Role.principal_lecturer:
            return AllowWithFilter(
                RowFilter(
                    any_of=(
                        {"role": Role.student.value},
                        {"role": Role.lecturer.value, "faculty": actor.faculty},
                    )
                )
            )
        if actor.role == Role.lecturer:
            return _only(role=Role.student.value, faculty=actor.faculty)
        return _forbidden(Resource.user, action, _USER_READERS)
    return _forbidden(Resource.user, action, _ADMIN)


def _class_rules(actor: Actor, action: Action, target: Optional[Target]) -> Decision:
    if action is Action.list_mine:
        return _only(lecturer_id=actor.id)
    if actor.role == Role.program_leader:
        return Allow()
    if action in (Action.list, Action.get):
        if actor.role == Role.principal_lecturer:
            return _only(faculty=actor.faculty)
        if actor.role == Role.lecturer:
            return _only(lecturer_id=actor.id)
        return Allow()
    if action is Action.update and actor.role == Role.lecturer:
        return _only(lecturer_id=actor.id)
    return _forbidden(Resource.klass, action, _ADMIN)


def _course_rules(actor: Actor, action: Action, target: Optional[Target]) -> Decision:
    if actor.role == Role.program_leader:
        return Allow()
    if action in (Action.list, Action.get):
        if actor.role == Role.lecturer:
            return _only(lecturer_id=actor.id, active=True)
        return _only(active=True)
    if action is Action.update and actor.role == Role.lecturer:
        return _only(lecturer_id=actor.id)
    return _forbidden(Resource.course, action, _ADMIN)


def _report_rules(actor: Actor, action: Action, target: Optional[Target]) -> Decision:
    if action in (Action.list, Action.get):
        return Allow()
    if action is Action.create:
        if actor.role == Role.lecturer:
            return Allow()
        return _forbidden(Resource.report, action, (Role.lecturer.value,))
    if action is Action.feedback:
        if actor.role != Role.principal_lecturer:
            return _forbidden(Resource.report, action, (Role.principal_lecturer.value,))
        if target is not None and target.faculty != actor.faculty:
            return Deny(
                ForbiddenFaculty(
                    f"You can only provide feedback for reports in your faculty ({actor.faculty}). "
                    f"This report is from {target.faculty}."
                )
            )
        return Allow()
    return _forbidden(Resource.report, action, ())


def _rating_rules(actor: Actor, action: Action, target: Optional[Target]) -> Decision:
    if action is Action.create:
        if actor.role == Role.student:
            return Allow()
        return _forbidden(Resource.rating, action, (Role.student.value,))
    if action is Action.list_mine:
        if actor.role == Role.student:
            return _only(student_id=actor.id)
        return _forbidden(Resource.rating, action, (Role.student.value,))
    if action is Action.list:
        if actor.role in (Role.program_leader, Role.principal_lecturer):
            return Allow()
        if actor.role == Role.lecturer and target is not None and target.owner_id == actor.id:
            return Allow()
        return _forbidden(
            Resource.rating,
            action,
            (Role.program_leader.value, Role.principal_lecturer.value, "owning lecturer"),
        )
    return _forbidden(Resource.rating, action, ())


_RULES: dict[Resource, Callable[[Actor, Action, Optional[Target]], Decision]] = {
    Resource.user: _user_rules,
    Resource.klass: _class_rules,
    Resource.course: _course_rules,
    Resource.report: _report_rules,
    Resource.rating: _rating_rules,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decide(
    actor: Actor,
    resource: Resource | str,
    action: Action | str,
    target: Optional[Target] = None,
) -> Decision:
    """Return the policy decision for actor performing action on resource.

    Unknown roles fall through every rule and are denied.
    """
    resource = Resource(resource)
    action = Action(action)
    return _RULES[resource](actor, action, target)


def enforce(
    actor: Actor,
    resource: Resource | str,
    action: Action | str,
    target: Optional[Target] = None,
) -> Optional[RowFilter]:
    """Raise the Deny error, or return the row filter (None when unrestricted)."""
    decision = decide(actor, resource, action, target)
    if isinstance(decision, Deny):
        logger.warning(
            "Denied %s %s for user %s (%s): %s",
            Action(action).value,
            Resource(resource).value,
            actor.id,
            actor.role,
            decision.error.reason,
        )
        raise decision.error
    if isinstance(decision, AllowWithFilter):
        return decision.row_filter
    return None
