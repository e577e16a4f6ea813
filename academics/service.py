"""
academics/service.py -- ClassService and CourseService.

Both follow the same shape: enforce() first, hand the returned RowFilter to
the store, turn a missing row into NotFoundError. A row the actor's filter
hides is indistinguishable from a row that does not exist.

Lecturer assignment is its own operation. General update() never writes
lecturer_id, so the only way a class or course gains a lecturer is through
assign(), which checks the target user exists and actually is a lecturer.

Layer rule: no imports from api/ or reports/.
"""

from __future__ import annotations

import logging

from academics.models import Class, Course
from academics.store import AcademicStore
from auth.models import User
from auth.store import UserStore
from core.errors import InvalidRoleError, NotFoundError
from core.policy import Action, Resource, Role, enforce

logger = logging.getLogger("luct.academics")


def _require_lecturer(users: UserStore, lecturer_id: int) -> User:
    lecturer = users.get_by_id(lecturer_id)
    if lecturer is None:
        raise NotFoundError("Lecturer not found.")
    if lecturer.role != Role.lecturer:
        raise InvalidRoleError(f"User {lecturer_id} is not a lecturer.")
    return lecturer


class ClassService:
    def __init__(self, store: AcademicStore, users: UserStore) -> None:
        self.store = store
        self.users = users

    def list(self, actor: User) -> tuple[list[Class], int]:
        row_filter = enforce(actor, Resource.klass, Action.list)
        classes = self.store.list_classes(row_filter)
        return classes, len(classes)

    def list_mine(self, actor: User) -> tuple[list[Class], int]:
        """Classes the actor teaches. Empty for anyone who is not a lecturer."""
        row_filter = enforce(actor, Resource.klass, Action.list_mine)
        classes = self.store.list_classes(row_filter)
        return classes, len(classes)

    def get(self, actor: User, class_id: int) -> Class:
        row_filter = enforce(actor, Resource.klass, Action.get)
        klass = self.store.get_class(class_id, row_filter)
        if klass is None:
            raise NotFoundError("Class not found.")
        return klass

    def create(self, actor: User, klass: Class) -> Class:
        enforce(actor, Resource.klass, Action.create)
        class_id = self.store.create_class(klass)
        logger.info("User %s created class %s (%s)", actor.id, class_id, klass.class_name)
        return self.store.get_class(class_id)

    def update(self, actor: User, class_id: int, **fields) -> Class:
        row_filter = enforce(actor, Resource.klass, Action.update)
        if self.store.get_class(class_id, row_filter) is None:
            raise NotFoundError("Class not found.")
        self.store.update_class(class_id, **fields)
        return self.store.get_class(class_id)

    def delete(self, actor: User, class_id: int) -> None:
        enforce(actor, Resource.klass, Action.delete)
        if not self.store.delete_class(class_id):
            raise NotFoundError("Class not found.")
        logger.info("User %s deleted class %s", actor.id, class_id)

    def assign(self, actor: User, class_id: int, lecturer_id: int) -> Class:
        enforce(actor, Resource.klass, Action.assign)
        if self.store.get_class(class_id) is None:
            raise NotFoundError("Class not found.")
        _require_lecturer(self.users, lecturer_id)
        self.store.set_class_lecturer(class_id, lecturer_id)
        logger.info("Assigned lecturer %s to class %s", lecturer_id, class_id)
        return self.store.get_class(class_id)


class CourseService:
    def __init__(self, store: AcademicStore, users: UserStore) -> None:
        self.store = store
        self.users = users

    def list(self, actor: User) -> tuple[list[Course], int]:
        row_filter = enforce(actor, Resource.course, Action.list)
        courses = self.store.list_courses(row_filter)
        return courses, len(courses)

    def get(self, actor: User, course_id: int) -> Course:
        row_filter = enforce(actor, Resource.course, Action.get)
        course = self.store.get_course(course_id, row_filter)
        if course is None:
            raise NotFoundError("Course not found.")
        return course

    def create(self, actor: User, course: Course) -> Course:
        """Create a course owned by the acting program leader."""
        enforce(actor, Resource.course, Action.create)
        course.program_leader_id = actor.id
        course_id = self.store.create_course(course)
        logger.info("User %s created course %s (%s)", actor.id, course_id, course.course_code)
        return self.store.get_course(course_id)

    def update(self, actor: User, course_id: int, **fields) -> Course:
        row_filter = enforce(actor, Resource.course, Action.update)
        if self.store.get_course(course_id, row_filter) is None:
            raise NotFoundError("Course not found.")
        self.store.update_course(course_id, **fields)
        return self.store.get_course(course_id)

    def delete(self, actor: User, course_id: int) -> None:
        enforce(actor, Resource.course, Action.delete)
        if not self.store.delete_course(course_id):
            raise NotFoundError("Course not found.")
        logger.info("User %s deleted course %s", actor.id, course_id)

    def assign(self, actor: User, course_id: int, lecturer_id: int) -> Course:
        enforce(actor, Resource.course, Action.assign)
        if self.store.get_course(course_id) is None:
            raise NotFoundError("Course not found.")
        _require_lecturer(self.users, lecturer_id)
        self.store.set_course_lecturer(course_id, lecturer_id)
        logger.info("Assigned lecturer %s to course %s", lecturer_id, course_id)
        return self.store.get_course(course_id)
