"""Unit tests for academics/service.py against a real in-memory store.

Covers:
- class and course visibility per role (row filters reach SQL)
- lecturer joins: names present after assign, None before
- assign(): missing target, missing lecturer, non-lecturer user
- update(): own-row restriction for lecturers, lecturer_id untouched
- create/delete restricted to program_leader
"""

import pytest

from academics.models import Class, Course
from academics.service import ClassService, CourseService
from core.errors import Forbidden, InvalidRoleError, NotFoundError


@pytest.fixture
def classes(stores):
    return ClassService(stores.academics, stores.users)


@pytest.fixture
def courses(stores):
    return CourseService(stores.academics, stores.users)


def _class(name, faculty="ICT"):
    return Class(class_name=name, faculty=faculty, total_registered_students=40)


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------


def test_create_class_has_no_lecturer(classes, people):
    klass = classes.create(people["leader"], _class("BSCSM Y2"))
    assert klass.id is not None
    assert klass.lecturer_id is None
    assert klass.lecturer_name is None


def test_non_leader_cannot_create_class(classes, people):
    with pytest.raises(Forbidden):
        classes.create(people["prl"], _class("BSCSM Y2"))


def test_class_visibility_per_role(classes, people):
    leader = people["leader"]
    ict = classes.create(leader, _class("A ICT"))
    classes.create(leader, _class("B Business", faculty="Business"))
    classes.assign(leader, ict.id, people["lecturer"].id)

    assert classes.list(leader)[1] == 2
    assert classes.list(people["student"])[1] == 2
    assert [c.class_name for c in classes.list(people["prl"])[0]] == ["A ICT"]
    assert [c.class_name for c in classes.list(people["lecturer"])[0]] == ["A ICT"]
    assert classes.list(people["biz_lecturer"]) == ([], 0)


def test_list_is_ordered_by_class_name(classes, people):
    for name in ("C", "A", "B"):
        classes.create(people["leader"], _class(name))
    assert [c.class_name for c in classes.list(people["leader"])[0]] == ["A", "B", "C"]


def test_my_classes(classes, people):
    leader = people["leader"]
    mine = classes.create(leader, _class("Mine"))
    classes.create(leader, _class("Not mine"))
    classes.assign(leader, mine.id, people["lecturer"].id)
    rows, count = classes.list_mine(people["lecturer"])
    assert count == 1
    assert rows[0].class_name == "Mine"
    assert classes.list_mine(people["student"]) == ([], 0)


def test_assign_joins_lecturer_name(classes, people):
    klass = classes.create(people["leader"], _class("BSCSM Y2"))
    lecturer = people["lecturer"]
    assigned = classes.assign(people["leader"], klass.id, lecturer.id)
    assert assigned.lecturer_id == lecturer.id
    assert assigned.lecturer_first_name == lecturer.first_name
    assert assigned.lecturer_name == f"{lecturer.first_name} {lecturer.last_name}"


def test_assign_missing_class(classes, people):
    with pytest.raises(NotFoundError):
        classes.assign(people["leader"], 999, people["lecturer"].id)


def test_assign_missing_lecturer(classes, people):
    klass = classes.create(people["leader"], _class("BSCSM Y2"))
    with pytest.raises(NotFoundError) as exc_info:
        classes.assign(people["leader"], klass.id, 999)
    assert exc_info.value.reason == "not_found"


def test_assign_non_lecturer_leaves_class_unchanged(classes, people):
    klass = classes.create(people["leader"], _class("BSCSM Y2"))
    with pytest.raises(InvalidRoleError):
        classes.assign(people["leader"], klass.id, people["student"].id)
    assert classes.get(people["leader"], klass.id).lecturer_id is None


def test_lecturer_updates_own_class_only(classes, people):
    leader = people["leader"]
    own = classes.create(leader, _class("Own"))
    other = classes.create(leader, _class("Other"))
    classes.assign(leader, own.id, people["lecturer"].id)

    updated = classes.update(people["lecturer"], own.id, description="Evening group")
    assert updated.description == "Evening group"
    assert updated.lecturer_id == people["lecturer"].id

    with pytest.raises(NotFoundError):
        classes.update(people["lecturer"], other.id, description="Hijacked")
    assert classes.get(leader, other.id).description is None


def test_update_cannot_set_lecturer_id(classes, people):
    klass = classes.create(people["leader"], _class("BSCSM Y2"))
    with pytest.raises(ValueError):
        classes.update(people["leader"], klass.id, lecturer_id=people["lecturer"].id)


def test_hidden_class_is_not_found(classes, people):
    klass = classes.create(people["leader"], _class("Business", faculty="Business"))
    with pytest.raises(NotFoundError):
        classes.get(people["prl"], klass.id)


def test_delete_class(classes, people):
    klass = classes.create(people["leader"], _class("Temp"))
    with pytest.raises(Forbidden):
        classes.delete(people["lecturer"], klass.id)
    classes.delete(people["leader"], klass.id)
    with pytest.raises(NotFoundError):
        classes.delete(people["leader"], klass.id)


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


def _course(code, name="Course", faculty="ICT"):
    return Course(course_code=code, course_name=name, faculty=faculty)


def test_create_course_records_program_leader(courses, people):
    course = courses.create(people["leader"], _course("CS101", "Intro to Programming"))
    assert course.program_leader_id == people["leader"].id
    assert course.lecturer_id is None
    assert course.lecturer_first_name is None


def test_inactive_courses_hidden_from_non_leaders(courses, people):
    leader = people["leader"]
    courses.create(leader, _course("CS101"))
    old = courses.create(leader, _course("CS999"))
    courses.update(leader, old.id, active=False)

    assert [c.course_code for c in courses.list(leader)[0]] == ["CS101", "CS999"]
    assert [c.course_code for c in courses.list(people["student"])[0]] == ["CS101"]
    assert [c.course_code for c in courses.list(people["prl"])[0]] == ["CS101"]
    with pytest.raises(NotFoundError):
        courses.get(people["student"], old.id)


def test_lecturer_sees_only_assigned_active_courses(courses, people):
    leader = people["leader"]
    mine = courses.create(leader, _course("CS101"))
    courses.create(leader, _course("CS102"))
    courses.assign(leader, mine.id, people["lecturer"].id)
    rows, count = courses.list(people["lecturer"])
    assert count == 1
    assert rows[0].course_code == "CS101"


def test_assign_course_to_non_lecturer(courses, people):
    course = courses.create(people["leader"], _course("CS101"))
    with pytest.raises(InvalidRoleError):
        courses.assign(people["leader"], course.id, people["prl"].id)
    assert courses.get(people["leader"], course.id).lecturer_id is None


def test_only_leader_assigns_courses(courses, people):
    course = courses.create(people["leader"], _course("CS101"))
    with pytest.raises(Forbidden):
        courses.assign(people["prl"], course.id, people["lecturer"].id)
