"""
academics/models.py -- Domain dataclasses for classes and courses.

Pure data containers with zero logic. academics/store.py maps rows into them,
academics/service.py applies the access policy around them.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Class:
    """A cohort of students taught together, e.g. "BSCSM Y2".

    lecturer_id is only ever set through ClassService.assign(); general updates
    cannot touch it. The lecturer_* fields are display data joined from users
    and are None while no lecturer is assigned.

    id is None before the record is written to the database.
    """

    class_name: str
    faculty: str
    total_registered_students: int
    description: Optional[str] = None
    lecturer_id: Optional[int] = None
    active: bool = True
    created_at: str = ""  # ISO 8601, set by store on insert
    id: Optional[int] = None
    lecturer_first_name: Optional[str] = None
    lecturer_last_name: Optional[str] = None

    @property
    def lecturer_name(self) -> Optional[str]:
        if self.lecturer_first_name is None:
            return None
        return f"{self.lecturer_first_name} {self.lecturer_last_name}"


@dataclass
class Course:
    """A taught module, e.g. "CS101 Introduction to Programming".

    program_leader_id records who created the course. Like Class, the lecturer
    is assigned separately and the lecturer_* fields are joined display data.

    id is None before the record is written to the database.
    """

    course_code: str
    course_name: str
    faculty: str
    program_leader_id: Optional[int] = None
    description: Optional[str] = None
    lecturer_id: Optional[int] = None
    active: bool = True
    created_at: str = ""
    id: Optional[int] = None
    lecturer_first_name: Optional[str] = None
    lecturer_last_name: Optional[str] = None

    @property
    def lecturer_name(self) -> Optional[str]:
        if self.lecturer_first_name is None:
            return None
        return f"{self.lecturer_first_name} {self.lecturer_last_name}"
