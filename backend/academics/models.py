"""Entities of the academic records domain."""
from __future__ import annotations

from dataclasses import dataclass, field

from identity_access.domain import Role


@dataclass
class User:
    id: int
    name: str
    email: str
    role: Role
    # Opaque password hash; never serialized.
    credential: str = field(default="", repr=False)


@dataclass
class Course:
    id: int
    name: str
    professor_id: int


@dataclass
class Assignment:
    id: int
    course_id: int
    name: str


@dataclass
class Grade:
    id: int
    assignment_id: int
    student_id: int
    grade: str
