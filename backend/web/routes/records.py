"""
Records API routes: courses, rosters, assignments and grades.

Why:
    Thin HTTP adapter over `RecordsService`. Handlers translate JSON payloads
    into service calls and entities back into JSON; authorization and
    invariants live in the core, so no handler checks roles itself.

Notes:
    - Errors raised by the core are mapped centrally (see `main.py`).
    - Check order per request: session (middleware, 401), then body shape
      (pydantic, 422), then policy and invariants (service, 403/400/404). A
      signed-in caller without the role therefore gets 422 for a malformed
      body; the role check only runs on well-formed requests.
    - Payload ids use the client contract's names (`professorID`, `courseID`,
      `assignmentID`, `studentID`, `userID`).
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from .security import private_json, records_service, request_token

try:
    from ..serializers import serialize_assignment, serialize_course, serialize_grade, serialize_roster
except ImportError:
    from serializers import serialize_assignment, serialize_course, serialize_grade, serialize_roster  # type: ignore


records_router = APIRouter(tags=["Records"])  # explicit paths below
logger = logging.getLogger("registrar.web.records")


class _ContractModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CourseCreate(_ContractModel):
    name: str
    professor_id: int = Field(..., alias="professorID")


class CourseUpdate(_ContractModel):
    name: Optional[str] = None
    professor_id: Optional[int] = Field(default=None, alias="professorID")


class EnrollmentRequest(_ContractModel):
    user_id: int = Field(..., alias="userID")


class AssignmentCreate(_ContractModel):
    name: str
    course_id: int = Field(..., alias="courseID")


class GradeCreate(_ContractModel):
    assignment_id: int = Field(..., alias="assignmentID")
    course_id: Optional[int] = Field(default=None, alias="courseID")
    student_id: int = Field(..., alias="studentID")
    grade: str


@records_router.post("/api/courses")
async def create_course(request: Request, payload: CourseCreate):
    """Create a course taught by a Faculty member.

    Behavior:
        - 201 with `{id, name, professorID}`
        - 400 when `professorID` is not a Faculty user

    Permissions:
        Caller must have role `Admin`.
    """
    course = records_service(request).create_course(
        request_token(request), name=payload.name, professor_id=payload.professor_id
    )
    return private_json(serialize_course(course), status_code=201)


@records_router.patch("/api/courses/{course_id}")
async def update_course(request: Request, course_id: int, payload: CourseUpdate):
    """Rename a course and/or change its professor.

    Permissions:
        Caller must have role `Admin`.
    """
    course = records_service(request).update_course(
        request_token(request), course_id, name=payload.name, professor_id=payload.professor_id
    )
    return private_json(serialize_course(course))


@records_router.delete("/api/courses/{course_id}")
async def delete_course(request: Request, course_id: int):
    """Delete a course with its roster, assignments and grades.

    Permissions:
        Caller must have role `Admin`.
    """
    deleted = records_service(request).delete_course(request_token(request), course_id)
    return private_json({"id": deleted})


@records_router.post("/api/courses/{course_id}/students")
async def add_student_to_course(request: Request, course_id: int, payload: EnrollmentRequest):
    """Enroll a Student in a course (idempotent).

    Behavior:
        - 200 with the course and its `students`
        - 403 `Only Students can be enrolled in Courses` for non-Student targets

    Permissions:
        Caller must have role `Admin`; target must have role `Student`.
    """
    roster = records_service(request).add_student_to_course(
        request_token(request), user_id=payload.user_id, course_id=course_id
    )
    return private_json(serialize_roster(roster))


@records_router.delete("/api/courses/{course_id}/students/{user_id}")
async def remove_student_from_course(request: Request, course_id: int, user_id: int):
    """Remove a Student from a course roster.

    Permissions:
        Caller must have role `Admin`; target must have role `Student`.
    """
    roster = records_service(request).remove_student_from_course(
        request_token(request), user_id=user_id, course_id=course_id
    )
    return private_json(serialize_roster(roster))


@records_router.post("/api/assignments")
async def create_assignment(request: Request, payload: AssignmentCreate):
    """Create an assignment in an existing course.

    Permissions:
        Caller must have role `Faculty`.
    """
    assignment = records_service(request).create_assignment(
        request_token(request), name=payload.name, course_id=payload.course_id
    )
    return private_json(serialize_assignment(assignment), status_code=201)


@records_router.post("/api/grades")
async def create_assignment_grade(request: Request, payload: GradeCreate):
    """Record a letter grade for an enrolled student.

    Behavior:
        - 201 with `{id, assignmentID, studentID, grade}`
        - 404 when the assignment or course does not exist
        - 400 when the student is not enrolled or the letter is unknown

    Permissions:
        Caller must have role `Faculty`.
    """
    grade = records_service(request).create_assignment_grade(
        request_token(request),
        assignment_id=payload.assignment_id,
        course_id=payload.course_id,
        student_id=payload.student_id,
        grade=payload.grade,
    )
    return private_json(serialize_grade(grade), status_code=201)
