"""
In-memory registry of users, courses, enrollments, assignments and grades.

Why:
    The registry owns all entity state and re-checks relational invariants on
    every mutation, independent of the policy engine that runs before it. A
    caller that bypasses the policy still cannot create a course taught by a
    Student or grade a student outside the course.

Invariants (hold after every mutation):
    - user emails are unique (case-insensitive) and syntactically valid
    - Course.professor_id resolves to a Faculty user
    - every enrolled id resolves to a Student user
    - Assignment.course_id resolves to an existing course
    - every Grade's student is enrolled in its assignment's course

Concurrency:
    All reads and writes run under one re-entrant lock. Each mutation validates
    everything first and writes last, so a failed call leaves no trace and a
    check cannot be invalidated between check and commit.

Returned entities are copies; mutating them does not touch registry state.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional
import logging
import threading

from identity_access.credentials import is_valid_email, normalize_email
from identity_access.domain import Role
from identity_access.errors import InvalidEnrollmentTarget

from .errors import (
    DUPLICATE_EMAIL,
    INVALID_EMAIL,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from .gpa import normalize_letter
from .models import Assignment, Course, Grade, User

logger = logging.getLogger("registrar.academics")

_UNSET = object()
MAX_NAME_LENGTH = 200


def _normalize_name(value: object, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"Validation error: {field} must be a string")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > MAX_NAME_LENGTH:
        raise ValidationError(f"Validation error: {field} must be 1-{MAX_NAME_LENGTH} characters")
    return trimmed


class InMemoryRegistry:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.users: Dict[int, User] = {}
        self.user_ids_by_email: Dict[str, int] = {}
        self.courses: Dict[int, Course] = {}
        # members[course_id] = [student_id, ...] in enrollment order, no duplicates
        self.members: Dict[int, List[int]] = {}
        self.assignments: Dict[int, Assignment] = {}
        self.grades: Dict[int, Grade] = {}
        self._next_ids: Dict[str, int] = {}

    def _next_id(self, kind: str) -> int:
        value = self._next_ids.get(kind, 0) + 1
        self._next_ids[kind] = value
        return value

    # --- Users ---------------------------------------------------------------
    def create_user(self, *, name: str, email: str, role: Role | str, credential: str) -> User:
        clean_name = _normalize_name(name, "name")
        if not is_valid_email(email):
            raise ValidationError(INVALID_EMAIL)
        try:
            parsed_role = Role.parse(role)
        except ValueError:
            raise ValidationError("Validation error: role must be one of Admin, Faculty, Student") from None
        key = normalize_email(email)
        with self._lock:
            if key in self.user_ids_by_email:
                raise ValidationError(DUPLICATE_EMAIL)
            user = User(id=self._next_id("user"), name=clean_name, email=email.strip(), role=parsed_role, credential=credential)
            self.users[user.id] = user
            self.user_ids_by_email[key] = user.id
        logger.info("User created id=%s role=%s", user.id, user.role.value)
        return replace(user)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            user = self.users.get(user_id)
            return replace(user) if user else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        if not isinstance(email, str):
            return None
        with self._lock:
            uid = self.user_ids_by_email.get(normalize_email(email))
            return replace(self.users[uid]) if uid is not None else None

    def list_users(self, role: Optional[Role] = None) -> List[User]:
        with self._lock:
            return [replace(u) for u in self.users.values() if role is None or u.role is role]

    def _require_faculty(self, professor_id: int) -> None:
        professor = self.users.get(professor_id)
        if professor is None or professor.role is not Role.FACULTY:
            raise InvalidReferenceError("professorID must reference a Faculty user")

    def _require_course(self, course_id: int) -> Course:
        course = self.courses.get(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    # --- Courses -------------------------------------------------------------
    def create_course(self, *, name: str, professor_id: int) -> Course:
        clean_name = _normalize_name(name, "name")
        with self._lock:
            self._require_faculty(professor_id)
            course = Course(id=self._next_id("course"), name=clean_name, professor_id=professor_id)
            self.courses[course.id] = course
            self.members[course.id] = []
        logger.info("Course created id=%s professor_id=%s", course.id, professor_id)
        return replace(course)

    def get_course(self, course_id: int) -> Optional[Course]:
        with self._lock:
            course = self.courses.get(course_id)
            return replace(course) if course else None

    def list_courses(self, *, professor_id: Optional[int] = None, student_id: Optional[int] = None) -> List[Course]:
        with self._lock:
            items = list(self.courses.values())
            if professor_id is not None:
                items = [c for c in items if c.professor_id == professor_id]
            if student_id is not None:
                items = [c for c in items if student_id in self.members.get(c.id, [])]
            return [replace(c) for c in items]

    def update_course(self, course_id: int, *, name=_UNSET, professor_id=_UNSET) -> Course:
        clean_name = _normalize_name(name, "name") if name is not _UNSET else _UNSET
        with self._lock:
            course = self._require_course(course_id)
            if professor_id is not _UNSET:
                self._require_faculty(professor_id)
            # All checks passed; commit.
            if clean_name is not _UNSET:
                course.name = clean_name
            if professor_id is not _UNSET:
                course.professor_id = professor_id
        logger.info("Course updated id=%s", course_id)
        return replace(course)

    def delete_course(self, course_id: int) -> int:
        """Delete a course with its roster, assignments and their grades."""
        with self._lock:
            self._require_course(course_id)
            assignment_ids = {a.id for a in self.assignments.values() if a.course_id == course_id}
            for gid in [g.id for g in self.grades.values() if g.assignment_id in assignment_ids]:
                del self.grades[gid]
            for aid in assignment_ids:
                del self.assignments[aid]
            self.members.pop(course_id, None)
            del self.courses[course_id]
        logger.info("Course deleted id=%s (assignments=%s)", course_id, len(assignment_ids))
        return course_id

    # --- Enrollment ----------------------------------------------------------
    def _require_student(self, user_id: int) -> None:
        user = self.users.get(user_id)
        if user is None or user.role is not Role.STUDENT:
            raise InvalidEnrollmentTarget()

    def add_student(self, course_id: int, student_id: int) -> List[int]:
        """Enroll a student (idempotent). Returns the course roster ids."""
        with self._lock:
            self._require_course(course_id)
            self._require_student(student_id)
            roster = self.members.setdefault(course_id, [])
            if student_id not in roster:
                roster.append(student_id)
                logger.info("Student %s enrolled in course %s", student_id, course_id)
            return list(roster)

    def remove_student(self, course_id: int, student_id: int) -> List[int]:
        """Remove a student from the roster (no-op when not enrolled).

        The student's grades for the course's assignments go with the
        enrollment, so no grade outlives the roster entry it depends on.
        """
        with self._lock:
            self._require_course(course_id)
            self._require_student(student_id)
            roster = self.members.setdefault(course_id, [])
            if student_id in roster:
                assignment_ids = {a.id for a in self.assignments.values() if a.course_id == course_id}
                for gid in [
                    g.id for g in self.grades.values()
                    if g.student_id == student_id and g.assignment_id in assignment_ids
                ]:
                    del self.grades[gid]
                roster.remove(student_id)
                logger.info("Student %s removed from course %s", student_id, course_id)
            return list(roster)

    def list_students(self, course_id: int) -> List[User]:
        with self._lock:
            return [replace(self.users[uid]) for uid in self.members.get(course_id, []) if uid in self.users]

    def is_enrolled(self, course_id: int, student_id: int) -> bool:
        with self._lock:
            return student_id in self.members.get(course_id, [])

    # --- Assignments & grades ------------------------------------------------
    def create_assignment(self, *, course_id: int, name: str) -> Assignment:
        clean_name = _normalize_name(name, "name")
        with self._lock:
            self._require_course(course_id)
            assignment = Assignment(id=self._next_id("assignment"), course_id=course_id, name=clean_name)
            self.assignments[assignment.id] = assignment
        logger.info("Assignment created id=%s course_id=%s", assignment.id, course_id)
        return replace(assignment)

    def list_assignments(self, course_id: Optional[int] = None) -> List[Assignment]:
        with self._lock:
            return [replace(a) for a in self.assignments.values() if course_id is None or a.course_id == course_id]

    def create_grade(self, *, assignment_id: int, student_id: int, grade: str, course_id: Optional[int] = None) -> Grade:
        try:
            letter = normalize_letter(grade)
        except ValueError:
            raise ValidationError("Validation error: grade must be a letter grade") from None
        with self._lock:
            assignment = self.assignments.get(assignment_id)
            if assignment is None:
                raise NotFoundError("Assignment not found")
            if course_id is not None:
                self._require_course(course_id)
                if assignment.course_id != course_id:
                    raise InvalidReferenceError("Assignment does not belong to this course")
            if student_id not in self.members.get(assignment.course_id, []):
                raise InvalidReferenceError("Student is not enrolled in this course")
            record = Grade(id=self._next_id("grade"), assignment_id=assignment_id, student_id=student_id, grade=letter)
            self.grades[record.id] = record
        logger.info("Grade recorded id=%s assignment_id=%s student_id=%s", record.id, assignment_id, student_id)
        return replace(record)

    def list_grades(self, *, student_id: Optional[int] = None, assignment_id: Optional[int] = None) -> List[Grade]:
        with self._lock:
            items = list(self.grades.values())
            if student_id is not None:
                items = [g for g in items if g.student_id == student_id]
            if assignment_id is not None:
                items = [g for g in items if g.assignment_id == assignment_id]
            return [replace(g) for g in items]
