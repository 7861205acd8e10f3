"""Academic records service layer (Clean Architecture boundary).

Why:
    Encapsulates the protected operations so web adapters stay thin and every
    operation follows the same path: resolve the caller from the explicit
    token, consult the policy table, then let the registry mutate with its own
    invariant checks. No operation reads an ambient "current session".

Permissions:
    Decided by `identity_access.policy.POLICY`; see that module for the table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol
import logging

from identity_access.authenticator import Authenticator
from identity_access.credentials import DEFAULT_ITERATIONS, hash_password
from identity_access.domain import Role
from identity_access.errors import SessionError
from identity_access.policy import Caller, Operation, PolicyEngine, TargetContext

from .errors import NotFoundError, ValidationError
from .gpa import calculate_gpa
from .models import Assignment, Course, Grade, User

logger = logging.getLogger("registrar.academics")


class RecordsRepoProtocol(Protocol):
    def create_user(self, *, name: str, email: str, role: Role | str, credential: str) -> User:
        ...

    def get_user(self, user_id: int) -> Optional[User]:
        ...

    def list_users(self, role: Optional[Role] = None) -> List[User]:
        ...

    def create_course(self, *, name: str, professor_id: int) -> Course:
        ...

    def get_course(self, course_id: int) -> Optional[Course]:
        ...

    def list_courses(self, *, professor_id: Optional[int] = None, student_id: Optional[int] = None) -> List[Course]:
        ...

    def update_course(self, course_id: int, **changes: Any) -> Course:
        ...

    def delete_course(self, course_id: int) -> int:
        ...

    def add_student(self, course_id: int, student_id: int) -> List[int]:
        ...

    def remove_student(self, course_id: int, student_id: int) -> List[int]:
        ...

    def list_students(self, course_id: int) -> List[User]:
        ...

    def create_assignment(self, *, course_id: int, name: str) -> Assignment:
        ...

    def list_assignments(self, course_id: Optional[int] = None) -> List[Assignment]:
        ...

    def create_grade(self, *, assignment_id: int, student_id: int, grade: str, course_id: Optional[int] = None) -> Grade:
        ...

    def list_grades(self, *, student_id: Optional[int] = None, assignment_id: Optional[int] = None) -> List[Grade]:
        ...


class SessionRevoker(Protocol):
    def revoke(self, token: Optional[str]) -> bool:
        ...


@dataclass
class LoginResult:
    token: str
    user: User


@dataclass
class CourseRoster:
    course: Course
    students: List[User] = field(default_factory=list)


@dataclass
class StudentProfile:
    user: User
    courses: List[Course] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)
    grades: List[Grade] = field(default_factory=list)
    gpa: Optional[float] = None


@dataclass
class FacultyProfile:
    user: User
    teaching: List[Course] = field(default_factory=list)


class RecordsService:
    def __init__(
        self,
        repo: RecordsRepoProtocol,
        *,
        sessions: SessionRevoker,
        policy: PolicyEngine,
        authenticator: Authenticator,
        hash_iterations: int = DEFAULT_ITERATIONS,
    ) -> None:
        self._repo = repo
        self._sessions = sessions
        self._policy = policy
        self._authenticator = authenticator
        self._hash_iterations = hash_iterations

    # --- Session ---------------------------------------------------------------
    def login_user(self, email: str, password: str) -> LoginResult:
        session = self._authenticator.login(email, password)
        user = self._repo.get_user(session.user_id)
        if user is None:  # pragma: no cover - verifier and repo share one source
            raise SessionError()
        return LoginResult(token=session.token, user=user)

    def logout_user(self, token: Optional[str]) -> bool:
        self._policy.check(token, Operation.LOGOUT_USER)
        return self._sessions.revoke(token)

    # --- Queries ---------------------------------------------------------------
    def current_user(self, token: Optional[str]) -> User:
        caller = self._policy.check(token, Operation.CURRENT_USER)
        user = self._repo.get_user(caller.user_id)
        if user is None:  # pragma: no cover - resolve_caller already checked
            raise SessionError()
        return user

    def users(self, token: Optional[str]) -> List[User]:
        self._policy.check(token, Operation.USERS)
        return self._repo.list_users()

    def students(self, token: Optional[str]) -> List[StudentProfile]:
        self._policy.check(token, Operation.STUDENTS)
        return [self._student_profile(u) for u in self._repo.list_users(Role.STUDENT)]

    def faculty(self, token: Optional[str]) -> List[FacultyProfile]:
        self._policy.check(token, Operation.FACULTY)
        return [
            FacultyProfile(user=u, teaching=self._repo.list_courses(professor_id=u.id))
            for u in self._repo.list_users(Role.FACULTY)
        ]

    def _student_profile(self, user: User) -> StudentProfile:
        courses = self._repo.list_courses(student_id=user.id)
        assignments: List[Assignment] = []
        for course in courses:
            assignments.extend(self._repo.list_assignments(course.id))
        grades = self._repo.list_grades(student_id=user.id)
        return StudentProfile(
            user=user,
            courses=courses,
            assignments=assignments,
            grades=grades,
            gpa=calculate_gpa(g.grade for g in grades),
        )

    # --- Mutations -------------------------------------------------------------
    def create_user(self, token: Optional[str], *, name: str, email: str, role: str, password: str) -> User:
        self._policy.check(token, Operation.CREATE_USER)
        try:
            credential = hash_password(password, iterations=self._hash_iterations)
        except ValueError:
            raise ValidationError("Validation error: password must not be empty") from None
        return self._repo.create_user(name=name, email=email, role=role, credential=credential)

    def create_course(self, token: Optional[str], *, name: str, professor_id: int) -> Course:
        self._policy.check(token, Operation.CREATE_COURSE)
        return self._repo.create_course(name=name, professor_id=professor_id)

    def update_course(
        self,
        token: Optional[str],
        course_id: int,
        *,
        name: Optional[str] = None,
        professor_id: Optional[int] = None,
    ) -> Course:
        self._policy.check(token, Operation.UPDATE_COURSE)
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if professor_id is not None:
            changes["professor_id"] = professor_id
        return self._repo.update_course(course_id, **changes)

    def delete_course(self, token: Optional[str], course_id: int) -> int:
        self._policy.check(token, Operation.DELETE_COURSE)
        return self._repo.delete_course(course_id)

    def _enrollment_target(self, user_id: int) -> TargetContext:
        target = self._repo.get_user(user_id)
        return TargetContext(target_user_role=target.role if target else None)

    def _authorize_roster_change(self, token: Optional[str], operation: Operation, user_id: int) -> Caller:
        # Session first: a bad token must never reach target lookups.
        caller = self._policy.resolve_caller(token)
        self._policy.authorize(caller.user_id, caller.role, operation, self._enrollment_target(user_id))
        return caller

    def _roster(self, course_id: int) -> CourseRoster:
        course = self._repo.get_course(course_id)
        if course is None:  # pragma: no cover - mutation just succeeded
            raise NotFoundError("Course not found")
        return CourseRoster(course=course, students=self._repo.list_students(course_id))

    def add_student_to_course(self, token: Optional[str], *, user_id: int, course_id: int) -> CourseRoster:
        self._authorize_roster_change(token, Operation.ADD_STUDENT_TO_COURSE, user_id)
        self._repo.add_student(course_id, user_id)
        return self._roster(course_id)

    def remove_student_from_course(self, token: Optional[str], *, user_id: int, course_id: int) -> CourseRoster:
        self._authorize_roster_change(token, Operation.REMOVE_STUDENT_FROM_COURSE, user_id)
        self._repo.remove_student(course_id, user_id)
        return self._roster(course_id)

    def create_assignment(self, token: Optional[str], *, name: str, course_id: int) -> Assignment:
        self._policy.check(token, Operation.CREATE_ASSIGNMENT)
        return self._repo.create_assignment(course_id=course_id, name=name)

    def create_assignment_grade(
        self,
        token: Optional[str],
        *,
        assignment_id: int,
        course_id: Optional[int],
        student_id: int,
        grade: str,
    ) -> Grade:
        self._policy.check(token, Operation.CREATE_ASSIGNMENT_GRADE)
        return self._repo.create_grade(
            assignment_id=assignment_id,
            student_id=student_id,
            grade=grade,
            course_id=course_id,
        )
