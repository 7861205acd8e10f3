"""
Role-based access policy for the academic records core.

Why:
    Permission checks scattered across handlers drift apart over time. This
    module holds one declarative table, `POLICY`, mapping each operation to the
    roles allowed to run it and an optional predicate over the operation's
    target. Every protected call is decided by the same `authorize` routine.

Behavior:
    - `resolve_caller(token)` turns a token into a `Caller` or raises
      SessionError("Bad Token"). It is the mandatory first step of every
      operation except login.
    - `authorize(...)` returns True or raises:
        * the rule's target predicate is evaluated first; a failing predicate
          raises the rule's `target_error` (InvalidEnrollmentTarget for roster
          changes), even when the actor's role would also be rejected;
        * then the actor's role must be in `allowed_roles`, otherwise
          AuthorizationError("Operation Not Permitted").
    - Operations whose rule has `allowed_roles=None` only need a valid session.

Permissions table (see POLICY):
    Admin   -> createUser, createCourse, updateCourse, deleteCourse,
               addStudentToCourse, removeStudentFromCourse
    Faculty -> createAssignment, createAssignmentGrade
    any     -> currentUser, users, students, faculty, logoutUser
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Protocol, Type
import logging

from .domain import Role
from .errors import AuthorizationError, InvalidEnrollmentTarget, SessionError

logger = logging.getLogger("registrar.identity_access")


class Operation(str, Enum):
    LOGOUT_USER = "logoutUser"
    CURRENT_USER = "currentUser"
    USERS = "users"
    STUDENTS = "students"
    FACULTY = "faculty"
    CREATE_USER = "createUser"
    CREATE_COURSE = "createCourse"
    UPDATE_COURSE = "updateCourse"
    DELETE_COURSE = "deleteCourse"
    ADD_STUDENT_TO_COURSE = "addStudentToCourse"
    REMOVE_STUDENT_FROM_COURSE = "removeStudentFromCourse"
    CREATE_ASSIGNMENT = "createAssignment"
    CREATE_ASSIGNMENT_GRADE = "createAssignmentGrade"


@dataclass(frozen=True)
class Caller:
    user_id: int
    role: Role
    token: str


@dataclass(frozen=True)
class TargetContext:
    """Facts about the entities an operation touches.

    Only what predicates need: today that is the role of the user being
    enrolled or removed (None when that user does not exist).
    """

    target_user_role: Optional[Role] = None


@dataclass(frozen=True)
class PolicyRule:
    allowed_roles: Optional[FrozenSet[Role]]
    target_predicate: Optional[Callable[[TargetContext], bool]] = None
    target_error: Type[AuthorizationError] = AuthorizationError


def _target_is_student(target: TargetContext) -> bool:
    return target.target_user_role is Role.STUDENT


_ADMIN = frozenset({Role.ADMIN})
_FACULTY = frozenset({Role.FACULTY})
_ANY_SESSION = PolicyRule(allowed_roles=None)
_ROSTER_CHANGE = PolicyRule(
    allowed_roles=_ADMIN,
    target_predicate=_target_is_student,
    target_error=InvalidEnrollmentTarget,
)

POLICY: Dict[Operation, PolicyRule] = {
    Operation.LOGOUT_USER: _ANY_SESSION,
    Operation.CURRENT_USER: _ANY_SESSION,
    Operation.USERS: _ANY_SESSION,
    Operation.STUDENTS: _ANY_SESSION,
    Operation.FACULTY: _ANY_SESSION,
    Operation.CREATE_USER: PolicyRule(allowed_roles=_ADMIN),
    Operation.CREATE_COURSE: PolicyRule(allowed_roles=_ADMIN),
    Operation.UPDATE_COURSE: PolicyRule(allowed_roles=_ADMIN),
    Operation.DELETE_COURSE: PolicyRule(allowed_roles=_ADMIN),
    Operation.ADD_STUDENT_TO_COURSE: _ROSTER_CHANGE,
    Operation.REMOVE_STUDENT_FROM_COURSE: _ROSTER_CHANGE,
    Operation.CREATE_ASSIGNMENT: PolicyRule(allowed_roles=_FACULTY),
    Operation.CREATE_ASSIGNMENT_GRADE: PolicyRule(allowed_roles=_FACULTY),
}


class SessionValidator(Protocol):
    def validate(self, token: Optional[str]) -> int:
        ...


class _UserWithRole(Protocol):
    id: int
    role: Role


class PolicyEngine:
    def __init__(
        self,
        sessions: SessionValidator,
        user_lookup: Callable[[int], Optional[_UserWithRole]],
        policy: Optional[Dict[Operation, PolicyRule]] = None,
    ) -> None:
        self._sessions = sessions
        self._user_lookup = user_lookup
        self._policy = policy if policy is not None else POLICY

    def resolve_caller(self, token: Optional[str]) -> Caller:
        """Return the caller behind `token` or raise SessionError.

        A session whose user no longer exists counts as a bad token.
        """
        user_id = self._sessions.validate(token)
        user = self._user_lookup(user_id)
        if user is None:
            logger.warning("Active session without user (user_id=%s)", user_id)
            raise SessionError()
        return Caller(user_id=user.id, role=user.role, token=str(token))

    def authorize(
        self,
        caller_id: int,
        caller_role: Role,
        operation: Operation,
        target: Optional[TargetContext] = None,
    ) -> bool:
        rule = self._policy.get(operation)
        if rule is None:
            # Unknown operations are denied rather than defaulting open.
            logger.info("Denied unknown operation=%s for user_id=%s", operation, caller_id)
            raise AuthorizationError()
        if rule.target_predicate is not None and not rule.target_predicate(target or TargetContext()):
            logger.info("Denied operation=%s for user_id=%s: target rejected", operation.value, caller_id)
            raise rule.target_error()
        if rule.allowed_roles is not None and caller_role not in rule.allowed_roles:
            logger.info("Denied operation=%s for user_id=%s role=%s", operation.value, caller_id, caller_role.value)
            raise AuthorizationError()
        return True

    def check(self, token: Optional[str], operation: Operation, target: Optional[TargetContext] = None) -> Caller:
        """Resolve the caller and authorize `operation` in one step."""
        caller = self.resolve_caller(token)
        self.authorize(caller.user_id, caller.role, operation, target)
        return caller
