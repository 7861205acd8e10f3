"""
PolicyEngine: the role x operation table and target predicate ordering.

The matrix below is the contract: every operation is listed for every role,
so adding an operation without a rule shows up as a failing case.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from identity_access.domain import Role
from identity_access.errors import AuthorizationError, InvalidEnrollmentTarget, SessionError
from identity_access.policy import POLICY, Operation, PolicyEngine, PolicyRule, TargetContext
from identity_access.stores import SessionStore

ADMIN_ONLY = {
    Operation.CREATE_USER,
    Operation.CREATE_COURSE,
    Operation.UPDATE_COURSE,
    Operation.DELETE_COURSE,
    Operation.ADD_STUDENT_TO_COURSE,
    Operation.REMOVE_STUDENT_FROM_COURSE,
}
FACULTY_ONLY = {Operation.CREATE_ASSIGNMENT, Operation.CREATE_ASSIGNMENT_GRADE}
ANY_SESSION = {
    Operation.LOGOUT_USER,
    Operation.CURRENT_USER,
    Operation.USERS,
    Operation.STUDENTS,
    Operation.FACULTY,
}
STUDENT_TARGET = TargetContext(target_user_role=Role.STUDENT)


def _expected(role: Role, op: Operation) -> bool:
    if op in ANY_SESSION:
        return True
    if op in ADMIN_ONLY:
        return role is Role.ADMIN
    return role is Role.FACULTY


def _engine(users=None):
    sessions = SessionStore()
    users = users or {}
    return PolicyEngine(sessions, users.get), sessions


def test_every_operation_has_a_rule():
    assert set(POLICY) == set(Operation)
    assert ADMIN_ONLY | FACULTY_ONLY | ANY_SESSION == set(Operation)


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("op", list(Operation))
def test_role_operation_matrix(role, op):
    engine, _ = _engine()
    if _expected(role, op):
        assert engine.authorize(1, role, op, STUDENT_TARGET) is True
    else:
        with pytest.raises(AuthorizationError) as exc:
            engine.authorize(1, role, op, STUDENT_TARGET)
        assert type(exc.value) is AuthorizationError
        assert exc.value.message == "Operation Not Permitted"


@pytest.mark.parametrize("op", [Operation.ADD_STUDENT_TO_COURSE, Operation.REMOVE_STUDENT_FROM_COURSE])
@pytest.mark.parametrize("target_role", [Role.ADMIN, Role.FACULTY, None])
def test_roster_change_rejects_non_student_target(op, target_role):
    engine, _ = _engine()
    with pytest.raises(InvalidEnrollmentTarget) as exc:
        engine.authorize(1, Role.ADMIN, op, TargetContext(target_user_role=target_role))
    assert exc.value.message == "Only Students can be enrolled in Courses"


def test_target_predicate_is_checked_before_role():
    engine, _ = _engine()
    # Faculty may not enroll anyone, but a non-Student target is reported first.
    with pytest.raises(InvalidEnrollmentTarget):
        engine.authorize(1, Role.FACULTY, Operation.ADD_STUDENT_TO_COURSE, TargetContext(Role.FACULTY))
    with pytest.raises(AuthorizationError) as exc:
        engine.authorize(1, Role.FACULTY, Operation.ADD_STUDENT_TO_COURSE, STUDENT_TARGET)
    assert not isinstance(exc.value, InvalidEnrollmentTarget)


def test_missing_target_context_fails_predicate():
    engine, _ = _engine()
    with pytest.raises(InvalidEnrollmentTarget):
        engine.authorize(1, Role.ADMIN, Operation.ADD_STUDENT_TO_COURSE)


def test_unknown_operation_is_denied():
    sessions = SessionStore()
    engine = PolicyEngine(sessions, {}.get, policy={Operation.USERS: PolicyRule(allowed_roles=None)})
    with pytest.raises(AuthorizationError):
        engine.authorize(1, Role.ADMIN, Operation.CREATE_USER)


def test_resolve_caller_maps_token_to_user_and_role():
    admin = SimpleNamespace(id=3, role=Role.ADMIN)
    engine, sessions = _engine({3: admin})
    token = sessions.issue(3)
    caller = engine.resolve_caller(token)
    assert (caller.user_id, caller.role, caller.token) == (3, Role.ADMIN, token)


@pytest.mark.parametrize("token", [None, "", "bogus"])
def test_resolve_caller_rejects_bad_tokens(token):
    engine, _ = _engine()
    with pytest.raises(SessionError):
        engine.resolve_caller(token)


def test_session_of_vanished_user_is_bad_token():
    engine, sessions = _engine({})
    token = sessions.issue(99)
    with pytest.raises(SessionError):
        engine.resolve_caller(token)


def test_check_resolves_before_authorizing():
    student = SimpleNamespace(id=2, role=Role.STUDENT)
    engine, sessions = _engine({2: student})
    token = sessions.issue(2)
    assert engine.check(token, Operation.USERS).user_id == 2
    with pytest.raises(AuthorizationError):
        engine.check(token, Operation.CREATE_COURSE)
    # Bad token wins over any authorization outcome.
    with pytest.raises(SessionError):
        engine.check("bogus", Operation.CREATE_COURSE)


@pytest.mark.parametrize("raw", ["Admin", "admin", " FACULTY ", Role.STUDENT])
def test_role_parse_accepts_contract_names(raw):
    assert Role.parse(raw) in set(Role)


@pytest.mark.parametrize("raw", ["Teacher", "", None, 1])
def test_role_parse_rejects_unknown_roles(raw):
    with pytest.raises(ValueError):
        Role.parse(raw)
