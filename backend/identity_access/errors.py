"""
Error taxonomy for authentication, sessions and authorization.

Why:
    Failures are part of the external contract: clients compare the literal
    messages below. Keeping them in one module prevents wording drift between
    the services and the web adapter.

Design:
    Every error carries a stable machine `code` and the literal `message`.
    Callers must not format additional details into the message; the policy
    never reveals which specific check failed beyond the fixed text.
"""

from __future__ import annotations


class RecordsError(Exception):
    """Base class for all failures raised by the records core."""

    code = "records_error"
    default_message = "Records error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(RecordsError):
    """Wrong email or password at login (indistinguishable on purpose)."""

    code = "bad_credentials"
    default_message = "Bad Login or Password"


class SessionError(RecordsError):
    """Token missing, unknown or revoked."""

    code = "bad_token"
    default_message = "Bad Token"


class AuthorizationError(RecordsError):
    """Valid session, but the caller's role may not run the operation."""

    code = "operation_not_permitted"
    default_message = "Operation Not Permitted"


class InvalidEnrollmentTarget(AuthorizationError):
    """Only users with role Student can be added to or removed from rosters."""

    code = "invalid_enrollment_target"
    default_message = "Only Students can be enrolled in Courses"


__all__ = [
    "RecordsError",
    "AuthenticationError",
    "SessionError",
    "AuthorizationError",
    "InvalidEnrollmentTarget",
]
