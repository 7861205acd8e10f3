"""
Data-layer failures of the academic registry.

ValidationError messages follow the contract clients already compare against
(`Validation error: ...`). NotFound and InvalidReference carry fixed texts per
check so callers never see internal identifiers echoed back.
"""
from __future__ import annotations

from identity_access.errors import RecordsError

INVALID_EMAIL = "Validation error: Validation isEmail on email failed"
DUPLICATE_EMAIL = "Validation error: email must be unique"


class ValidationError(RecordsError):
    """Malformed input, independent of the caller's role."""

    code = "validation_error"
    default_message = "Validation error"


class InvalidReferenceError(ValidationError):
    """Input points at an entity that exists but cannot be linked."""

    code = "invalid_reference"
    default_message = "Invalid reference"


class NotFoundError(RecordsError):
    code = "not_found"
    default_message = "Not found"


__all__ = [
    "DUPLICATE_EMAIL",
    "INVALID_EMAIL",
    "InvalidReferenceError",
    "NotFoundError",
    "ValidationError",
]
