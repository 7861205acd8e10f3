"""
Credential helpers: password hashing, verification and email syntax checks.

Why:
    Authentication must not depend on how passwords are stored. The
    Authenticator only sees the `CredentialVerifier` protocol, so a directory
    service or external IdP can replace the in-repo implementation without
    touching the login flow.

Security:
    - Salted PBKDF2-HMAC-SHA256, encoded as
      `pbkdf2_sha256$<iterations>$<salt>$<hash>` (self-describing, so the work
      factor can be raised without invalidating stored hashes).
    - Comparison uses `hmac.compare_digest`.
    - An unknown email still runs one hash computation so timing does not
      reveal which emails exist.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import Callable, Optional, Protocol

from email_validator import EmailNotValidError, validate_email

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 260_000


def is_valid_email(value: object) -> bool:
    """Syntax check only (no DNS); internationalized addresses are accepted."""
    if not isinstance(value, str):
        return False
    try:
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_email(value: str) -> str:
    return value.strip().lower()


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii").rstrip("=")


def hash_password(password: str, *, iterations: int = DEFAULT_ITERATIONS, salt: str | None = None) -> str:
    if not isinstance(password, str) or not password:
        raise ValueError("invalid_password")
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{ALGORITHM}${iterations}${salt}${_b64(digest)}"


def check_password(password: str, encoded: str | None) -> bool:
    """Return True when `password` matches the encoded hash."""
    if not encoded or not isinstance(password, str) or not password:
        return False
    try:
        algorithm, iterations_raw, salt, _ = encoded.split("$", 3)
        iterations = int(iterations_raw)
    except ValueError:
        return False
    if algorithm != ALGORITHM or iterations < 1 or not salt:
        return False
    candidate = hash_password(password, iterations=iterations, salt=salt)
    return hmac.compare_digest(candidate, encoded)


class CredentialVerifier(Protocol):
    def verify(self, email: str, password: str) -> Optional[int]:
        """Return the user id for valid credentials, None otherwise."""
        ...


class UserCredential(Protocol):
    id: int
    credential: str


class HashedCredentialVerifier:
    """Verify credentials against password hashes held by a user lookup.

    `lookup` maps a (normalized) email to an object with `id` and `credential`
    attributes, or None. The registry's `find_user_by_email` fits directly.
    """

    def __init__(self, lookup: Callable[[str], Optional[UserCredential]], *, iterations: int = DEFAULT_ITERATIONS):
        self._lookup = lookup
        # Pre-computed hash used to equalize timing for unknown emails.
        self._dummy = hash_password(secrets.token_hex(8), iterations=iterations)

    def verify(self, email: str, password: str) -> Optional[int]:
        if not isinstance(email, str) or not isinstance(password, str):
            return None
        user = self._lookup(normalize_email(email))
        if user is None:
            check_password(password, self._dummy)
            return None
        if not check_password(password, user.credential):
            return None
        return user.id


__all__ = [
    "CredentialVerifier",
    "HashedCredentialVerifier",
    "check_password",
    "hash_password",
    "is_valid_email",
    "normalize_email",
]
