"""
Login flow: verify credentials, then mint a session.

Why: Keep the login rule (one generic failure, no side effects on failure)
framework-free so the web adapter and services share one implementation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
import logging

from .credentials import CredentialVerifier
from .errors import AuthenticationError

logger = logging.getLogger("registrar.identity_access")


class SessionIssuer(Protocol):
    def issue(self, user_id: int) -> str:
        ...


@dataclass(frozen=True)
class Session:
    token: str
    user_id: int


class Authenticator:
    def __init__(self, verifier: CredentialVerifier, sessions: SessionIssuer) -> None:
        self._verifier = verifier
        self._sessions = sessions

    def login(self, email: str, password: str) -> Session:
        """Return a new active session or raise AuthenticationError.

        Wrong email and wrong password are reported identically. Nothing is
        written when verification fails. Logging in again while a session is
        active issues an additional session; earlier ones stay valid.
        """
        user_id = self._verifier.verify(email, password)
        if user_id is None:
            logger.info("Login rejected: bad credentials")
            raise AuthenticationError()
        token = self._sessions.issue(user_id)
        logger.info("Login succeeded for user_id=%s", user_id)
        return Session(token=token, user_id=user_id)
