"""
In-memory SessionStore for development and tests.

Why: Keep sessions server-side and opaque to the client. The token handed out
at login is the only thing a client ever holds. For production, use the
Postgres-backed store in `stores_db.py` (same contract).

Security:
- Tokens come from `secrets.token_urlsafe` and are never reused.
- Revoked sessions stay recorded as revoked and are never resurrected, so a
  logged-out token fails exactly like an unknown one.
- Issue/validate/revoke run under one lock: there is no window in which a
  token is reported both valid and invalid.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import logging
import secrets
import threading
import time

from .errors import SessionError

logger = logging.getLogger("registrar.identity_access")

ACTIVE = "active"
REVOKED = "revoked"


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    token: str
    user_id: int
    status: str
    created_at: int

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE


class SessionStore:
    def __init__(self, token_bytes: int = 24):
        self._data: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()
        self._token_bytes = token_bytes

    def issue(self, user_id: int) -> str:
        """Mint a fresh active session for `user_id` and return its token."""
        with self._lock:
            token = secrets.token_urlsafe(self._token_bytes)
            while token in self._data:  # pragma: no cover - astronomically unlikely
                token = secrets.token_urlsafe(self._token_bytes)
            self._data[token] = SessionRecord(token=token, user_id=user_id, status=ACTIVE, created_at=_now())
        return token

    def validate(self, token: Optional[str]) -> int:
        """Return the owning user id of an active session or raise SessionError."""
        if not token:
            raise SessionError()
        with self._lock:
            rec = self._data.get(token)
            if rec is None or not rec.is_active:
                raise SessionError()
            return rec.user_id

    def revoke(self, token: Optional[str]) -> bool:
        """Mark an active session revoked. Unknown or revoked tokens raise SessionError."""
        if not token:
            raise SessionError()
        with self._lock:
            rec = self._data.get(token)
            if rec is None or not rec.is_active:
                raise SessionError()
            rec.status = REVOKED
        logger.info("Session revoked for user_id=%s", rec.user_id)
        return True

    def get(self, token: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._data.get(token)
