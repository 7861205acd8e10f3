"""
Authenticator: login mints a session only for valid credentials.
"""
from __future__ import annotations

import pytest

from identity_access.authenticator import Authenticator
from identity_access.errors import AuthenticationError
from identity_access.stores import SessionStore


class _StaticVerifier:
    def __init__(self, accounts):
        self._accounts = accounts

    def verify(self, email, password):
        entry = self._accounts.get(email)
        if entry and entry[1] == password:
            return entry[0]
        return None


def _auth():
    sessions = SessionStore()
    verifier = _StaticVerifier({"ada@example.com": (1, "pw")})
    return Authenticator(verifier, sessions), sessions


def test_login_issues_active_session():
    auth, sessions = _auth()
    session = auth.login("ada@example.com", "pw")
    assert session.user_id == 1
    assert sessions.validate(session.token) == 1


@pytest.mark.parametrize("email,password", [("ada@example.com", "wrong"), ("eve@example.com", "pw")])
def test_bad_credentials_share_one_message(email, password):
    auth, sessions = _auth()
    with pytest.raises(AuthenticationError) as exc:
        auth.login(email, password)
    assert exc.value.message == "Bad Login or Password"
    assert sessions._data == {}


def test_second_login_keeps_first_session_valid():
    auth, sessions = _auth()
    first = auth.login("ada@example.com", "pw")
    second = auth.login("ada@example.com", "pw")
    assert first.token != second.token
    assert sessions.validate(first.token) == 1
    assert sessions.validate(second.token) == 1


def test_login_does_not_log_submitted_email(caplog):
    auth, _ = _auth()
    caplog.set_level("INFO", logger="registrar")
    with pytest.raises(AuthenticationError):
        auth.login("secret-person@example.com", "wrong")
    assert "secret-person" not in caplog.text
