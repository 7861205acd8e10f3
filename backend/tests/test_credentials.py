"""
Credential helpers: hashing format, verification and email syntax.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from identity_access.credentials import (
    HashedCredentialVerifier,
    check_password,
    hash_password,
    is_valid_email,
    normalize_email,
)


@pytest.mark.parametrize(
    "value",
    ["a@example.com", "first.last+tag@sub.example.org", "x_y@uni-berlin.de", "user@bücher.de", "üser@example.com"],
)
def test_valid_emails(value):
    assert is_valid_email(value)


@pytest.mark.parametrize(
    "value",
    ["", "plain", "a@b", "a@@example.com", "a b@example.com", ".a@example.com", None, 42, "a@" + "x" * 260 + ".com"],
)
def test_invalid_emails(value):
    assert not is_valid_email(value)


def test_normalize_email_trims_and_lowercases():
    assert normalize_email("  Ada@Example.COM ") == "ada@example.com"


def test_hash_is_self_describing_and_salted():
    first = hash_password("s3cret", iterations=1000)
    second = hash_password("s3cret", iterations=1000)
    assert first.startswith("pbkdf2_sha256$1000$")
    assert first != second
    assert check_password("s3cret", first)
    assert check_password("s3cret", second)


def test_fixed_salt_is_deterministic():
    assert hash_password("pw", iterations=10, salt="abc") == hash_password("pw", iterations=10, salt="abc")


def test_empty_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("", iterations=10)


@pytest.mark.parametrize(
    "encoded",
    [None, "", "garbage", "md5$1$salt$hash", "pbkdf2_sha256$x$salt$hash", "pbkdf2_sha256$0$salt$hash", "pbkdf2_sha256$10$$hash"],
)
def test_check_password_rejects_malformed_hashes(encoded):
    assert check_password("pw", encoded) is False


def test_check_password_rejects_wrong_and_empty_password():
    encoded = hash_password("right", iterations=1000)
    assert check_password("wrong", encoded) is False
    assert check_password("", encoded) is False


def _lookup_for(users):
    by_email = {u.email: u for u in users}
    return lambda email: by_email.get(email)


def test_verifier_returns_user_id_for_matching_credentials():
    user = SimpleNamespace(id=11, email="ada@example.com", credential=hash_password("pw", iterations=1000))
    verifier = HashedCredentialVerifier(_lookup_for([user]), iterations=1000)
    assert verifier.verify("ADA@example.com ", "pw") == 11


def test_verifier_returns_none_for_unknown_email_or_wrong_password():
    user = SimpleNamespace(id=11, email="ada@example.com", credential=hash_password("pw", iterations=1000))
    verifier = HashedCredentialVerifier(_lookup_for([user]), iterations=1000)
    assert verifier.verify("nobody@example.com", "pw") is None
    assert verifier.verify("ada@example.com", "nope") is None
    assert verifier.verify(None, "pw") is None  # type: ignore[arg-type]
