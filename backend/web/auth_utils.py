"""
Shared authentication utilities.

Why:
    The middleware and the route handlers must agree on how a token is read
    from a request. Keeping a single helper avoids one of them accepting a
    format the other rejects.

Design:
    The helper is framework-agnostic and pure: it accepts the raw header value
    and returns the token (or None). Callers decide where the header comes from.
"""

from __future__ import annotations

from typing import Optional


def token_from_authorization(value: Optional[str]) -> Optional[str]:
    """Return the session token carried by an Authorization header value.

    Accepts both the raw token (`Authorization: <token>`) and the bearer form
    (`Authorization: Bearer <token>`). Empty values and the literal strings
    "null"/"undefined" some clients send for an absent token yield None.
    """
    if not value:
        return None
    raw = value.strip()
    scheme, _, rest = raw.partition(" ")
    if scheme.lower() == "bearer":
        raw = rest.strip()
    if not raw or raw.lower() in ("null", "undefined"):
        return None
    return raw
