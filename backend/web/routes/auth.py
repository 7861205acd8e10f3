"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep login/logout and the caller lookup in a dedicated router so the app
    module only wires middleware and error mapping.

Notes:
    - Tokens travel in the `Authorization` header; the response body of
      `/api/login` is the only place a token is ever written by the server.
    - Login failures are reported with one generic message; the handler does
      not log the submitted email.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel

from .security import private_json, records_service, request_token

try:
    from ..serializers import serialize_user
except ImportError:
    from serializers import serialize_user  # type: ignore


auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("registrar.web.auth")


class LoginRequest(BaseModel):
    email: str
    password: str


@auth_router.get("/api/hello")
async def hello():
    """Liveness greeting for API clients.

    Permissions:
        Public.
    """
    return {"hello": "world"}


@auth_router.post("/api/login")
async def login_user(request: Request, payload: LoginRequest):
    """Exchange email/password for a session token.

    Behavior:
        - 200 `{token, user: {id}}` on success
        - 401 `Bad Login or Password` for unknown email or wrong password

    Permissions:
        Public.
    """
    result = records_service(request).login_user(payload.email, payload.password)
    return private_json({"token": result.token, "user": {"id": result.user.id}})


@auth_router.post("/api/logout")
async def logout_user(request: Request):
    """Revoke the presented session token.

    Behavior:
        - 200 `{"ok": true}` on success
        - 401 `Bad Token` when the token is missing, unknown or already revoked

    Permissions:
        Any valid session.
    """
    ok = records_service(request).logout_user(request_token(request))
    return private_json({"ok": ok})


@auth_router.get("/api/me")
async def current_user(request: Request):
    """Return the user owning the presented session.

    Permissions:
        Any valid session.
    """
    user = records_service(request).current_user(request_token(request))
    return private_json(serialize_user(user))
