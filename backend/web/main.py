"""
FastAPI application for the academic records API.

Why:
    Expose the records core over HTTP without adding rules of its own. The app
    wires the core (see `records_wiring.py`), enforces that protected paths
    carry a valid session token, maps core errors to responses in one place
    and sets defensive headers.

Notes:
    - Public paths: /api/hello, /api/login, /health and the OpenAPI docs.
      Everything else under /api/ answers 401 `Bad Token` before any handler
      runs when the token is missing, unknown or revoked.
    - `create_app(settings)` builds an isolated app (fresh registry and
      session store); tests use it instead of mutating module globals.
"""
from __future__ import annotations

import logging
import os
import sys as _sys
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from academics.errors import NotFoundError, ValidationError
from academics.registry import InMemoryRegistry
from identity_access.errors import (
    AuthenticationError,
    AuthorizationError,
    RecordsError,
    SessionError,
)

try:
    from .auth_utils import token_from_authorization
    from .config import Settings, ensure_secure_config_on_startup, load_settings
    from .records_wiring import build_records
    from .routes.auth import auth_router
    from .routes.operations import operations_router
    from .routes.records import records_router
    from .routes.users import users_router
except ImportError:
    from auth_utils import token_from_authorization  # type: ignore
    from config import Settings, ensure_secure_config_on_startup, load_settings  # type: ignore
    from records_wiring import build_records  # type: ignore
    from routes.auth import auth_router  # type: ignore
    from routes.operations import operations_router  # type: ignore
    from routes.records import records_router  # type: ignore
    from routes.users import users_router  # type: ignore

# Ensure flat and package imports reference the same module instance.
if __name__ == "main":
    _sys.modules.setdefault("web.main", _sys.modules[__name__])
elif __name__ == "web.main":
    _sys.modules.setdefault("main", _sys.modules[__name__])


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via REGISTRAR_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in _sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("REGISTRAR_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

logger = logging.getLogger("registrar.web")

PUBLIC_PATHS = frozenset({"/api/hello", "/api/login", "/health", "/docs", "/openapi.json", "/redoc"})

# Most specific class first; lookup walks the exception's MRO.
_ERROR_STATUS: Dict[Type[RecordsError], int] = {
    SessionError: 401,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ValidationError: 400,
}


def _status_for(exc: RecordsError) -> int:
    for cls in type(exc).__mro__:
        if cls in _ERROR_STATUS:
            return _ERROR_STATUS[cls]
    return 400


def _error_response(exc: RecordsError) -> JSONResponse:
    headers = {"Cache-Control": "private, no-store"}
    return JSONResponse({"error": exc.code, "message": exc.message}, status_code=_status_for(exc), headers=headers)


async def records_error_handler(request: Request, exc: RecordsError) -> JSONResponse:
    if isinstance(exc, AuthorizationError):
        logger.info("Denied %s %s: %s", request.method, request.url.path, exc.code)
    return _error_response(exc)


def _is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or not path.startswith("/api/")


def create_app(settings: Settings | None = None, *, registry: InMemoryRegistry | None = None) -> FastAPI:
    """Build an app with its own records object graph."""
    settings = settings or load_settings()
    records = build_records(settings, registry=registry)

    application = FastAPI(title="Registrar", description="Academic records API", version="0.1.0")
    application.state.settings = settings
    application.state.records = records
    application.add_exception_handler(RecordsError, records_error_handler)

    @application.middleware("http")
    async def auth_enforcement(request: Request, call_next):
        path = request.url.path
        if _is_public_path(path):
            return await call_next(request)
        token = token_from_authorization(request.headers.get("authorization"))
        try:
            request.state.caller = records.policy.resolve_caller(token)
        except SessionError as exc:
            return _error_response(exc)
        except Exception as exc:
            # Store outages must not turn into an open door; report a bad token.
            logger.warning("Session store lookup failed: %s", exc.__class__.__name__)
            return _error_response(SessionError())
        return await call_next(request)

    @application.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.is_prod_like:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response

    application.include_router(auth_router)
    application.include_router(users_router)
    application.include_router(records_router)
    application.include_router(operations_router)
    return application


SETTINGS = load_settings()
# Minimal production safety checks (fail-fast on insecure config)
ensure_secure_config_on_startup(SETTINGS)
app = create_app(SETTINGS)
