"""
Shared web helpers for the records routes.

Contains the token extraction and the no-store JSON response used by every
router. Keeping a single implementation avoids security drift (one router
forgetting the cache header or reading the token differently).
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from academics.services import RecordsService

try:
    from ..auth_utils import token_from_authorization
except ImportError:
    from auth_utils import token_from_authorization  # type: ignore

PRIVATE_HEADERS = {"Cache-Control": "private, no-store"}


def private_json(payload: Any, *, status_code: int = 200) -> JSONResponse:
    """Return JSON that neither browsers nor shared caches may store.

    Records responses are user- and role-scoped; caching them in a proxy would
    leak them to other clients.
    """
    return JSONResponse(content=payload, status_code=status_code, headers=dict(PRIVATE_HEADERS))


def request_token(request: Request) -> Optional[str]:
    return token_from_authorization(request.headers.get("authorization"))


def records_service(request: Request) -> RecordsService:
    return request.app.state.records.service
