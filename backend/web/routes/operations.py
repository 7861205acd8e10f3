"""Operations endpoints (health probe for load balancers and operators)."""

from __future__ import annotations

from fastapi import APIRouter, Request

from .security import private_json

operations_router = APIRouter(tags=["Operations"])


@operations_router.get("/health")
async def health(request: Request):
    """
    Return a minimal liveness document.

    Permissions:
        Public. Exposes only the environment name and session backend.
    """
    settings = request.app.state.settings
    return private_json({"status": "healthy", "environment": settings.environment, "sessions": settings.sessions_backend})
