"""
Shared helper for wiring the records core (stores, policy, service).

Why:
    The app and the tests need the same object graph: one registry, one
    session store, and a credential verifier, policy engine and service that
    all share them. Building it in one place keeps the wiring identical
    between production startup and test apps.

Security:
    Bootstrap admin credentials come only from the passed settings (never from
    hard-coded defaults). Seed and bootstrap failures abort startup.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union
import logging

from academics.errors import ValidationError
from academics.registry import InMemoryRegistry
from academics.seed import apply_seed, load_seed_file
from academics.services import RecordsService
from identity_access.authenticator import Authenticator
from identity_access.credentials import HashedCredentialVerifier, hash_password
from identity_access.domain import Role
from identity_access.policy import PolicyEngine
from identity_access.stores import SessionStore
from identity_access.stores_db import DBSessionStore

try:
    from .config import Settings
except ImportError:
    from config import Settings  # type: ignore

logger = logging.getLogger("registrar.web")


@dataclass
class RecordsWiring:
    registry: InMemoryRegistry
    sessions: Union[SessionStore, DBSessionStore]
    policy: PolicyEngine
    service: RecordsService


def _build_session_store(settings: Settings) -> Union[SessionStore, DBSessionStore]:
    if settings.sessions_backend == "db":
        logger.info("Session store: Postgres")
        return DBSessionStore(dsn=settings.database_url)
    return SessionStore()


def _bootstrap_admin(registry: InMemoryRegistry, settings: Settings) -> None:
    if not settings.admin_email:
        return
    if registry.find_user_by_email(settings.admin_email) is not None:
        return
    if not settings.admin_password:
        raise SystemExit("Refusing to start: REGISTRAR_ADMIN_EMAIL is set without REGISTRAR_ADMIN_PASSWORD.")
    try:
        registry.create_user(
            name=settings.admin_name,
            email=settings.admin_email,
            role=Role.ADMIN,
            credential=hash_password(settings.admin_password, iterations=settings.hash_iterations),
        )
    except ValidationError as exc:
        raise SystemExit(f"Refusing to start: bootstrap admin rejected ({exc.message}).") from None
    logger.info("Bootstrap admin account created")


def build_records(settings: Settings, *, registry: InMemoryRegistry | None = None) -> RecordsWiring:
    """Build the records object graph for `settings`.

    Behavior:
        - Applies `settings.seed_file` (if set) to a fresh registry.
        - Creates the bootstrap admin when configured and not already seeded.
        - Selects the session store from `settings.sessions_backend`.
    """
    if registry is None:
        registry = InMemoryRegistry()
        if settings.seed_file:
            apply_seed(registry, load_seed_file(settings.seed_file), hash_iterations=settings.hash_iterations)
    _bootstrap_admin(registry, settings)

    sessions = _build_session_store(settings)
    verifier = HashedCredentialVerifier(registry.find_user_by_email, iterations=settings.hash_iterations)
    policy = PolicyEngine(sessions, registry.get_user)
    service = RecordsService(
        registry,
        sessions=sessions,
        policy=policy,
        authenticator=Authenticator(verifier, sessions),
        hash_iterations=settings.hash_iterations,
    )
    return RecordsWiring(registry=registry, sessions=sessions, policy=policy, service=service)


__all__ = ["RecordsWiring", "build_records"]
