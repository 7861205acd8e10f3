"""
Configuration and startup security checks for the records API.

Why: Student records must not be served from an accidentally insecure
deployment. This module reads the environment once into `Settings` and
provides a single guard that enforces minimal production safety constraints
without burdening local development.

Permissions: The caller needs no special privileges. The functions simply read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

from identity_access.credentials import DEFAULT_ITERATIONS

# Placeholder passwords that must never protect a prod-like admin account.
_PLACEHOLDER_PASSWORDS = {"password", "changeme", "change_me", "admin", "secret"}
MIN_PROD_PASSWORD_LENGTH = 12
MIN_PROD_HASH_ITERATIONS = 100_000


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


@dataclass(frozen=True)
class Settings:
    environment: str = "dev"
    sessions_backend: str = "memory"
    database_url: str = ""
    seed_file: str = ""
    admin_email: str = ""
    admin_password: str = ""
    admin_name: str = "Administrator"
    hash_iterations: int = DEFAULT_ITERATIONS

    @property
    def is_prod_like(self) -> bool:
        return _is_prod_like(self.environment)


def load_settings() -> Settings:
    """Read settings from the environment (no caching; callers keep the result)."""
    raw_iterations = (os.getenv("PASSWORD_HASH_ITERATIONS") or "").strip()
    try:
        iterations = int(raw_iterations) if raw_iterations else DEFAULT_ITERATIONS
    except ValueError:
        raise SystemExit("Refusing to start: PASSWORD_HASH_ITERATIONS must be an integer.") from None
    return Settings(
        environment=(os.getenv("REGISTRAR_ENV", "dev") or "dev").strip().lower(),
        sessions_backend=(os.getenv("SESSIONS_BACKEND", "memory") or "memory").strip().lower(),
        database_url=(os.getenv("DATABASE_URL") or "").strip(),
        seed_file=(os.getenv("REGISTRAR_SEED_FILE") or "").strip(),
        admin_email=(os.getenv("REGISTRAR_ADMIN_EMAIL") or "").strip(),
        admin_password=os.getenv("REGISTRAR_ADMIN_PASSWORD") or "",
        admin_name=(os.getenv("REGISTRAR_ADMIN_NAME") or "Administrator").strip(),
        hash_iterations=iterations,
    )


def ensure_secure_config_on_startup(settings: Settings | None = None) -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - Bootstrap admin password (if configured) must not be a placeholder and
      must have at least MIN_PROD_PASSWORD_LENGTH characters.
    - Password hashing work factor must be at least MIN_PROD_HASH_ITERATIONS.
    - `SESSIONS_BACKEND=db` requires DATABASE_URL, and the DSN must not
      explicitly disable TLS.
    """
    settings = settings or load_settings()
    if not settings.is_prod_like:
        return  # dev/test remain permissive

    # 1) Bootstrap admin credentials
    if settings.admin_email:
        pw = settings.admin_password
        if pw.strip().lower() in _PLACEHOLDER_PASSWORDS or len(pw) < MIN_PROD_PASSWORD_LENGTH:
            raise SystemExit(
                "Refusing to start: REGISTRAR_ADMIN_PASSWORD is a placeholder or too short in production."
            )

    # 2) Password hashing work factor
    if settings.hash_iterations < MIN_PROD_HASH_ITERATIONS:
        raise SystemExit(
            f"Refusing to start: PASSWORD_HASH_ITERATIONS must be >= {MIN_PROD_HASH_ITERATIONS} in production."
        )

    # 3) Session persistence
    if settings.sessions_backend == "db":
        if not settings.database_url:
            raise SystemExit("Refusing to start: SESSIONS_BACKEND=db requires DATABASE_URL.")
        if "sslmode=disable" in settings.database_url:
            raise SystemExit(
                "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
            )
