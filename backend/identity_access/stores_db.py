"""
Database-backed SessionStore for production use (Postgres).

Why: In-memory sessions are not durable and do not scale across instances. This
store persists sessions in Postgres while keeping the token opaque and the row
PII-free (only the numeric user id is stored).

Security:
- Revocation flips `status` to 'revoked' instead of deleting the row, so a
  logged-out token can never be resurrected by a later insert.
- Each operation is a single SQL statement; validate/revoke are atomic at the
  database level (`update ... where status = 'active' returning`).

Note: This module uses psycopg3. It is imported only when enabled via
`SESSIONS_BACKEND=db`. Tests can continue to use the in-memory store.

Expected schema:
    create table app_sessions (
        token text primary key,
        user_id bigint not null,
        status text not null default 'active',
        created_at timestamptz not null default now()
    );
"""
from __future__ import annotations

from typing import Optional
import logging
import os
import re
import secrets

try:
    import psycopg
    from psycopg import sql
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional dependency in dev
    psycopg = None  # type: ignore
    sql = None  # type: ignore
    HAVE_PSYCOPG = False

from .errors import SessionError

logger = logging.getLogger("registrar.identity_access")

_TABLE_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$')


class DBSessionStore:
    """Postgres-backed session store.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string.
    table:
        Table name, optionally schema-qualified. Defaults to `public.app_sessions`.
    """

    def __init__(self, dsn: str | None = None, table: str = "public.app_sessions", token_bytes: int = 24) -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBSessionStore")
        self._dsn = dsn or os.getenv("DATABASE_URL", "")
        if not self._dsn:
            raise RuntimeError("No database DSN provided for DBSessionStore")
        # Validate table identifier early (defense-in-depth)
        if not _TABLE_RE.match(table or ""):
            raise ValueError("Invalid table name")
        self._table = table
        self._token_bytes = token_bytes

    def _identifier(self):
        if "." in self._table:
            schema, name = self._table.split(".", 1)
            return sql.Identifier(schema, name)
        return sql.Identifier(self._table)

    def _stmt(self, template: str):
        return sql.SQL(template).format(table=self._identifier())

    def issue(self, user_id: int) -> str:
        token = secrets.token_urlsafe(self._token_bytes)
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    self._stmt("insert into {table} (token, user_id, status) values (%s, %s, 'active')"),
                    (token, int(user_id)),
                )
        return token

    def validate(self, token: Optional[str]) -> int:
        if not token:
            raise SessionError()
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    self._stmt("select user_id from {table} where token = %s and status = 'active'"),
                    (token,),
                )
                row = cur.fetchone()
        if not row:
            raise SessionError()
        return int(row[0])

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            raise SessionError()
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    self._stmt(
                        "update {table} set status = 'revoked' "
                        "where token = %s and status = 'active' returning user_id"
                    ),
                    (token,),
                )
                row = cur.fetchone()
        if not row:
            raise SessionError()
        logger.info("Session revoked for user_id=%s", row[0])
        return True
