"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
make `backend/` and `backend/web` importable the way the app runs.
"""
import logging
import os
import sys
from pathlib import Path

import pytest

# Ensure modules in backend/ and backend/web are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
WEB_DIR = BACKEND_DIR / "web"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(REPO_ROOT), str(BACKEND_DIR), str(WEB_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

# The module-level app in main.py reads the environment at import time; keep
# it on the in-memory store and dev settings regardless of the shell.
os.environ["SESSIONS_BACKEND"] = "memory"
os.environ["REGISTRAR_ENV"] = "dev"
for _var in ("REGISTRAR_SEED_FILE", "REGISTRAR_ADMIN_EMAIL", "REGISTRAR_ADMIN_PASSWORD"):
    os.environ.pop(_var, None)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def silence_registrar_info_logs():
    """Reduce noise from expected denials in passing tests.

    Many tests intentionally exercise 401/403 paths; the core logs these at
    INFO. Raise the `registrar` logger to WARNING during tests.
    """
    logger = logging.getLogger("registrar")
    old = logger.level
    logger.setLevel(logging.WARNING)
    try:
        yield
    finally:
        logger.setLevel(old)


@pytest.fixture
def world():
    """Fresh records core: Faculty 1, Student 2, Admin 3, Student 4, Faculty 5."""
    from utils.records import build_world

    return build_world()
