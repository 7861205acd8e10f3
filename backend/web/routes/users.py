"""
Users API routes: directory queries and account creation.

Why:
    Any signed-in user may browse the directory (users, students with their
    courses, grades and GPA, faculty with their teaching load). Creating
    accounts is an Admin operation decided by the policy table.
"""
from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from .security import private_json, records_service, request_token

try:
    from ..serializers import serialize_faculty, serialize_student, serialize_user
except ImportError:
    from serializers import serialize_faculty, serialize_student, serialize_user  # type: ignore


users_router = APIRouter(tags=["Users"])  # explicit paths below


class UserCreate(BaseModel):
    name: str
    # Plain str: syntax is checked by the registry so the contract message
    # ("Validation isEmail on email failed") is the one clients see.
    email: str
    role: str
    password: str


@users_router.get("/api/users")
async def list_users(request: Request):
    """List all users (id, name, email, role).

    Permissions:
        Any valid session.
    """
    users = records_service(request).users(request_token(request))
    return private_json([serialize_user(u) for u in users])


@users_router.get("/api/students")
async def list_students(request: Request):
    """List students with courses, assignments, grades and GPA.

    Permissions:
        Any valid session.
    """
    profiles = records_service(request).students(request_token(request))
    return private_json([serialize_student(p) for p in profiles])


@users_router.get("/api/faculty")
async def list_faculty(request: Request):
    """List faculty with the courses they teach.

    Permissions:
        Any valid session.
    """
    profiles = records_service(request).faculty(request_token(request))
    return private_json([serialize_faculty(p) for p in profiles])


@users_router.post("/api/users")
async def create_user(request: Request, payload: UserCreate):
    """Create a user account.

    Behavior:
        - 201 with the new user
        - 400 `Validation error: ...` on bad email, duplicate email or role

    Permissions:
        Caller must have role `Admin`.
    """
    user = records_service(request).create_user(
        request_token(request),
        name=payload.name,
        email=payload.email,
        role=payload.role,
        password=payload.password,
    )
    return private_json(serialize_user(user), status_code=201)
