"""
Seed data loader (YAML) for the academic registry.

Why:
    Deployments and demos start from known users, courses and rosters (for
    example the admin account clients log in with first). Seeding goes through
    the registry's public mutations, so a seed file cannot create state the
    invariants would reject.

Format:
    users:
      - {name: Ada Admin, email: admin@example.com, role: Admin, password: "..."}
      - {name: Fay Faculty, email: faculty@example.com, role: Faculty, password: "..."}
    courses:
      - name: Theory of Testing
        professor: faculty@example.com      # email of a Faculty user
        students: [student@example.com]     # emails of Student users
    assignments:
      - {course: Theory of Testing, name: Graphs}

References use emails and course names; ids are assigned by the registry in
file order.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping
import logging

import yaml

from identity_access.credentials import DEFAULT_ITERATIONS, hash_password

from .registry import InMemoryRegistry

logger = logging.getLogger("registrar.academics")


class SeedError(ValueError):
    """Seed document is structurally invalid or references unknown entries."""


@dataclass
class SeedSummary:
    users: int = 0
    courses: int = 0
    enrollments: int = 0
    assignments: int = 0


def load_seed_file(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SeedError("seed document must be a mapping")
    return data


def _entries(data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise SeedError(f"'{key}' must be a list of mappings")
    return items


def _required(entry: Mapping[str, Any], field: str, section: str) -> Any:
    value = entry.get(field)
    if value is None or value == "":
        raise SeedError(f"{section} entry missing '{field}'")
    return value


def apply_seed(registry: InMemoryRegistry, data: Mapping[str, Any], *, hash_iterations: int = DEFAULT_ITERATIONS) -> SeedSummary:
    """Create all seed entries in `registry`. Registry errors propagate unchanged."""
    summary = SeedSummary()
    user_ids: Dict[str, int] = {}
    for entry in _entries(data, "users"):
        email = str(_required(entry, "email", "users"))
        user = registry.create_user(
            name=str(_required(entry, "name", "users")),
            email=email,
            role=str(_required(entry, "role", "users")),
            credential=hash_password(str(_required(entry, "password", "users")), iterations=hash_iterations),
        )
        user_ids[email.strip().lower()] = user.id
        summary.users += 1

    def _user_id(email: Any, section: str) -> int:
        uid = user_ids.get(str(email).strip().lower())
        if uid is None:
            raise SeedError(f"{section} references unknown user '{email}'")
        return uid

    course_ids: Dict[str, int] = {}
    for entry in _entries(data, "courses"):
        name = str(_required(entry, "name", "courses"))
        # Assignments reference courses by name, so names must be unique here.
        if name in course_ids:
            raise SeedError(f"duplicate course name '{name}'")
        course = registry.create_course(name=name, professor_id=_user_id(_required(entry, "professor", "courses"), "courses"))
        course_ids[name] = course.id
        summary.courses += 1
        students = entry.get("students") or []
        if not isinstance(students, list):
            raise SeedError("course 'students' must be a list of emails")
        for email in students:
            registry.add_student(course.id, _user_id(email, "courses"))
            summary.enrollments += 1

    for entry in _entries(data, "assignments"):
        course_name = str(_required(entry, "course", "assignments"))
        if course_name not in course_ids:
            raise SeedError(f"assignments references unknown course '{course_name}'")
        registry.create_assignment(course_id=course_ids[course_name], name=str(_required(entry, "name", "assignments")))
        summary.assignments += 1

    logger.info(
        "Seed applied: users=%s courses=%s enrollments=%s assignments=%s",
        summary.users, summary.courses, summary.enrollments, summary.assignments,
    )
    return summary
