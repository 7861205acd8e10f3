"""
Seed loading and the seed_check CLI.

The seed goes through the registry's public mutations, so the same invariants
apply to a seed file as to API calls.
"""
from __future__ import annotations

from pathlib import Path
import textwrap

import pytest
from click.testing import CliRunner

from academics.errors import InvalidReferenceError, ValidationError
from academics.registry import InMemoryRegistry
from academics.seed import SeedError, apply_seed, load_seed_file
from identity_access.credentials import check_password
from identity_access.domain import Role
from identity_access.errors import InvalidEnrollmentTarget
from tools.seed_check import cli

EXAMPLE_SEED = Path(__file__).resolve().parents[2] / "seed.example.yml"


def _write(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "seed.yml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


def test_example_seed_applies_in_file_order():
    registry = InMemoryRegistry()
    summary = apply_seed(registry, load_seed_file(EXAMPLE_SEED), hash_iterations=1000)
    assert (summary.users, summary.courses, summary.enrollments, summary.assignments) == (4, 1, 1, 1)

    faculty, student, admin = registry.get_user(1), registry.get_user(2), registry.get_user(3)
    assert (faculty.role, student.role, admin.role) == (Role.FACULTY, Role.STUDENT, Role.ADMIN)
    assert check_password("password", admin.credential)

    course = registry.get_course(1)
    assert course.professor_id == faculty.id
    assert [u.id for u in registry.list_students(course.id)] == [student.id]
    assert [a.name for a in registry.list_assignments(course.id)] == ["Graphs"]


def test_empty_document_is_a_noop(tmp_path):
    path = _write(tmp_path, "")
    summary = apply_seed(InMemoryRegistry(), load_seed_file(path), hash_iterations=1000)
    assert summary.users == 0


def test_non_mapping_document_is_rejected(tmp_path):
    path = _write(tmp_path, "- just\n- a list\n")
    with pytest.raises(SeedError):
        load_seed_file(path)


def test_missing_field_is_reported():
    with pytest.raises(SeedError) as exc:
        apply_seed(InMemoryRegistry(), {"users": [{"name": "Nobody", "role": "Student", "password": "pw"}]})
    assert "email" in str(exc.value)


def test_unknown_references_are_reported():
    data = {
        "users": [{"name": "Fay", "email": "fay@example.com", "role": "Faculty", "password": "pw"}],
        "courses": [{"name": "C", "professor": "ghost@example.com"}],
    }
    with pytest.raises(SeedError):
        apply_seed(InMemoryRegistry(), data, hash_iterations=1000)


def test_duplicate_course_names_are_rejected():
    data = {
        "users": [{"name": "Fay", "email": "fay@example.com", "role": "Faculty", "password": "pw"}],
        "courses": [
            {"name": "Algebra", "professor": "fay@example.com"},
            {"name": "Algebra", "professor": "fay@example.com"},
        ],
        "assignments": [{"course": "Algebra", "name": "Sets"}],
    }
    registry = InMemoryRegistry()
    with pytest.raises(SeedError) as exc:
        apply_seed(registry, data, hash_iterations=1000)
    assert "duplicate course name" in str(exc.value)
    assert registry.list_assignments() == []


def test_registry_invariants_apply_to_seeds():
    base = [
        {"name": "Fay", "email": "fay@example.com", "role": "Faculty", "password": "pw"},
        {"name": "Ada", "email": "ada@example.com", "role": "Admin", "password": "pw"},
    ]
    with pytest.raises(InvalidReferenceError):
        apply_seed(InMemoryRegistry(), {"users": base, "courses": [{"name": "C", "professor": "ada@example.com"}]}, hash_iterations=1000)
    with pytest.raises(InvalidEnrollmentTarget):
        apply_seed(
            InMemoryRegistry(),
            {"users": base, "courses": [{"name": "C", "professor": "fay@example.com", "students": ["ada@example.com"]}]},
            hash_iterations=1000,
        )
    with pytest.raises(ValidationError):
        apply_seed(
            InMemoryRegistry(),
            {"users": [{"name": "Bad", "email": "bad", "role": "Student", "password": "pw"}]},
            hash_iterations=1000,
        )


def test_cli_accepts_example_seed():
    runner = CliRunner()
    result = runner.invoke(cli, ["--seed-file", str(EXAMPLE_SEED)])
    assert result.exit_code == 0, result.output
    assert "Seed OK: users=4, courses=1, enrollments=1, assignments=1" in result.output


def test_cli_rejects_invalid_yaml(tmp_path):
    path = _write(tmp_path, "users: [unclosed\n")
    result = CliRunner().invoke(cli, ["--seed-file", str(path)])
    assert result.exit_code != 0
    assert "invalid YAML" in result.output


def test_cli_reports_registry_rejection(tmp_path):
    path = _write(
        tmp_path,
        """
        users:
          - {name: Sam, email: sam@example.com, role: Student, password: pw}
          - {name: Sam Again, email: SAM@example.com, role: Student, password: pw}
        """,
    )
    result = CliRunner().invoke(cli, ["--seed-file", str(path)])
    assert result.exit_code != 0
    assert "rejected by registry" in result.output
    assert "email must be unique" in result.output
