"""
Identity domain constants and simple helpers.

Why:
- One `Role` enum shared by the policy table, the registry and the web
  layer.
- Keep role names aligned with the wire contract ("Admin", "Faculty",
  "Student") so adapters never translate them.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    FACULTY = "Faculty"
    STUDENT = "Student"

    @classmethod
    def parse(cls, value: object) -> "Role":
        """Return the Role for `value` (case-insensitive) or raise ValueError."""
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            needle = value.strip().lower()
            for role in cls:
                if role.value.lower() == needle:
                    return role
        raise ValueError("invalid_role")


__all__ = ["Role"]
