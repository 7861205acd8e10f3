"""
GPA derivation from letter grades.

Why: GPA is a read-side value; storing it would let it drift from the grades.
The scale is the common 4.0 scale with +/- steps.

Behavior:
    - `calculate_gpa([])` returns None: a student without grades has no GPA
      (not 0.0, which would read as all-F).
    - The mean is rounded to two decimals.
    - Unknown letters raise ValueError.
"""
from __future__ import annotations

from typing import Iterable, Optional

GRADE_POINTS = {
    "A+": 4.0,
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
    "C-": 1.7,
    "D+": 1.3,
    "D": 1.0,
    "D-": 0.7,
    "F": 0.0,
}


def normalize_letter(value: object) -> str:
    """Return the canonical letter (upper-case, trimmed) or raise ValueError."""
    if not isinstance(value, str):
        raise ValueError("invalid_grade")
    letter = value.strip().upper()
    if letter not in GRADE_POINTS:
        raise ValueError("invalid_grade")
    return letter


def grade_points(letter: str) -> float:
    return GRADE_POINTS[normalize_letter(letter)]


def calculate_gpa(letters: Iterable[str]) -> Optional[float]:
    points = [grade_points(letter) for letter in letters]
    if not points:
        return None
    return round(sum(points) / len(points), 2)
