"""Heuristic personal-data patterns used by ``scan.artifacts.no_personal_data``."""

from __future__ import annotations

import re
from typing import Final

PERSONAL_DATA_PATTERNS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("national_id", re.compile(r"\b[1-9]\d{12}\b", re.ASCII)),
    ("email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)),
    ("phone", re.compile(r"\b(\+4|0)7\d{8}\b", re.ASCII)),
    ("card_number", re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b", re.ASCII)),
    (
        "secret_assignment",
        re.compile(
            r"\b(password|secret|token|api[_-]?key)\s*[:=]\s*['\"]?[^\s'\"]+",
            re.ASCII | re.IGNORECASE,
        ),
    ),
)


def find_personal_data(text: str) -> str | None:
    """Return the name of the first pattern that matches ``text``, if any."""

    for name, pattern in PERSONAL_DATA_PATTERNS:
        if pattern.search(text):
            return name
    return None


def contains_personal_data(text: str) -> bool:
    return find_personal_data(text) is not None


__all__ = ["PERSONAL_DATA_PATTERNS", "contains_personal_data", "find_personal_data"]
