"""System/core dependency patterns — ids that are never reported missing."""

from __future__ import annotations

import os
from collections.abc import Iterable

from varkeeper.core.identity import normalize_id

DEFAULT_SYSTEM_PATTERNS: tuple[str, ...] = ("vam.core", "system.")


def is_system_dependency(dep_id: str, patterns: Iterable[str] = DEFAULT_SYSTEM_PATTERNS) -> bool:
    """Return True if *dep_id* starts with any (case-insensitive) system prefix."""
    norm = normalize_id(dep_id)
    return any(norm.startswith(normalize_id(p)) for p in patterns if p.strip())


def system_patterns_from_env() -> tuple[str, ...]:
    """Read ``VARKEEPER_SYSTEM_PATTERNS`` (comma-separated prefixes)."""
    raw = os.environ.get("VARKEEPER_SYSTEM_PATTERNS")
    if raw is None:
        return DEFAULT_SYSTEM_PATTERNS
    return tuple(p.strip() for p in raw.split(",") if p.strip())
