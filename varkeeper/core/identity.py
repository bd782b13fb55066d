"""Identity helpers — version parsing, id/path normalisation, file-name fallback."""

from __future__ import annotations

import re

UNKNOWN_GROUP = "Unknown"

ENABLED_SUFFIX = ".var"
DISABLED_SUFFIX = ".var.disabled"

# Mirrors JavaScript parseInt(): optional whitespace, optional sign, digits.
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_version(version: str | None) -> int:
    """Return the leading integer of *version*, or 0 when there is none.

    ``"12"`` -> 12, ``"3.1"`` -> 3, ``"latest"`` -> 0, ``"v2"`` -> 0.
    This is an ordering heuristic, not semantic versioning.
    """
    if not version:
        return 0
    m = _LEADING_INT.match(version)
    return int(m.group(1)) if m else 0


def normalize_id(dep_id: str) -> str:
    """Dependency ids compare case-insensitively; dots are the only structure."""
    return dep_id.strip().lower()


def normalize_path(path: str) -> str:
    """Normalise separators, drop a trailing slash and fold case."""
    return path.replace("\\", "/").rstrip("/").lower()


def base_name(path: str) -> str:
    """Last path component, splitting on both separator styles."""
    return re.split(r"[\\/]", path.rstrip("\\/"))[-1]


def parent_dir(path: str) -> str:
    norm = normalize_path(path)
    idx = norm.rfind("/")
    return norm[:idx] if idx >= 0 else ""


def is_at_root(file_path: str, library_root: str) -> bool:
    """True if *file_path* sits directly in *library_root* (not a subfolder)."""
    if not library_root:
        return False
    return parent_dir(file_path) == normalize_path(library_root)


def strip_package_suffix(file_name: str) -> str:
    lower = file_name.lower()
    if lower.endswith(DISABLED_SUFFIX):
        return file_name[: -len(DISABLED_SUFFIX)]
    if lower.endswith(ENABLED_SUFFIX):
        return file_name[: -len(ENABLED_SUFFIX)]
    return file_name


def is_enabled_file(file_name: str) -> bool:
    """Active packages end in ``.var``; disabled ones carry ``.var.disabled``."""
    return file_name.lower().endswith(ENABLED_SUFFIX)


def _capitalize(part: str) -> str:
    return part[:1].upper() + part[1:]


def identity_from_filename(file_name: str) -> tuple[str, str, str] | None:
    """Derive ``(creator, package_name, version)`` from ``Creator.Name.Version.var``.

    Returns ``None`` when the name has fewer than three dot-separated parts.
    """
    parts = strip_package_suffix(file_name).split(".")
    if len(parts) < 3:
        return None
    return _capitalize(parts[0]), _capitalize(parts[1]), parts[-1]
