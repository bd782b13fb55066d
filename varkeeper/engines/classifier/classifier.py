"""Classifier — obsolete / exact-duplicate / missing-dependency annotations.

Pure functions over a snapshot.  The caller's records are never mutated;
:func:`classify` returns fresh copies with every derived field recomputed,
so running it on already-annotated records yields identical results.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

import structlog

from varkeeper.core.identity import UNKNOWN_GROUP, normalize_id
from varkeeper.core.patterns import DEFAULT_SYSTEM_PATTERNS, is_system_dependency
from varkeeper.engines.identity_indexer.indexer import LibraryIndex, build_index
from varkeeper.models.package import PackageRecord

log = structlog.get_logger("varkeeper.engine")

LATEST_SUFFIX = ".latest"


def rank_by_version(records: Iterable[PackageRecord]) -> list[PackageRecord]:
    """Sort by parsed version, highest first; ties keep scan order."""
    return sorted(records, key=lambda r: (-r.parsed_version, r.scan_index))


def find_obsolete(index: LibraryIndex) -> set[str]:
    """Return file paths of every record that has a higher-versioned sibling.

    The ``Unknown`` bucket is skipped: its members are not versions of one
    package.
    """
    obsolete: set[str] = set()
    for key, group in index.group_map.items():
        if key == UNKNOWN_GROUP or len(group) < 2:
            continue
        ranked = rank_by_version(group)
        obsolete.update(r.file_path for r in ranked[1:])
    return obsolete


def is_exact_duplicate(record: PackageRecord, index: LibraryIndex) -> bool:
    """Enabled copies conflict at runtime; disabled copies only waste storage."""
    counts = index.enabled_copies if record.is_enabled else index.all_copies
    return counts[record.exact_key] > 1


def find_missing(
    record: PackageRecord,
    index: LibraryIndex,
    system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
) -> tuple[str, ...]:
    """Declared dependencies of an enabled record that no snapshot identity satisfies.

    A specific version is never satisfied by a different version of the same
    package; only ``.latest`` references accept any version.
    """
    if not record.is_enabled:
        return ()

    missing: list[str] = []
    for dep_id in record.declared_dependencies:
        if is_system_dependency(dep_id, system_patterns):
            continue
        if index.has_identity(dep_id):
            continue
        norm = normalize_id(dep_id)
        if norm.endswith(LATEST_SUFFIX) and index.has_base(norm[: -len(LATEST_SUFFIX)]):
            continue
        missing.append(dep_id)
    return tuple(missing)


def classify(
    records: Iterable[PackageRecord],
    index: LibraryIndex | None = None,
    *,
    system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
) -> list[PackageRecord]:
    """Annotate every record; returns a new list in input order."""
    snapshot = list(records)
    if index is None:
        index = build_index(snapshot)

    obsolete = find_obsolete(index)
    result = [
        replace(
            rec,
            is_obsolete=rec.file_path in obsolete,
            is_exact_duplicate=is_exact_duplicate(rec, index),
            missing_dependencies=find_missing(rec, index, system_patterns),
        )
        for rec in snapshot
    ]

    log.debug(
        "classifier.done",
        records=len(result),
        obsolete=len(obsolete),
        duplicates=sum(1 for r in result if r.is_exact_duplicate),
        missing_deps=sum(1 for r in result if r.missing_dependencies),
    )
    return result
