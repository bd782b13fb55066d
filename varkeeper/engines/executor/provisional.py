"""Provisional patches — re-classified snapshot copies after one mutation.

Used right after a single toggle or delete succeeds, so the host can show
the new state before the next full rescan replaces it.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import replace

from varkeeper.core.identity import base_name
from varkeeper.core.patterns import DEFAULT_SYSTEM_PATTERNS
from varkeeper.engines.classifier.classifier import classify
from varkeeper.models.package import PackageRecord


def patch_toggled(
    records: Iterable[PackageRecord],
    old_path: str,
    new_path: str | None,
    enabled: bool,
    *,
    system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
) -> list[PackageRecord]:
    """Move the record at *old_path* to *new_path* with the new enabled state.

    If *new_path* is already another record's path (a merge folded the toggled
    copy into an existing file), the toggled record is dropped instead.
    """
    snapshot = list(records)
    target = new_path or old_path
    occupied = any(r.file_path == target and r.file_path != old_path for r in snapshot)

    patched: list[PackageRecord] = []
    for rec in snapshot:
        if rec.file_path != old_path:
            patched.append(rec)
        elif not occupied:
            patched.append(
                replace(rec, file_path=target, file_name=base_name(target), is_enabled=enabled)
            )
    return classify(patched, system_patterns=system_patterns)


def patch_removed(
    records: Iterable[PackageRecord],
    paths: Collection[str],
    *,
    system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
) -> list[PackageRecord]:
    """Drop deleted files from the snapshot and re-classify the rest."""
    gone = set(paths)
    return classify([r for r in records if r.file_path not in gone], system_patterns=system_patterns)
