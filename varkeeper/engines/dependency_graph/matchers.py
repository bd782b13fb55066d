"""Dependency-id matchers — ordered strategies for locating providers.

Each matcher is a pure function of the dependency id and a
:class:`SnapshotLookup`; the graph builder tries them in order and stops at
the first one that returns candidates.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from varkeeper.core.identity import normalize_id, normalize_path
from varkeeper.models.package import PackageRecord


@dataclass
class SnapshotLookup:
    """Normalised indexes over a snapshot used by the matchers."""

    by_identity: dict[str, list[PackageRecord]] = field(default_factory=dict)
    by_path: dict[str, PackageRecord] = field(default_factory=dict)
    by_base: dict[str, list[PackageRecord]] = field(default_factory=dict)

    @classmethod
    def build(cls, records: Iterable[PackageRecord]) -> SnapshotLookup:
        lookup = cls()
        for rec in records:
            lookup.by_path[normalize_path(rec.file_path)] = rec
            if not rec.identity.is_known:
                continue
            lookup.by_identity.setdefault(normalize_id(rec.identity.full_id), []).append(rec)
            lookup.by_base.setdefault(normalize_id(rec.group_key), []).append(rec)
        return lookup


@runtime_checkable
class DependencyMatcher(Protocol):
    """Interface every matcher strategy satisfies."""

    name: str

    def match(self, dep_id: str, lookup: SnapshotLookup) -> list[PackageRecord]: ...


class ExactIdentityMatcher:
    """``Creator.Package.Version`` names an identity present in the snapshot."""

    name = "exact"

    def match(self, dep_id: str, lookup: SnapshotLookup) -> list[PackageRecord]:
        return list(lookup.by_identity.get(normalize_id(dep_id), []))


class FilePathMatcher:
    """Direct path-style references to a package file."""

    name = "path"

    def match(self, dep_id: str, lookup: SnapshotLookup) -> list[PackageRecord]:
        rec = lookup.by_path.get(normalize_path(dep_id.strip()))
        return [rec] if rec is not None else []


class LatestAvailableMatcher:
    """Strip trailing segments until a ``Creator.Package`` base matches.

    Returns every record carrying the highest parsed version of that base,
    the way a user would pick "latest available" by hand.
    """

    name = "latest"

    def match(self, dep_id: str, lookup: SnapshotLookup) -> list[PackageRecord]:
        current = normalize_id(dep_id)
        while "." in current:
            current = current[: current.rfind(".")]
            candidates = lookup.by_base.get(current)
            if candidates:
                top = max(r.parsed_version for r in candidates)
                return [r for r in candidates if r.parsed_version == top]
        return []


DEFAULT_MATCHERS: tuple[DependencyMatcher, ...] = (
    ExactIdentityMatcher(),
    FilePathMatcher(),
    LatestAvailableMatcher(),
)


def run_matchers(
    dep_id: str,
    lookup: SnapshotLookup,
    matchers: Iterable[DependencyMatcher] = DEFAULT_MATCHERS,
) -> tuple[str | None, list[PackageRecord]]:
    """Return ``(matcher_name, providers)`` from the first matcher that hits."""
    for matcher in matchers:
        found = matcher.match(dep_id, lookup)
        if found:
            return matcher.name, found
    return None, []
