"""Dependency graph — forward and reverse adjacency over a snapshot.

Every record contributes edges, enabled or not: a disabled consumer still
counts as a user when deciding whether a deletion breaks something.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

import structlog

from varkeeper.core.identity import normalize_id
from varkeeper.core.patterns import DEFAULT_SYSTEM_PATTERNS, is_system_dependency
from varkeeper.engines.dependency_graph.matchers import (
    DEFAULT_MATCHERS,
    DependencyMatcher,
    SnapshotLookup,
    run_matchers,
)
from varkeeper.models.package import PackageRecord

log = structlog.get_logger("varkeeper.engine")

ResolutionStatus = Literal["valid", "mismatch", "system", "missing"]


@dataclass
class DependencyResolution:
    """Where a dependency id points, for click-through navigation."""

    dep_id: str
    status: ResolutionStatus
    record: PackageRecord | None = None
    matcher: str | None = None


def _best_candidate(candidates: Sequence[PackageRecord]) -> PackageRecord:
    """Enabled first, then newest, then scan order."""
    return min(
        candidates,
        key=lambda r: (not r.is_enabled, -r.parsed_version, r.scan_index),
    )


def _node_key(record: PackageRecord) -> str:
    if record.identity.is_known:
        return normalize_id(record.identity.full_id)
    return record.file_path


@dataclass
class DependencyGraph:
    """Adjacency built by :func:`build_graph`.

    ``forward`` maps a (normalised) identity to its declared dependency ids.
    ``reverse`` maps a provider file path to the file paths depending on it.
    ``edges`` is the resolved file-level view of ``forward``.
    """

    records: dict[str, PackageRecord] = field(default_factory=dict)
    forward: dict[str, set[str]] = field(default_factory=dict)
    reverse: dict[str, set[str]] = field(default_factory=dict)
    edges: dict[str, set[str]] = field(default_factory=dict)
    lookup: SnapshotLookup = field(default_factory=SnapshotLookup)
    system_patterns: tuple[str, ...] = DEFAULT_SYSTEM_PATTERNS
    matchers: tuple[DependencyMatcher, ...] = DEFAULT_MATCHERS

    def dependencies_of(self, file_path: str) -> set[str]:
        return self.edges.get(file_path, set())

    def dependents_of(self, file_path: str) -> set[str]:
        return self.reverse.get(file_path, set())

    def referenced_by(self, file_path: str) -> list[str]:
        return sorted(self.dependents_of(file_path))

    def orphans(self) -> list[str]:
        """File paths nothing depends on, in snapshot order."""
        return [path for path in self.records if not self.reverse.get(path)]

    def locate(self, dep_id: str) -> DependencyResolution:
        """Resolve *dep_id* to the record a user would open.

        This is navigation only: a ``mismatch`` suggests the latest available
        version but never marks the dependency as satisfied.
        """
        if is_system_dependency(dep_id, self.system_patterns):
            return DependencyResolution(dep_id=dep_id, status="system")

        matcher, found = run_matchers(dep_id, self.lookup, self.matchers)
        if not found:
            return DependencyResolution(dep_id=dep_id, status="missing")

        status: ResolutionStatus = "valid"
        if matcher == "latest" and not normalize_id(dep_id).endswith(".latest"):
            status = "mismatch"
        return DependencyResolution(
            dep_id=dep_id,
            status=status,
            record=_best_candidate(found),
            matcher=matcher,
        )


def build_graph(
    records: Iterable[PackageRecord],
    *,
    system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
    matchers: Sequence[DependencyMatcher] = DEFAULT_MATCHERS,
) -> DependencyGraph:
    """Build forward/reverse adjacency for *records*.

    Dependency ids resolve through *matchers* in order (exact identity, file
    path, latest available by name).  System ids and ids no matcher finds get
    no reverse edge.
    """
    snapshot = list(records)
    lookup = SnapshotLookup.build(snapshot)
    graph = DependencyGraph(
        records={r.file_path: r for r in snapshot},
        lookup=lookup,
        system_patterns=tuple(system_patterns),
        matchers=tuple(matchers),
    )

    resolved: dict[str, list[str]] = {}
    unresolved = 0
    for rec in snapshot:
        graph.reverse.setdefault(rec.file_path, set())
        deps = graph.forward.setdefault(_node_key(rec), set())
        deps.update(rec.declared_dependencies)
        providers = graph.edges.setdefault(rec.file_path, set())

        for dep_id in rec.declared_dependencies:
            if is_system_dependency(dep_id, graph.system_patterns):
                continue
            key = normalize_id(dep_id)
            if key not in resolved:
                _, found = run_matchers(dep_id, lookup, graph.matchers)
                resolved[key] = [p.file_path for p in found]
                if not found:
                    unresolved += 1
            for provider in resolved[key]:
                if provider == rec.file_path:
                    continue
                providers.add(provider)
                graph.reverse.setdefault(provider, set()).add(rec.file_path)

    log.debug(
        "graph.built",
        nodes=len(graph.records),
        edges=sum(len(v) for v in graph.edges.values()),
        unresolved=unresolved,
    )
    return graph
