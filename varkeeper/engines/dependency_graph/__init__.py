"""Dependency graph engine — who depends on what, and where ids resolve."""

from varkeeper.engines.dependency_graph.graph import (
    DependencyGraph,
    DependencyResolution,
    build_graph,
)
from varkeeper.engines.dependency_graph.matchers import (
    DEFAULT_MATCHERS,
    DependencyMatcher,
    ExactIdentityMatcher,
    FilePathMatcher,
    LatestAvailableMatcher,
    SnapshotLookup,
)

__all__ = [
    "DEFAULT_MATCHERS",
    "DependencyGraph",
    "DependencyMatcher",
    "DependencyResolution",
    "ExactIdentityMatcher",
    "FilePathMatcher",
    "LatestAvailableMatcher",
    "SnapshotLookup",
    "build_graph",
]
