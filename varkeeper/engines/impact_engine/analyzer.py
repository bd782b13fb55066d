"""Impact analyzer — what else goes when a set of packages is deleted."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from varkeeper.engines.dependency_graph.graph import DependencyGraph

log = structlog.get_logger("varkeeper.engine")


@dataclass
class ImpactSet:
    """Cascade candidates for a deletion; targets themselves are excluded.

    ``safe_cascade`` holds dependencies left with no surviving dependent.
    ``forced_cascade`` is every transitive dependency regardless of other
    consumers and is unsafe by definition.
    """

    targets: list[str] = field(default_factory=list)
    safe_cascade: list[str] = field(default_factory=list)
    forced_cascade: list[str] = field(default_factory=list)

    @property
    def preserved(self) -> list[str]:
        """Dependencies kept alive by a consumer outside the deletion."""
        safe = set(self.safe_cascade)
        return [p for p in self.forced_cascade if p not in safe]


def forced_cascade(graph: DependencyGraph, targets: Iterable[str]) -> list[str]:
    """Breadth-first transitive closure of forward edges, in discovery order."""
    start = list(dict.fromkeys(targets))
    seen = set(start)
    order: list[str] = []
    queue = deque(start)
    while queue:
        current = queue.popleft()
        for dep in sorted(graph.dependencies_of(current)):
            if dep in seen:
                continue
            seen.add(dep)
            order.append(dep)
            queue.append(dep)
    return order


def safe_cascade(
    graph: DependencyGraph,
    targets: Iterable[str],
    reachable: list[str] | None = None,
) -> list[str]:
    """Dependencies that become fully orphaned, computed to a fixed point.

    A node joins once every one of its dependents is already slated for
    removal; joining can orphan further nodes, so passes repeat until
    nothing changes.
    """
    target_list = list(dict.fromkeys(targets))
    candidates = reachable if reachable is not None else forced_cascade(graph, target_list)
    removed = set(target_list)
    joined: set[str] = set()

    changed = True
    while changed:
        changed = False
        for path in candidates:
            if path in removed:
                continue
            dependents = graph.dependents_of(path)
            if dependents and dependents <= removed:
                removed.add(path)
                joined.add(path)
                changed = True

    return [p for p in candidates if p in joined]


def compute_impact(graph: DependencyGraph, targets: Iterable[str]) -> ImpactSet:
    """Return the :class:`ImpactSet` for deleting *targets* (file paths)."""
    target_list = list(dict.fromkeys(targets))
    forced = forced_cascade(graph, target_list)
    safe = safe_cascade(graph, target_list, reachable=forced)
    log.debug(
        "impact.computed",
        targets=len(target_list),
        safe=len(safe),
        forced=len(forced),
    )
    return ImpactSet(targets=target_list, safe_cascade=safe, forced_cascade=forced)
