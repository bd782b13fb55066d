"""Resolution planner — merge plans and version-conflict plans.

All functions here are pure: they read a snapshot and return plans, so
calling them twice without executing anything yields identical results.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Mapping, Sequence

import structlog

from varkeeper.core.identity import UNKNOWN_GROUP, is_at_root
from varkeeper.engines.classifier.classifier import rank_by_version
from varkeeper.engines.resolution_planner.models import (
    GroupPlan,
    LibraryPlan,
    MergePlanEntry,
    ResolveAction,
    ResolveGroup,
    ResolveStrategy,
)
from varkeeper.models.package import PackageRecord

log = structlog.get_logger("varkeeper.engine")

ScopeFilter = Callable[[PackageRecord], bool]


def choose_keeper(cluster: Sequence[PackageRecord], library_root: str) -> PackageRecord:
    """Pick the copy to keep: at root, then enabled, then first seen."""
    ranked = sorted(
        enumerate(cluster),
        key=lambda item: (
            not is_at_root(item[1].file_path, library_root),
            not item[1].is_enabled,
            item[0],
        ),
    )
    return ranked[0][1]


def _plan_members(
    group_key: str,
    members: Sequence[PackageRecord],
    library_root: str,
) -> GroupPlan:
    plan = GroupPlan(group_key=group_key)
    if group_key == UNKNOWN_GROUP or not members:
        return plan

    clusters: dict[str, list[PackageRecord]] = {}
    for rec in members:
        clusters.setdefault(rec.exact_key, []).append(rec)

    keepers: list[PackageRecord] = []
    for cluster in clusters.values():
        if len(cluster) == 1:
            keepers.append(cluster[0])
            continue
        keep = choose_keeper(cluster, library_root)
        plan.merge_plan.append(
            MergePlanEntry(keep=keep, delete=[r for r in cluster if r is not keep])
        )
        keepers.append(keep)

    if len(keepers) > 1:
        plan.resolve_group = ResolveGroup(id=group_key, candidates=rank_by_version(keepers))
    return plan


def plan_group(
    records: Iterable[PackageRecord],
    group_key: str,
    library_root: str,
) -> GroupPlan:
    """Plan merges and version resolution for one ``Creator.Package`` group."""
    members = [r for r in records if r.group_key == group_key]
    return _plan_members(group_key, members, library_root)


def plan_for_package(
    records: Iterable[PackageRecord],
    file_path: str,
    library_root: str,
) -> GroupPlan | None:
    """Plan for the whole group of the package at *file_path*.

    Returns ``None`` if no record has that path.
    """
    snapshot = list(records)
    target = next((r for r in snapshot if r.file_path == file_path), None)
    if target is None:
        return None
    return plan_group(snapshot, target.group_key, library_root)


def plan_all(
    records: Iterable[PackageRecord],
    library_root: str,
    scope_filter: ScopeFilter | None = None,
) -> LibraryPlan:
    """Plan every group touched by *scope_filter* (default: the whole library).

    The filter only selects which groups are considered; each selected group
    is planned against all of its members in the snapshot.
    """
    snapshot = list(records)
    members_by_group: dict[str, list[PackageRecord]] = {}
    for rec in snapshot:
        members_by_group.setdefault(rec.group_key, []).append(rec)

    selected: dict[str, None] = {}
    for rec in snapshot:
        if scope_filter is None or scope_filter(rec):
            selected.setdefault(rec.group_key, None)

    plan = LibraryPlan()
    for group_key in selected:
        plan.add(_plan_members(group_key, members_by_group[group_key], library_root))

    log.debug(
        "planner.planned",
        groups=len(selected),
        merges=len(plan.merge_plan),
        merge_deletes=plan.merge_delete_count,
        resolve_groups=len(plan.resolve_groups),
    )
    return plan


def resolve_target(
    group: ResolveGroup,
    strategy: ResolveStrategy,
    manual_plan: Mapping[str, str] | None = None,
    removed: Collection[str] = (),
) -> str | None:
    """File path the strategy keeps for *group*, or ``None`` to leave it alone."""
    strategy = ResolveStrategy(strategy)
    members = [r for r in group.candidates if r.file_path not in removed]
    if len(members) < 2 or strategy is ResolveStrategy.NONE:
        return None

    if strategy in (ResolveStrategy.KEEP_LATEST, ResolveStrategy.DELETE_OLDER):
        return rank_by_version(members)[0].file_path

    selection = (manual_plan or {}).get(group.id)
    if not selection or selection == "none":
        return None
    if selection not in {r.file_path for r in members}:
        log.warning("planner.manual_target_unknown", group=group.id, target=selection)
        return None
    return selection


def resolve_actions(
    group: ResolveGroup,
    strategy: ResolveStrategy,
    manual_plan: Mapping[str, str] | None = None,
    removed: Collection[str] = (),
) -> list[ResolveAction]:
    """Mutations needed to apply *strategy* to *group*.

    Files in *removed* (already deleted by a merge) are skipped.  The target
    is enabled if needed; every other version is disabled, or deleted under
    ``delete-older``.  Nothing already in the desired state is touched.
    """
    strategy = ResolveStrategy(strategy)
    target = resolve_target(group, strategy, manual_plan, removed)
    if target is None:
        return []

    actions: list[ResolveAction] = []
    for rec in group.candidates:
        if rec.file_path in removed:
            continue
        if rec.file_path == target:
            if not rec.is_enabled:
                actions.append(ResolveAction(kind="enable", record=rec, group_id=group.id))
        elif strategy is ResolveStrategy.DELETE_OLDER:
            actions.append(ResolveAction(kind="delete", record=rec, group_id=group.id))
        elif rec.is_enabled:
            actions.append(ResolveAction(kind="disable", record=rec, group_id=group.id))
    return actions
