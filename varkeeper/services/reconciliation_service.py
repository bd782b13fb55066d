"""ReconciliationService — the engines wired together for hosts and the CLI."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

import structlog

from varkeeper.core.patterns import DEFAULT_SYSTEM_PATTERNS
from varkeeper.engines.classifier import classify
from varkeeper.engines.dependency_graph import DependencyGraph, build_graph
from varkeeper.engines.executor import (
    ExecutionCoordinator,
    ExecutionReport,
    ProgressCallback,
    RescanFn,
    patch_removed,
    patch_toggled,
)
from varkeeper.engines.impact_engine import ImpactSet, compute_impact
from varkeeper.engines.resolution_planner import (
    GroupPlan,
    LibraryPlan,
    ResolveStrategy,
    plan_all,
    plan_for_package,
    plan_group,
)
from varkeeper.engines.resolution_planner.planner import ScopeFilter
from varkeeper.models.package import PackageRecord
from varkeeper.services import NotFoundError, ValidationError
from varkeeper.services.mutation import MutationResult, MutationService

log = structlog.get_logger("varkeeper.service")

CascadeMode = Literal["none", "safe", "forced"]


@dataclass(frozen=True)
class LibraryContext:
    """The active library, passed explicitly to every call."""

    library_root: str


@dataclass
class ToggleOutcome:
    """Result of a single toggle plus the provisionally patched snapshot."""

    result: MutationResult
    snapshot: list[PackageRecord]


def _index_by_path(records: Sequence[PackageRecord]) -> dict[str, PackageRecord]:
    return {r.file_path: r for r in records}


class ReconciliationService:
    """Stateless facade; snapshots are inputs, never cached."""

    def __init__(
        self,
        mutation_service: MutationService,
        system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
    ) -> None:
        self._mutations = mutation_service
        self._system_patterns = tuple(system_patterns)

    @property
    def system_patterns(self) -> tuple[str, ...]:
        return self._system_patterns

    # ── read-only ────────────────────────────────────────────────────────

    def classify(self, ctx: LibraryContext, records: Sequence[PackageRecord]) -> list[PackageRecord]:
        classified = classify(records, system_patterns=self._system_patterns)
        log.debug("service.classified", library=ctx.library_root, records=len(classified))
        return classified

    def graph(self, ctx: LibraryContext, records: Sequence[PackageRecord]) -> DependencyGraph:
        return build_graph(records, system_patterns=self._system_patterns)

    def impact(
        self,
        ctx: LibraryContext,
        records: Sequence[PackageRecord],
        targets: Sequence[str],
    ) -> ImpactSet:
        """Cascade candidates for deleting *targets*.

        Raises :class:`NotFoundError` if a target is not in the snapshot.
        """
        self._require(records, targets)
        return compute_impact(self.graph(ctx, records), targets)

    def plan_group(
        self,
        ctx: LibraryContext,
        records: Sequence[PackageRecord],
        group_key: str,
    ) -> GroupPlan:
        if not any(r.group_key == group_key for r in records):
            raise NotFoundError(f"group '{group_key}' not found")
        return plan_group(records, group_key, ctx.library_root)

    def plan_all(
        self,
        ctx: LibraryContext,
        records: Sequence[PackageRecord],
        scope_filter: ScopeFilter | None = None,
    ) -> LibraryPlan:
        return plan_all(records, ctx.library_root, scope_filter)

    def plan_for_package(
        self,
        ctx: LibraryContext,
        records: Sequence[PackageRecord],
        file_path: str,
    ) -> GroupPlan:
        plan = plan_for_package(records, file_path, ctx.library_root)
        if plan is None:
            raise NotFoundError(f"package '{file_path}' not found")
        return plan

    # ── mutations ────────────────────────────────────────────────────────

    async def toggle(
        self,
        ctx: LibraryContext,
        records: Sequence[PackageRecord],
        file_path: str,
        enable: bool,
        *,
        merge_on_collision: bool = False,
    ) -> ToggleOutcome:
        """Enable or disable one package.

        A collision is returned as-is unless *merge_on_collision* is set, in
        which case the toggle is retried once with ``merge=True``.  On success
        the snapshot is patched and re-classified without a rescan.
        """
        self._require(records, [file_path])
        result = await self._mutations.toggle(file_path, enable, False)
        if result.is_collision and merge_on_collision:
            log.info("service.toggle_merge_retry", library=ctx.library_root, file=file_path)
            result = await self._mutations.toggle(file_path, enable, True)

        if not result.is_ok:
            log.warning(
                "service.toggle_failed",
                library=ctx.library_root,
                file=file_path,
                status=result.status,
                error=result.error,
            )
            return ToggleOutcome(result=result, snapshot=list(records))

        snapshot = patch_toggled(
            records,
            file_path,
            result.new_path,
            enable,
            system_patterns=self._system_patterns,
        )
        return ToggleOutcome(result=result, snapshot=snapshot)

    async def execute(
        self,
        ctx: LibraryContext,
        plan: LibraryPlan | GroupPlan,
        strategy: ResolveStrategy | str,
        *,
        manual_plan: Mapping[str, str] | None = None,
        in_place: bool = False,
        rescan: RescanFn | None = None,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExecutionReport:
        """Run *plan* with *strategy*.

        Raises :class:`ValidationError` for ``manual`` without any targets.
        """
        try:
            strategy = ResolveStrategy(strategy)
        except ValueError:
            raise ValidationError(f"unknown resolve strategy '{strategy}'") from None

        if isinstance(plan, GroupPlan):
            groups = [plan.resolve_group] if plan.resolve_group is not None else []
        else:
            groups = plan.resolve_groups
        if strategy is ResolveStrategy.MANUAL and groups and not manual_plan:
            raise ValidationError("manual strategy needs a target per resolve group")

        coordinator = ExecutionCoordinator(
            self._mutations, rescan, system_patterns=self._system_patterns
        )
        return await coordinator.execute(
            plan.merge_plan,
            groups,
            strategy,
            library_root=ctx.library_root,
            manual_plan=manual_plan,
            in_place=in_place,
            on_progress=on_progress,
            cancel=cancel,
        )

    async def delete(
        self,
        ctx: LibraryContext,
        records: Sequence[PackageRecord],
        targets: Sequence[str],
        mode: CascadeMode = "none",
        *,
        rescan: RescanFn | None = None,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExecutionReport:
        """Delete *targets* plus the cascade selected by *mode*.

        Without *rescan*, the report's snapshot is the provisional one with
        the removed files dropped.
        """
        if mode not in ("none", "safe", "forced"):
            raise ValidationError(f"unknown cascade mode '{mode}'")
        by_path = self._require(records, targets)

        paths = list(dict.fromkeys(targets))
        if mode != "none":
            impact = compute_impact(self.graph(ctx, records), paths)
            paths += impact.safe_cascade if mode == "safe" else impact.forced_cascade

        log.info("service.delete", library=ctx.library_root, targets=len(targets), mode=mode, files=len(paths))
        coordinator = ExecutionCoordinator(
            self._mutations, rescan, system_patterns=self._system_patterns
        )
        report = await coordinator.delete_files(
            [by_path[p] for p in paths],
            on_progress=on_progress,
            cancel=cancel,
        )
        if report.snapshot is None:
            report.snapshot = patch_removed(
                records, report.removed_paths, system_patterns=self._system_patterns
            )
        return report

    # ── helpers ──────────────────────────────────────────────────────────

    def _require(
        self,
        records: Sequence[PackageRecord],
        paths: Sequence[str],
    ) -> dict[str, PackageRecord]:
        by_path = _index_by_path(records)
        missing = [p for p in paths if p not in by_path]
        if missing:
            raise NotFoundError(f"package not found: {', '.join(missing)}")
        return by_path
