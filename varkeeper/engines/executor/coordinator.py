"""ExecutionCoordinator — walks a plan through the mutation service.

Mutations run strictly one after another.  A failing file is recorded in
the report and the batch moves on; cancellation is only observed between
mutations.  When the batch ends the library is rescanned and re-classified.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import replace

import structlog

from varkeeper.core.identity import base_name, is_at_root
from varkeeper.core.patterns import DEFAULT_SYSTEM_PATTERNS
from varkeeper.engines.classifier.classifier import classify
from varkeeper.engines.executor.models import (
    ExecutionReport,
    ProgressCallback,
    ProgressUpdate,
    RescanFn,
)
from varkeeper.engines.resolution_planner.models import (
    MergePlanEntry,
    ResolveAction,
    ResolveGroup,
    ResolveStrategy,
)
from varkeeper.engines.resolution_planner.planner import resolve_actions
from varkeeper.models.package import PackageRecord
from varkeeper.services.mutation import MutationResult, MutationService

log = structlog.get_logger("varkeeper.engine")


class _Stop(Exception):
    """Raised internally when cancellation is observed between mutations."""


class ExecutionCoordinator:
    """Execute merge / resolve / delete batches against a mutation service."""

    def __init__(
        self,
        mutation_service: MutationService,
        rescan: RescanFn | None = None,
        *,
        system_patterns: Sequence[str] = DEFAULT_SYSTEM_PATTERNS,
    ) -> None:
        self._mutations = mutation_service
        self._rescan = rescan
        self._system_patterns = tuple(system_patterns)

    # ── public API ───────────────────────────────────────────────────────

    async def execute(
        self,
        merge_plan: Sequence[MergePlanEntry],
        resolve_groups: Sequence[ResolveGroup],
        strategy: ResolveStrategy | str,
        *,
        library_root: str,
        manual_plan: Mapping[str, str] | None = None,
        in_place: bool = False,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExecutionReport:
        """Run merges first, then resolve groups against the reduced set.

        Returns an :class:`ExecutionReport`; never raises for per-file
        failures.
        """
        strategy = ResolveStrategy(strategy)
        report = ExecutionReport()
        run = _Run(report, on_progress, cancel)
        removed: set[str] = set()
        relocated: dict[str, str] = {}

        planned_deletes = {d.file_path for entry in merge_plan for d in entry.delete}
        relocations = [
            entry for entry in merge_plan
            if not in_place and not is_at_root(entry.keep.file_path, library_root)
        ]
        estimates = {
            group.id: len(resolve_actions(group, strategy, manual_plan, planned_deletes))
            for group in resolve_groups
        }
        report.total = len(relocations) + len(planned_deletes) + sum(estimates.values())

        log.info(
            "executor.started",
            merges=len(merge_plan),
            resolve_groups=len(resolve_groups),
            strategy=strategy.value,
            total=report.total,
        )

        try:
            for entry in merge_plan:
                await self._merge_one(run, entry, library_root, in_place, removed, relocated)

            targets = _remap_manual_plan(manual_plan, relocated)
            for group in resolve_groups:
                actions = resolve_actions(
                    _remap_group(group, relocated), strategy, targets, removed
                )
                report.total += len(actions) - estimates[group.id]
                for action in actions:
                    await self._apply_action(run, action, removed)
        except _Stop:
            report.cancelled = True
            log.info("executor.cancelled", processed=report.processed, total=report.total)

        await self._finish(run)
        return report

    async def delete_files(
        self,
        records: Sequence[PackageRecord],
        *,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ExecutionReport:
        """Delete *records* one by one (targets plus any chosen cascade)."""
        unique = list({r.file_path: r for r in records}.values())
        report = ExecutionReport(total=len(unique))
        run = _Run(report, on_progress, cancel)
        removed: set[str] = set()

        log.info("executor.delete_started", total=report.total)
        try:
            for rec in unique:
                await self._delete_one(run, rec, removed, label="delete")
        except _Stop:
            report.cancelled = True
            log.info("executor.cancelled", processed=report.processed, total=report.total)

        await self._finish(run)
        return report

    # ── steps ────────────────────────────────────────────────────────────

    async def _merge_one(
        self,
        run: _Run,
        entry: MergePlanEntry,
        library_root: str,
        in_place: bool,
        removed: set[str],
        relocated: dict[str, str],
    ) -> None:
        keep = entry.keep
        if not in_place and not is_at_root(keep.file_path, library_root):
            run.check_cancel()
            result = await self._call(self._mutations.relocate_to_root, keep.file_path)
            if result.is_ok:
                run.report.relocated += 1
                if result.new_path and result.new_path != keep.file_path:
                    relocated[keep.file_path] = result.new_path
            else:
                # Partial merge: duplicates still go, keeper stays put.
                run.report.errors.append(f"Failed to move {keep.file_name}: {result.error}")
                log.warning("executor.relocate_failed", file=keep.file_path, error=result.error)
            await run.step(keep.file_name)

        for dup in entry.delete:
            if await self._delete_one(run, dup, removed, label="merge"):
                run.report.merged += 1

    async def _delete_one(
        self,
        run: _Run,
        rec: PackageRecord,
        removed: set[str],
        *,
        label: str,
    ) -> bool:
        if rec.file_path in removed:
            run.report.total -= 1
            return False
        run.check_cancel()
        result = await self._call(self._mutations.delete, rec.file_path)
        ok = result.is_ok
        if ok:
            removed.add(rec.file_path)
            run.report.removed_paths.append(rec.file_path)
            run.report.deleted += 1
            run.report.space_saved_bytes += rec.size_bytes
        else:
            run.report.errors.append(f"Failed to delete {rec.file_name}: {result.error}")
            log.warning("executor.delete_failed", step=label, file=rec.file_path, error=result.error)
        await run.step(rec.file_name)
        return ok

    async def _apply_action(self, run: _Run, action: ResolveAction, removed: set[str]) -> None:
        rec = action.record
        if action.kind == "delete":
            await self._delete_one(run, rec, removed, label="resolve")
            return

        run.check_cancel()
        enable = action.kind == "enable"
        result = await self._toggle(rec.file_path, enable)
        if result.is_ok:
            if enable:
                run.report.enabled += 1
            else:
                run.report.disabled += 1
        else:
            run.report.errors.append(f"Failed to process {rec.file_name}: {result.error}")
            log.warning(
                "executor.toggle_failed",
                group=action.group_id,
                file=rec.file_path,
                enable=enable,
                error=result.error,
            )
        await run.step(rec.file_name)

    async def _toggle(self, file_path: str, enable: bool) -> MutationResult:
        result = await self._call(self._mutations.toggle, file_path, enable, False)
        if result.is_collision:
            log.info("executor.collision_retry", file=file_path, enable=enable)
            result = await self._call(self._mutations.toggle, file_path, enable, True)
        return result

    async def _call(
        self,
        fn: Callable[..., Awaitable[MutationResult]],
        *args: object,
    ) -> MutationResult:
        try:
            return await fn(*args)
        except Exception as exc:
            log.error("executor.mutation_raised", args=[str(a) for a in args], exc_info=True)
            return MutationResult.failure(f"{type(exc).__name__}: {exc}")

    async def _finish(self, run: _Run) -> None:
        report = run.report
        if self._rescan is not None:
            try:
                fresh = await self._rescan()
                report.snapshot = classify(fresh, system_patterns=self._system_patterns)
            except Exception as exc:
                log.error("executor.rescan_failed", exc_info=True)
                report.errors.append(f"Rescan failed: {exc}")

        report.completed = True
        await run.emit("Done.")
        log.info(
            "executor.completed",
            processed=report.processed,
            total=report.total,
            space_saved_bytes=report.space_saved_bytes,
            errors=len(report.errors),
            cancelled=report.cancelled,
        )


class _Run:
    """Mutable per-batch state: report, progress sink and cancel flag."""

    def __init__(
        self,
        report: ExecutionReport,
        on_progress: ProgressCallback | None,
        cancel: asyncio.Event | None,
    ) -> None:
        self.report = report
        self._on_progress = on_progress
        self._cancel = cancel

    def check_cancel(self) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise _Stop

    async def step(self, current_file: str) -> None:
        self.report.processed += 1
        await self.emit(current_file)
        # Let the host render between mutations.
        await asyncio.sleep(0)

    async def emit(self, current_file: str) -> None:
        if self._on_progress is None:
            return
        update = ProgressUpdate(
            processed=self.report.processed,
            total=self.report.total,
            current_file=current_file,
            space_saved_bytes=self.report.space_saved_bytes,
        )
        try:
            result = self._on_progress(update)
            if inspect.isawaitable(result):
                await result
        except Exception:
            log.error("executor.progress_callback_failed", exc_info=True)


def _remap_group(group: ResolveGroup, relocated: Mapping[str, str]) -> ResolveGroup:
    """Point candidates moved to the library root at their new paths."""
    if not relocated:
        return group
    candidates = [
        replace(rec, file_path=relocated[rec.file_path], file_name=base_name(relocated[rec.file_path]))
        if rec.file_path in relocated
        else rec
        for rec in group.candidates
    ]
    return ResolveGroup(id=group.id, candidates=candidates)


def _remap_manual_plan(
    manual_plan: Mapping[str, str] | None,
    relocated: Mapping[str, str],
) -> Mapping[str, str] | None:
    if not manual_plan or not relocated:
        return manual_plan
    return {gid: relocated.get(path, path) for gid, path in manual_plan.items()}
