"""Plan, impact and execution-report response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from varkeeper.engines.dependency_graph import DependencyResolution
from varkeeper.engines.executor import ExecutionReport
from varkeeper.engines.impact_engine import ImpactSet
from varkeeper.engines.resolution_planner import LibraryPlan


class MergeEntryOut(BaseModel):
    keep: str
    delete: list[str]
    savings_bytes: int


class ResolveGroupOut(BaseModel):
    id: str
    candidates: list[str]
    versions: list[str]


class PlanOut(BaseModel):
    """A library plan; an empty plan means nothing to do."""

    merge_plan: list[MergeEntryOut]
    resolve_groups: list[ResolveGroupOut]
    merge_delete_count: int
    potential_savings_bytes: int
    is_empty: bool

    @classmethod
    def from_plan(cls, plan: LibraryPlan) -> PlanOut:
        return cls(
            merge_plan=[
                MergeEntryOut(
                    keep=entry.keep.file_path,
                    delete=[r.file_path for r in entry.delete],
                    savings_bytes=entry.savings_bytes,
                )
                for entry in plan.merge_plan
            ],
            resolve_groups=[
                ResolveGroupOut(
                    id=group.id,
                    candidates=[r.file_path for r in group.candidates],
                    versions=[r.identity.version for r in group.candidates],
                )
                for group in plan.resolve_groups
            ],
            merge_delete_count=plan.merge_delete_count,
            potential_savings_bytes=plan.potential_savings_bytes,
            is_empty=plan.is_empty,
        )


class ImpactOut(BaseModel):
    targets: list[str]
    safe_cascade: list[str]
    forced_cascade: list[str]
    preserved: list[str]

    @classmethod
    def from_impact(cls, impact: ImpactSet) -> ImpactOut:
        return cls(
            targets=impact.targets,
            safe_cascade=impact.safe_cascade,
            forced_cascade=impact.forced_cascade,
            preserved=impact.preserved,
        )


class ResolutionOut(BaseModel):
    dep_id: str
    status: str
    file_path: str | None = None
    matcher: str | None = None

    @classmethod
    def from_resolution(cls, res: DependencyResolution) -> ResolutionOut:
        return cls(
            dep_id=res.dep_id,
            status=res.status,
            file_path=res.record.file_path if res.record is not None else None,
            matcher=res.matcher,
        )


class ExecutionReportOut(BaseModel):
    """Serialised :class:`ExecutionReport` (camelCase for hosts)."""

    model_config = ConfigDict(populate_by_name=True)

    processed: int
    total: int
    space_saved_bytes: int = Field(alias="spaceSaved")
    errors: list[str]
    completed: bool
    cancelled: bool = False
    merged: int = 0
    relocated: int = 0
    enabled: int = 0
    disabled: int = 0
    deleted: int = 0

    @classmethod
    def from_report(cls, report: ExecutionReport) -> ExecutionReportOut:
        return cls(
            processed=report.processed,
            total=report.total,
            space_saved_bytes=report.space_saved_bytes,
            errors=list(report.errors),
            completed=report.completed,
            cancelled=report.cancelled,
            merged=report.merged,
            relocated=report.relocated,
            enabled=report.enabled,
            disabled=report.disabled,
            deleted=report.deleted,
        )
