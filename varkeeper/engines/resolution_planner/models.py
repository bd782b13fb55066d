"""Data models for the resolution planner engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from varkeeper.models.package import PackageRecord

ActionKind = Literal["enable", "disable", "delete"]


class ResolveStrategy(str, Enum):
    """How a version conflict is acted upon."""

    KEEP_LATEST = "keep-latest"
    MANUAL = "manual"
    DELETE_OLDER = "delete-older"
    NONE = "none"


@dataclass
class MergePlanEntry:
    """One exact-duplicate cluster: the copy to keep and the copies to delete."""

    keep: PackageRecord
    delete: list[PackageRecord] = field(default_factory=list)

    @property
    def savings_bytes(self) -> int:
        return sum(r.size_bytes for r in self.delete)


@dataclass
class ResolveGroup:
    """Distinct versions of one package, newest first."""

    id: str
    candidates: list[PackageRecord] = field(default_factory=list)


@dataclass
class ResolveAction:
    """A single mutation a resolve strategy asks for."""

    kind: ActionKind
    record: PackageRecord
    group_id: str


@dataclass
class GroupPlan:
    """Plan for a single ``Creator.Package`` group."""

    group_key: str
    merge_plan: list[MergePlanEntry] = field(default_factory=list)
    resolve_group: ResolveGroup | None = None

    @property
    def is_empty(self) -> bool:
        return not self.merge_plan and self.resolve_group is None


@dataclass
class LibraryPlan:
    """Merge entries and resolve groups for a scope of the library.

    An empty plan means "nothing to do" and is not an error.
    """

    merge_plan: list[MergePlanEntry] = field(default_factory=list)
    resolve_groups: list[ResolveGroup] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.merge_plan and not self.resolve_groups

    @property
    def merge_delete_count(self) -> int:
        return sum(len(entry.delete) for entry in self.merge_plan)

    @property
    def potential_savings_bytes(self) -> int:
        return sum(entry.savings_bytes for entry in self.merge_plan)

    def add(self, group_plan: GroupPlan) -> None:
        self.merge_plan.extend(group_plan.merge_plan)
        if group_plan.resolve_group is not None:
            self.resolve_groups.append(group_plan.resolve_group)
