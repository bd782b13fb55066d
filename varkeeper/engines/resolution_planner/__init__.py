"""Resolution planner engine — merge plans and version-conflict plans."""

from varkeeper.engines.resolution_planner.models import (
    GroupPlan,
    LibraryPlan,
    MergePlanEntry,
    ResolveAction,
    ResolveGroup,
    ResolveStrategy,
)
from varkeeper.engines.resolution_planner.planner import (
    choose_keeper,
    plan_all,
    plan_for_package,
    plan_group,
    resolve_actions,
    resolve_target,
)

__all__ = [
    "GroupPlan",
    "LibraryPlan",
    "MergePlanEntry",
    "ResolveAction",
    "ResolveGroup",
    "ResolveStrategy",
    "choose_keeper",
    "plan_all",
    "plan_for_package",
    "plan_group",
    "resolve_actions",
    "resolve_target",
]
