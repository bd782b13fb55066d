"""varkeeper: reconciliation engine for libraries of versioned content packages."""

__version__ = "0.1.0"

from varkeeper.engines.classifier import classify
from varkeeper.engines.dependency_graph import DependencyGraph, build_graph
from varkeeper.engines.executor import ExecutionCoordinator, ExecutionReport, ProgressUpdate
from varkeeper.engines.identity_indexer import LibraryIndex, build_index
from varkeeper.engines.impact_engine import ImpactSet, compute_impact
from varkeeper.engines.resolution_planner import (
    LibraryPlan,
    ResolveStrategy,
    plan_all,
    plan_group,
)
from varkeeper.engines.scan_coordinator import ScanCoordinator, ScanTicket
from varkeeper.models.package import PackageIdentity, PackageRecord
from varkeeper.services.mutation import MutationResult, MutationService
from varkeeper.services.reconciliation_service import LibraryContext, ReconciliationService

__all__ = [
    "DependencyGraph",
    "ExecutionCoordinator",
    "ExecutionReport",
    "ImpactSet",
    "LibraryContext",
    "LibraryIndex",
    "LibraryPlan",
    "MutationResult",
    "MutationService",
    "PackageIdentity",
    "PackageRecord",
    "ProgressUpdate",
    "ReconciliationService",
    "ResolveStrategy",
    "ScanCoordinator",
    "ScanTicket",
    "build_graph",
    "build_index",
    "classify",
    "compute_impact",
    "plan_all",
    "plan_group",
]
