"""Executor engine — runs plans through the mutation service."""

from varkeeper.engines.executor.coordinator import ExecutionCoordinator
from varkeeper.engines.executor.models import (
    ExecutionReport,
    ProgressCallback,
    ProgressUpdate,
    RescanFn,
)
from varkeeper.engines.executor.provisional import patch_removed, patch_toggled

__all__ = [
    "ExecutionCoordinator",
    "ExecutionReport",
    "ProgressCallback",
    "ProgressUpdate",
    "RescanFn",
    "patch_removed",
    "patch_toggled",
]
