"""Data models for the execution coordinator."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from varkeeper.models.package import PackageRecord


@dataclass
class ProgressUpdate:
    """Emitted after every file mutation."""

    processed: int
    total: int
    current_file: str
    space_saved_bytes: int


ProgressCallback = Callable[[ProgressUpdate], "Awaitable[None] | None"]
RescanFn = Callable[[], Awaitable[list[PackageRecord]]]


@dataclass
class ExecutionReport:
    """Outcome of a batch; always returned, even when files failed."""

    processed: int = 0
    total: int = 0
    space_saved_bytes: int = 0
    errors: list[str] = field(default_factory=list)
    completed: bool = False
    cancelled: bool = False

    # per-kind counters
    merged: int = 0
    relocated: int = 0
    enabled: int = 0
    disabled: int = 0
    deleted: int = 0
    removed_paths: list[str] = field(default_factory=list)

    # re-classified view from the post-execution rescan
    snapshot: list[PackageRecord] | None = None

    @property
    def succeeded(self) -> bool:
        return self.completed and not self.errors
