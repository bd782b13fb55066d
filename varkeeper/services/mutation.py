"""Mutation service boundary — the only place files change on disk."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

MutationStatus = Literal["ok", "collision", "error"]


@dataclass
class MutationResult:
    """Typed outcome of a single file mutation.

    ``collision`` means the destination already exists; callers retry with
    ``merge=True`` instead of parsing error strings.
    """

    status: MutationStatus
    new_path: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, new_path: str | None = None) -> MutationResult:
        return cls(status="ok", new_path=new_path)

    @classmethod
    def collision(cls, message: str, new_path: str | None = None) -> MutationResult:
        return cls(status="collision", new_path=new_path, error=message)

    @classmethod
    def failure(cls, message: str) -> MutationResult:
        return cls(status="error", error=message)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def is_collision(self) -> bool:
        return self.status == "collision"


@runtime_checkable
class MutationService(Protocol):
    """Operations the execution coordinator depends on.

    Implementations must not raise for ordinary per-file failures; they
    return :meth:`MutationResult.failure` instead.
    """

    async def toggle(self, file_path: str, enable: bool, merge: bool = False) -> MutationResult: ...

    async def relocate_to_root(self, file_path: str) -> MutationResult: ...

    async def delete(self, file_path: str) -> MutationResult: ...
