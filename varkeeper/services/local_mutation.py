"""LocalMutationService — file mutations against a library directory on disk.

Enabled packages end in ``.var``; disabling appends ``.disabled``.  Every
operation first checks that the file lives inside the library root.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import uuid
from pathlib import Path

import structlog

from varkeeper.core.identity import DISABLED_SUFFIX, ENABLED_SUFFIX
from varkeeper.services import PathViolationError
from varkeeper.services.mutation import MutationResult

log = structlog.get_logger("varkeeper.service.mutation")


class LocalMutationService:
    """:class:`~varkeeper.services.mutation.MutationService` over the local filesystem.

    When *trash_dir* is given, deletions move files there instead of
    unlinking them.
    """

    def __init__(self, library_root: str | Path, trash_dir: str | Path | None = None) -> None:
        self._root = Path(library_root).resolve()
        self._trash = Path(trash_dir).resolve() if trash_dir is not None else None

    @property
    def library_root(self) -> Path:
        return self._root

    def _validate(self, file_path: str) -> Path:
        path = Path(file_path).resolve()
        try:
            path.relative_to(self._root)
        except ValueError:
            raise PathViolationError(
                f"file '{file_path}' is not within the active library '{self._root}'"
            ) from None
        return path

    # ── toggle ───────────────────────────────────────────────────────────

    async def toggle(self, file_path: str, enable: bool, merge: bool = False) -> MutationResult:
        try:
            return await asyncio.to_thread(self._toggle_sync, file_path, enable, merge)
        except (PathViolationError, OSError) as exc:
            log.warning("mutation.toggle_failed", file=file_path, error=str(exc))
            return MutationResult.failure(str(exc))

    def _toggle_sync(self, file_path: str, enable: bool, merge: bool) -> MutationResult:
        source = self._validate(file_path)
        name = source.name.lower()

        if enable:
            if name.endswith(DISABLED_SUFFIX):
                enabled_name = source.name[: -len(".disabled")]
                dest = (self._root if merge else source.parent) / enabled_name
            elif name.endswith(ENABLED_SUFFIX):
                return MutationResult.ok(str(source))
            else:
                return MutationResult.failure("invalid file extension for enabling")
        else:
            if name.endswith(ENABLED_SUFFIX):
                dest = source.with_name(source.name + ".disabled")
            elif name.endswith(DISABLED_SUFFIX):
                return MutationResult.ok(str(source))
            else:
                return MutationResult.failure("invalid file extension for disabling")

        if not source.exists():
            return MutationResult.failure(f"file not found: {source}")

        if dest.exists():
            if not merge:
                return MutationResult.collision(
                    f"destination already exists: {dest}", new_path=str(dest)
                )
            if enable:
                # The enabled copy already exists; drop the disabled source.
                source.unlink()
                return MutationResult.ok(str(dest))
            dest.unlink()

        source.rename(dest)
        return MutationResult.ok(str(dest))

    # ── relocate ─────────────────────────────────────────────────────────

    async def relocate_to_root(self, file_path: str) -> MutationResult:
        try:
            return await asyncio.to_thread(self._relocate_sync, file_path)
        except (PathViolationError, OSError) as exc:
            log.warning("mutation.relocate_failed", file=file_path, error=str(exc))
            return MutationResult.failure(str(exc))

    def _relocate_sync(self, file_path: str) -> MutationResult:
        source = self._validate(file_path)
        target = self._root / source.name
        if source == target:
            return MutationResult.ok(str(source))
        if not source.exists():
            return MutationResult.failure(f"file not found: {source}")

        if target.exists():
            if target.stat().st_size == source.stat().st_size:
                # Same file already at root; the subfolder copy is redundant.
                source.unlink()
                return MutationResult.ok(str(target))
            return MutationResult.collision(
                f"target file already exists and is different: {target}",
                new_path=str(target),
            )

        shutil.move(str(source), str(target))
        return MutationResult.ok(str(target))

    # ── delete ───────────────────────────────────────────────────────────

    async def delete(self, file_path: str) -> MutationResult:
        try:
            return await asyncio.to_thread(self._delete_sync, file_path)
        except (PathViolationError, OSError) as exc:
            log.warning("mutation.delete_failed", file=file_path, error=str(exc))
            return MutationResult.failure(str(exc))

    def _delete_sync(self, file_path: str) -> MutationResult:
        path = self._validate(file_path)
        if not path.exists():
            return MutationResult.failure(f"file not found: {path}")

        if self._trash is None:
            os.remove(path)
            return MutationResult.ok()

        self._trash.mkdir(parents=True, exist_ok=True)
        dest = self._trash / path.name
        if dest.exists():
            dest = self._trash / f"{uuid.uuid4().hex[:8]}-{path.name}"
        shutil.move(str(path), str(dest))
        return MutationResult.ok(str(dest))
