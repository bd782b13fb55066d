"""Tests for LocalMutationService against a temporary library directory."""

from __future__ import annotations

import pytest

from varkeeper.services.local_mutation import LocalMutationService


# ── Helpers ──────────────────────────────────────────────────────────────────


def _touch(path, size=10):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def library(tmp_path):
    root = tmp_path / "AddonPackages"
    root.mkdir()
    return root


@pytest.fixture
def service(library):
    return LocalMutationService(library)


# ── toggle ───────────────────────────────────────────────────────────────────


class TestToggle:
    @pytest.mark.asyncio
    async def test_disable(self, library, service):
        src = _touch(library / "Alice.Pack.1.var")
        result = await service.toggle(str(src), False)
        assert result.is_ok
        assert not src.exists()
        assert (library / "Alice.Pack.1.var.disabled").exists()
        assert result.new_path.endswith("Alice.Pack.1.var.disabled")

    @pytest.mark.asyncio
    async def test_enable_in_same_folder(self, library, service):
        src = _touch(library / "sub" / "Alice.Pack.1.var.disabled")
        result = await service.toggle(str(src), True)
        assert result.is_ok
        assert (library / "sub" / "Alice.Pack.1.var").exists()

    @pytest.mark.asyncio
    async def test_already_in_state_is_ok(self, library, service):
        src = _touch(library / "Alice.Pack.1.var")
        result = await service.toggle(str(src), True)
        assert result.is_ok
        assert src.exists()

    @pytest.mark.asyncio
    async def test_enable_collision_then_merge(self, library, service):
        enabled = _touch(library / "Alice.Pack.1.var")
        disabled = _touch(library / "Alice.Pack.1.var.disabled")

        first = await service.toggle(str(disabled), True)
        assert first.is_collision
        assert disabled.exists()

        merged = await service.toggle(str(disabled), True, merge=True)
        assert merged.is_ok
        assert not disabled.exists()
        assert enabled.exists()

    @pytest.mark.asyncio
    async def test_enable_merge_moves_to_root(self, library, service):
        src = _touch(library / "sub" / "Alice.Pack.1.var.disabled")
        result = await service.toggle(str(src), True, merge=True)
        assert result.is_ok
        assert (library / "Alice.Pack.1.var").exists()

    @pytest.mark.asyncio
    async def test_disable_merge_replaces_existing(self, library, service):
        src = _touch(library / "Alice.Pack.1.var", size=20)
        _touch(library / "Alice.Pack.1.var.disabled", size=5)
        result = await service.toggle(str(src), False, merge=True)
        assert result.is_ok
        assert (library / "Alice.Pack.1.var.disabled").stat().st_size == 20

    @pytest.mark.asyncio
    async def test_invalid_extension(self, library, service):
        src = _touch(library / "notes.txt")
        result = await service.toggle(str(src), True)
        assert result.status == "error"

    @pytest.mark.asyncio
    async def test_outside_library_rejected(self, tmp_path, service):
        outside = _touch(tmp_path / "elsewhere" / "Alice.Pack.1.var")
        result = await service.toggle(str(outside), False)
        assert result.status == "error"
        assert "not within" in result.error
        assert outside.exists()


# ── relocate ─────────────────────────────────────────────────────────────────


class TestRelocate:
    @pytest.mark.asyncio
    async def test_moves_to_root(self, library, service):
        src = _touch(library / "sub" / "Alice.Pack.1.var")
        result = await service.relocate_to_root(str(src))
        assert result.is_ok
        assert (library / "Alice.Pack.1.var").exists()
        assert not src.exists()

    @pytest.mark.asyncio
    async def test_same_size_at_root_drops_source(self, library, service):
        _touch(library / "Alice.Pack.1.var", size=10)
        src = _touch(library / "sub" / "Alice.Pack.1.var", size=10)
        result = await service.relocate_to_root(str(src))
        assert result.is_ok
        assert not src.exists()

    @pytest.mark.asyncio
    async def test_different_file_at_root_collides(self, library, service):
        _touch(library / "Alice.Pack.1.var", size=10)
        src = _touch(library / "sub" / "Alice.Pack.1.var", size=11)
        result = await service.relocate_to_root(str(src))
        assert result.is_collision
        assert src.exists()


# ── delete ───────────────────────────────────────────────────────────────────


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, library, service):
        src = _touch(library / "Alice.Pack.1.var")
        result = await service.delete(str(src))
        assert result.is_ok
        assert not src.exists()

    @pytest.mark.asyncio
    async def test_missing_file(self, library, service):
        result = await service.delete(str(library / "gone.var"))
        assert result.status == "error"

    @pytest.mark.asyncio
    async def test_trash_dir(self, tmp_path, library):
        trash = tmp_path / "trash"
        service = LocalMutationService(library, trash_dir=trash)
        first = _touch(library / "Alice.Pack.1.var")
        await service.delete(str(first))
        second = _touch(library / "Alice.Pack.1.var")
        result = await service.delete(str(second))

        assert result.is_ok
        assert not second.exists()
        assert len(list(trash.iterdir())) == 2
