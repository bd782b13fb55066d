"""Shared fixtures for varkeeper tests: record factories and a mocked mutation service."""

from unittest.mock import AsyncMock

import pytest

from varkeeper.models.package import PackageIdentity, PackageRecord
from varkeeper.services.mutation import MutationResult

LIBRARY_ROOT = "/lib"


def _make_record(
    name,
    version="1",
    *,
    creator="Alice",
    size=100,
    deps=(),
    enabled=True,
    folder=LIBRARY_ROOT,
    scan_index=0,
):
    suffix = ".var" if enabled else ".var.disabled"
    file_name = f"{creator}.{name}.{version}{suffix}"
    return PackageRecord(
        file_path=f"{folder}/{file_name}",
        file_name=file_name,
        size_bytes=size,
        identity=PackageIdentity(creator=creator, package_name=name, version=version),
        declared_dependencies=tuple(deps),
        is_enabled=enabled,
        scan_index=scan_index,
    )


@pytest.fixture
def library_root():
    return LIBRARY_ROOT


@pytest.fixture
def make_record():
    return _make_record


@pytest.fixture
def mutations():
    """AsyncMock mutation service where every call succeeds."""
    svc = AsyncMock()
    svc.toggle.return_value = MutationResult.ok()
    svc.relocate_to_root.return_value = MutationResult.ok()
    svc.delete.return_value = MutationResult.ok()
    return svc
