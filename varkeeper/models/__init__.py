"""Snapshot data model."""

from varkeeper.models.package import PackageIdentity, PackageRecord

__all__ = ["PackageIdentity", "PackageRecord"]
