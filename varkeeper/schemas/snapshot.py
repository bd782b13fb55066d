"""Snapshot request/response schemas (scanner JSON <-> PackageRecord)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from varkeeper.core.identity import identity_from_filename, is_enabled_file
from varkeeper.models.package import PackageIdentity, PackageRecord
from varkeeper.services import ValidationError


class PackageMetaIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    creator: str = ""
    creator_name: str = Field("", alias="creatorName")
    package_name: str = Field("", alias="packageName")
    version: str = ""
    dependencies: list[str] = Field(default_factory=list)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _dependency_ids(cls, v: Any) -> Any:
        # meta.json stores dependencies as an id -> details mapping.
        if v is None:
            return []
        if isinstance(v, dict):
            return list(v.keys())
        return v

    @field_validator("version", mode="before")
    @classmethod
    def _version_str(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, int | float):
            return str(v)
        return v


class PackageRecordIn(BaseModel):
    """One package as emitted by the scanner (camelCase)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    file_path: str = Field(alias="filePath")
    file_name: str = Field("", alias="fileName")
    size: int = 0
    is_enabled: bool | None = Field(None, alias="isEnabled")
    meta: PackageMetaIn = Field(default_factory=PackageMetaIn)

    def to_record(self, scan_index: int = 0) -> PackageRecord:
        """Build a :class:`PackageRecord`, filling gaps from the file name."""
        file_name = self.file_name or self.file_path.replace("\\", "/").rsplit("/", 1)[-1]
        creator = self.meta.creator or self.meta.creator_name
        package_name = self.meta.package_name
        version = self.meta.version

        if not creator or not package_name:
            parsed = identity_from_filename(file_name)
            if parsed is not None:
                creator = creator or parsed[0]
                package_name = package_name or parsed[1]
                version = version or parsed[2]

        enabled = self.is_enabled if self.is_enabled is not None else is_enabled_file(file_name)
        return PackageRecord(
            file_path=self.file_path,
            file_name=file_name,
            size_bytes=self.size,
            identity=PackageIdentity(creator=creator, package_name=package_name, version=version),
            declared_dependencies=tuple(self.meta.dependencies),
            is_enabled=enabled,
            scan_index=scan_index,
        )


class SnapshotIn(BaseModel):
    """Scanner output: ``{"packages": [...]}``."""

    model_config = ConfigDict(extra="ignore")

    packages: list[PackageRecordIn] = Field(default_factory=list)


def load_snapshot(payload: Any) -> list[PackageRecord]:
    """Parse a scanner payload (object with ``packages`` or a bare list).

    Raises :class:`~varkeeper.services.ValidationError` on malformed input.
    """
    if isinstance(payload, list):
        payload = {"packages": payload}
    try:
        snapshot = SnapshotIn.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"invalid snapshot payload: {exc}") from exc
    return [pkg.to_record(i) for i, pkg in enumerate(snapshot.packages)]


class PackageView(BaseModel):
    """A classified record as returned to presentation."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath")
    file_name: str = Field(alias="fileName")
    size: int
    creator: str
    package_name: str = Field(alias="packageName")
    version: str
    group: str
    is_enabled: bool = Field(alias="isEnabled")
    is_obsolete: bool = Field(alias="isObsolete")
    is_duplicate: bool = Field(alias="isDuplicate")
    missing_deps: list[str] = Field(alias="missingDeps")

    @classmethod
    def from_record(cls, record: PackageRecord) -> PackageView:
        return cls(
            file_path=record.file_path,
            file_name=record.file_name,
            size=record.size_bytes,
            creator=record.identity.creator,
            package_name=record.identity.package_name,
            version=record.identity.version,
            group=record.group_key,
            is_enabled=record.is_enabled,
            is_obsolete=record.is_obsolete,
            is_duplicate=record.is_exact_duplicate,
            missing_deps=list(record.missing_dependencies),
        )
