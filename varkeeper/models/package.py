"""Package snapshot records."""

from __future__ import annotations

from dataclasses import dataclass

from varkeeper.core.identity import UNKNOWN_GROUP, parse_version


@dataclass(frozen=True)
class PackageIdentity:
    """The ``(creator, package_name, version)`` triple naming a release."""

    creator: str = ""
    package_name: str = ""
    version: str = ""

    @property
    def is_known(self) -> bool:
        return bool(self.creator and self.package_name)

    @property
    def group_key(self) -> str:
        if not self.is_known:
            return UNKNOWN_GROUP
        return f"{self.creator}.{self.package_name}"

    @property
    def full_id(self) -> str:
        return f"{self.creator}.{self.package_name}.{self.version}"


@dataclass(frozen=True)
class PackageRecord:
    """One physical package file.

    Scanner-owned fields come first; the last three are written only by
    the classifier.  Records are immutable — derive updated copies with
    :func:`dataclasses.replace`.
    """

    file_path: str
    file_name: str
    size_bytes: int
    identity: PackageIdentity
    declared_dependencies: tuple[str, ...] = ()
    is_enabled: bool = True
    scan_index: int = 0

    # classifier annotations
    is_obsolete: bool = False
    is_exact_duplicate: bool = False
    missing_dependencies: tuple[str, ...] = ()

    @property
    def group_key(self) -> str:
        return self.identity.group_key

    @property
    def exact_key(self) -> str:
        """Duplicate-detection key: identity plus size (no content hashing).

        Records in the ``Unknown`` bucket are keyed by path so that unrelated
        unparseable files never look like copies of each other.
        """
        if not self.identity.is_known:
            return f"{UNKNOWN_GROUP}.{self.file_path}"
        return f"{self.group_key}.{self.identity.version}.{self.size_bytes}"

    @property
    def parsed_version(self) -> int:
        return parse_version(self.identity.version)
