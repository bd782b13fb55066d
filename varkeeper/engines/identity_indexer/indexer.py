"""Identity indexer — lookup structures built in one pass over a snapshot."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from varkeeper.core.identity import normalize_id
from varkeeper.models.package import PackageRecord


@dataclass
class LibraryIndex:
    """Lookup tables derived from a single snapshot.

    ``identity_set`` and ``base_id_set`` hold normalised (lower-case) ids.
    ``group_map`` preserves scan order inside each bucket.
    """

    identity_set: frozenset[str] = frozenset()
    base_id_set: frozenset[str] = frozenset()
    group_map: dict[str, list[PackageRecord]] = field(default_factory=dict)
    all_copies: Counter[str] = field(default_factory=Counter)
    enabled_copies: Counter[str] = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return sum(len(group) for group in self.group_map.values())

    def has_identity(self, dep_id: str) -> bool:
        return normalize_id(dep_id) in self.identity_set

    def has_base(self, base_id: str) -> bool:
        return normalize_id(base_id) in self.base_id_set


def build_index(records: Iterable[PackageRecord]) -> LibraryIndex:
    """Build a :class:`LibraryIndex`; pure, safe to call on every snapshot change.

    No record is skipped: records without a creator or package name land in
    the ``Unknown`` group so bucket totals always match the snapshot size.
    """
    identities: set[str] = set()
    bases: set[str] = set()
    group_map: dict[str, list[PackageRecord]] = {}
    all_copies: Counter[str] = Counter()
    enabled_copies: Counter[str] = Counter()

    for rec in records:
        group_map.setdefault(rec.group_key, []).append(rec)

        key = rec.exact_key
        all_copies[key] += 1
        if rec.is_enabled:
            enabled_copies[key] += 1

        if rec.identity.is_known:
            identities.add(normalize_id(rec.identity.full_id))
            bases.add(normalize_id(rec.group_key))

    return LibraryIndex(
        identity_set=frozenset(identities),
        base_id_set=frozenset(bases),
        group_map=group_map,
        all_copies=all_copies,
        enabled_copies=enabled_copies,
    )
