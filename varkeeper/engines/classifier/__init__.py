"""Classifier engine — annotate snapshot records with library problems."""

from varkeeper.engines.classifier.classifier import (
    classify,
    find_missing,
    find_obsolete,
    is_exact_duplicate,
    rank_by_version,
)

__all__ = [
    "classify",
    "find_missing",
    "find_obsolete",
    "is_exact_duplicate",
    "rank_by_version",
]
