"""Impact engine — safe and forced deletion cascades."""

from varkeeper.engines.impact_engine.analyzer import (
    ImpactSet,
    compute_impact,
    forced_cascade,
    safe_cascade,
)

__all__ = [
    "ImpactSet",
    "compute_impact",
    "forced_cascade",
    "safe_cascade",
]
