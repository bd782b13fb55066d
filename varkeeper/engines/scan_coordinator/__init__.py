"""Scan coordinator — per-library scan tokens and stale-result discard."""

from varkeeper.engines.scan_coordinator.coordinator import (
    ScanCoordinator,
    Scanner,
    ScanProgress,
    ScanTicket,
)

__all__ = [
    "ScanCoordinator",
    "ScanProgress",
    "ScanTicket",
    "Scanner",
]
