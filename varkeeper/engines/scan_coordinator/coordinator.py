"""ScanCoordinator — one scan in flight per library, stale results dropped.

The scanner itself lives outside this package; the coordinator only hands
out tokens, cancels superseded scans and filters their results.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace

import structlog

from varkeeper.core.identity import normalize_path
from varkeeper.models.package import PackageRecord

log = structlog.get_logger("varkeeper.engine")

ScanProgress = Callable[[int, int], None]
Scanner = Callable[[str, asyncio.Event, ScanProgress | None], Awaitable[list[PackageRecord]]]


@dataclass
class ScanTicket:
    """Token plus cancel flag for one scan request."""

    token: int
    library_root: str
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


class ScanCoordinator:
    """Token bookkeeping for scans, keyed by library root."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._current: dict[str, ScanTicket] = {}

    def begin(self, library_root: str) -> ScanTicket:
        """Start a scan for *library_root*, cancelling any one in flight."""
        key = normalize_path(library_root)
        previous = self._current.get(key)
        if previous is not None:
            previous.cancel_event.set()
            log.debug("scan.superseded", library=library_root, token=previous.token)
        ticket = ScanTicket(token=next(self._counter), library_root=library_root)
        self._current[key] = ticket
        return ticket

    def is_current(self, ticket: ScanTicket) -> bool:
        return self._current.get(normalize_path(ticket.library_root)) is ticket

    def accept(
        self,
        ticket: ScanTicket,
        records: list[PackageRecord],
    ) -> list[PackageRecord] | None:
        """Return *records* if *ticket* is still current, else ``None``."""
        if ticket.cancelled or not self.is_current(ticket):
            log.debug("scan.stale_discarded", library=ticket.library_root, token=ticket.token)
            return None
        del self._current[normalize_path(ticket.library_root)]
        # Scanner order becomes the stable tie-break.
        return [
            rec if rec.scan_index == i else replace(rec, scan_index=i)
            for i, rec in enumerate(records)
        ]

    async def run(
        self,
        scanner: Scanner,
        library_root: str,
        on_progress: ScanProgress | None = None,
    ) -> list[PackageRecord] | None:
        """Await *scanner* under a fresh ticket and filter its result."""
        ticket = self.begin(library_root)
        log.info("scan.started", library=library_root, token=ticket.token)
        try:
            records = await scanner(library_root, ticket.cancel_event, on_progress)
        except Exception:
            if ticket.cancelled or not self.is_current(ticket):
                log.debug(
                    "scan.stale_discarded",
                    library=library_root,
                    token=ticket.token,
                    exc_info=True,
                )
                return None
            self._current.pop(normalize_path(library_root), None)
            raise
        accepted = self.accept(ticket, records)
        if accepted is not None:
            log.info("scan.completed", library=library_root, token=ticket.token, records=len(accepted))
        return accepted

    def switch_library(self) -> None:
        """Cancel every in-flight scan; results still arriving are discarded."""
        for ticket in self._current.values():
            ticket.cancel_event.set()
        if self._current:
            log.debug("scan.all_cancelled", count=len(self._current))
        self._current.clear()

