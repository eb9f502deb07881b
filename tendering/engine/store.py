"""
In-memory tender registry with one lock per tender.

Operations on different tenders never contend; the registry guard is held only
while looking up or inserting an entry.
"""

from contextlib import contextmanager
from threading import Lock, RLock
from typing import Iterator, Optional

from tendering.core.errors import TenderNotFound
from tendering.data.models.tender import TenderLoad, TenderStatus


class TenderStore:
    """Tender records keyed by tender id, each guarded by its own re-entrant lock."""

    def __init__(self) -> None:
        self._tenders: dict[str, TenderLoad] = {}
        self._locks: dict[str, RLock] = {}
        self._guard = Lock()

    def add(self, tender: TenderLoad) -> None:
        with self._guard:
            if tender.tender_id in self._tenders:
                raise ValueError(f"Tender already registered: {tender.tender_id}")
            self._tenders[tender.tender_id] = tender
            self._locks[tender.tender_id] = RLock()

    def get(self, tender_id: str) -> TenderLoad:
        """Live tender record. Callers mutating it must hold its lock."""
        with self._guard:
            tender = self._tenders.get(tender_id)
        if tender is None:
            raise TenderNotFound(tender_id)
        return tender

    def lock(self, tender_id: str) -> RLock:
        with self._guard:
            lock = self._locks.get(tender_id)
        if lock is None:
            raise TenderNotFound(tender_id)
        return lock

    @contextmanager
    def locked(self, tender_id: str) -> Iterator[TenderLoad]:
        """Hold the tender's lock and yield the live record."""
        with self.lock(tender_id):
            yield self.get(tender_id)

    def all(self, status: Optional[TenderStatus] = None) -> list[TenderLoad]:
        with self._guard:
            tenders = list(self._tenders.values())
        if status is not None:
            tenders = [t for t in tenders if t.status == status]
        return tenders

    def __contains__(self, tender_id: object) -> bool:
        with self._guard:
            return tender_id in self._tenders

    def __len__(self) -> int:
        with self._guard:
            return len(self._tenders)
