"""
Deadline Scheduler - fires decision triggers at the right time.

A single min-heap holds every pending timer: tender response deadlines, per-bid
expiries, and immediate early-completion triggers raised when every eligible
carrier has responded. ``run_due()`` pops and dispatches whatever is due; the
optional background thread simply calls it in a loop.

Cancelling a tender bumps its generation, so timers already popped for it are
dropped rather than dispatched.
"""

import heapq
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from tendering.core.clock import Clock, utc_now
from tendering.engine.base import EngineComponent
from tendering.engine.bid_ledger import BidLedger, ChangeKind, LedgerChange


class TriggerKind(str, Enum):
    RESPONSE_DEADLINE = "response_deadline"
    EARLY_COMPLETION = "early_completion"
    BID_EXPIRY = "bid_expiry"


@dataclass(frozen=True)
class Trigger:
    """A timer that came due."""

    tender_id: str
    kind: TriggerKind
    due_at: datetime
    fired_at: datetime
    bid_id: Optional[str] = None


@dataclass(order=True)
class _Entry:
    fire_at: datetime
    seq: int
    tender_id: str = field(compare=False)
    kind: TriggerKind = field(compare=False)
    generation: int = field(compare=False)
    bid_id: Optional[str] = field(default=None, compare=False)


DecisionHandler = Callable[[Trigger], Any]
FaultHandler = Callable[[str, BaseException], Any]


class DeadlineScheduler(EngineComponent):
    """Min-heap of per-tender timers with a single dispatch loop."""

    def __init__(
        self,
        ledger: BidLedger,
        clock: Optional[Clock] = None,
        poll_seconds: float = 1.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(component_name="deadline_scheduler", **kwargs)
        self.ledger = ledger
        self.clock = clock or utc_now
        self.poll_seconds = poll_seconds

        self._heap: list[_Entry] = []
        self._seq = itertools.count()
        self._generations: dict[str, int] = {}
        self._early_queued: set[str] = set()
        self._cond = threading.Condition()

        self._on_decision_due: Optional[DecisionHandler] = None
        self._on_fault: Optional[FaultHandler] = None
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

        ledger.subscribe(self._on_ledger_change)

    def bind(self, on_decision_due: DecisionHandler, on_fault: FaultHandler) -> None:
        """Set the callbacks for decision triggers and per-tender faults."""
        self._on_decision_due = on_decision_due
        self._on_fault = on_fault

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _push(
        self,
        tender_id: str,
        kind: TriggerKind,
        fire_at: datetime,
        bid_id: Optional[str] = None,
    ) -> None:
        with self._cond:
            entry = _Entry(
                fire_at=fire_at,
                seq=next(self._seq),
                tender_id=tender_id,
                kind=kind,
                generation=self._generations.get(tender_id, 0),
                bid_id=bid_id,
            )
            heapq.heappush(self._heap, entry)
            self._cond.notify()

    def schedule_deadline(self, tender_id: str, deadline: datetime) -> None:
        self._push(tender_id, TriggerKind.RESPONSE_DEADLINE, deadline)
        self.logger.debug("deadline_scheduled", tender_id=tender_id, deadline=deadline.isoformat())

    def schedule_bid_expiry(self, tender_id: str, bid_id: str, expires_at: datetime) -> None:
        self._push(tender_id, TriggerKind.BID_EXPIRY, expires_at, bid_id=bid_id)

    def notify_state_changed(self, tender_id: str) -> bool:
        """
        Queue an immediate decision if every eligible carrier has responded.

        Returns:
            True if an early-completion trigger was queued
        """
        if not self.ledger.has_full_response(tender_id):
            return False
        with self._cond:
            if tender_id in self._early_queued:
                return False
            self._early_queued.add(tender_id)
        self._push(tender_id, TriggerKind.EARLY_COMPLETION, self.clock())
        self.logger.info("early_completion_queued", tender_id=tender_id)
        return True

    def cancel(self, tender_id: str) -> int:
        """
        Drop every timer for the tender.

        Returns:
            Number of heap entries removed
        """
        with self._cond:
            self._generations[tender_id] = self._generations.get(tender_id, 0) + 1
            self._early_queued.discard(tender_id)
            before = len(self._heap)
            self._heap = [entry for entry in self._heap if entry.tender_id != tender_id]
            heapq.heapify(self._heap)
            removed = before - len(self._heap)
        self.logger.debug("timers_cancelled", tender_id=tender_id, removed=removed)
        return removed

    def pending(self, tender_id: Optional[str] = None) -> list[tuple[TriggerKind, datetime]]:
        """Queued timers, soonest first."""
        with self._cond:
            entries = sorted(self._heap)
        return [
            (entry.kind, entry.fire_at)
            for entry in entries
            if tender_id is None or entry.tender_id == tender_id
        ]

    def _on_ledger_change(self, change: LedgerChange) -> None:
        try:
            if change.kind == ChangeKind.SUBMITTED and change.expires_at is not None:
                self.schedule_bid_expiry(change.tender_id, change.bid_id, change.expires_at)
            if change.kind == ChangeKind.SUBMITTED:
                self.notify_state_changed(change.tender_id)
        except Exception as exc:
            self.logger.exception("ledger_change_failed", tender_id=change.tender_id)
            self._fault(change.tender_id, exc)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _fault(self, tender_id: str, exc: BaseException) -> None:
        if self._on_fault is not None:
            self._on_fault(tender_id, exc)

    def _pop_due(self, now: datetime) -> list[_Entry]:
        due: list[_Entry] = []
        with self._cond:
            while self._heap and self._heap[0].fire_at <= now:
                entry = heapq.heappop(self._heap)
                if entry.generation != self._generations.get(entry.tender_id, 0):
                    continue
                if entry.kind == TriggerKind.EARLY_COMPLETION:
                    self._early_queued.discard(entry.tender_id)
                due.append(entry)
        return due

    def run_due(self, now: Optional[datetime] = None) -> list[Trigger]:
        """
        Dispatch every timer due at ``now``.

        A failure while handling one tender is logged and reported to the fault
        handler; other tenders' timers still run.

        Returns:
            Triggers that were dispatched
        """
        now = now or self.clock()
        fired: list[Trigger] = []
        for entry in self._pop_due(now):
            trigger = Trigger(
                tender_id=entry.tender_id,
                kind=entry.kind,
                due_at=entry.fire_at,
                fired_at=now,
                bid_id=entry.bid_id,
            )
            with self._cond:
                if entry.generation != self._generations.get(entry.tender_id, 0):
                    continue
            try:
                if entry.kind == TriggerKind.BID_EXPIRY:
                    self.ledger.expire_bid(entry.tender_id, entry.bid_id, now)
                elif self._on_decision_due is not None:
                    self._on_decision_due(trigger)
                fired.append(trigger)
            except Exception as exc:
                self.logger.exception(
                    "trigger_failed", tender_id=entry.tender_id, kind=entry.kind.value
                )
                self._fault(entry.tender_id, exc)
        return fired

    def _seconds_until_next(self) -> float:
        if not self._heap:
            return self.poll_seconds
        wait = (self._heap[0].fire_at - self.clock()).total_seconds()
        return max(0.0, min(self.poll_seconds, wait))

    def _run(self) -> None:
        self.logger.info("scheduler_started")
        while not self._stopping.is_set():
            self.run_due()
            with self._cond:
                if self._stopping.is_set():
                    break
                self._cond.wait(timeout=self._seconds_until_next())
        self.logger.info("scheduler_stopped")

    def start(self) -> None:
        """Run the dispatch loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopping.clear()
        self._thread = threading.Thread(
            target=self._run, name="tender-deadline-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stopping.set()
        with self._cond:
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
