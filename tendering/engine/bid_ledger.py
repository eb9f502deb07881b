"""
Bid Ledger - the authoritative record of bids per tender.

Enforces one pending bid per carrier per tender and the tender's bid window.
Bids are never deleted; only their status changes. Every mutation runs under
the tender's lock from the shared ``TenderStore``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Callable, Optional

from tendering.core.clock import Clock, utc_now
from tendering.core.errors import (
    BidNotFound,
    BidValidationError,
    CarrierNotEligible,
    DuplicateActiveBid,
    TenderAlreadyDecided,
    TenderClosed,
)
from tendering.data.models.bid import BidStatus, CarrierBid
from tendering.data.models.tender import InProgressState, TenderLoad, TenderStatus
from tendering.engine.base import EngineComponent
from tendering.engine.store import TenderStore


class ChangeKind(str, Enum):
    SUBMITTED = "submitted"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


@dataclass(frozen=True)
class LedgerChange:
    """Notification sent to subscribers after a ledger mutation."""

    tender_id: str
    carrier_id: str
    bid_id: str
    kind: ChangeKind
    expires_at: Optional[datetime] = None


LedgerListener = Callable[[LedgerChange], Any]


class _TenderBook:
    """Bids of one tender: submission order plus the active bid per carrier."""

    def __init__(self) -> None:
        self.order: list[str] = []
        self.active: dict[str, str] = {}


def ensure_open(tender: TenderLoad) -> None:
    """
    Raise unless the tender is collecting bids.

    Raises:
        TenderAlreadyDecided: If the tender was awarded or rejected
        TenderClosed: For any other non-collecting status
    """
    if tender.status in (TenderStatus.AWARDED, TenderStatus.REJECTED):
        raise TenderAlreadyDecided(tender.tender_id, tender.status.value)
    if not tender.is_collecting:
        raise TenderClosed(tender.tender_id, f"status is {tender.status.value}")


class BidLedger(EngineComponent):
    """Append-mostly bid store with per-tender validation."""

    def __init__(self, store: TenderStore, clock: Optional[Clock] = None, **kwargs: Any) -> None:
        super().__init__(component_name="bid_ledger", **kwargs)
        self.store = store
        self.clock = clock or utc_now
        self._bids: dict[str, CarrierBid] = {}
        self._books: dict[str, _TenderBook] = {}
        self._books_guard = Lock()
        self._listeners: list[LedgerListener] = []

    def subscribe(self, listener: LedgerListener) -> None:
        """Register a callback invoked after each accepted change."""
        self._listeners.append(listener)

    def _book(self, tender_id: str) -> _TenderBook:
        with self._books_guard:
            book = self._books.get(tender_id)
            if book is None:
                book = self._books[tender_id] = _TenderBook()
            return book

    def _notify(self, changes: list[LedgerChange]) -> None:
        for change in changes:
            for listener in self._listeners:
                listener(change)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def submit_bid(self, tender_id: str, bid: CarrierBid, supersede: bool = False) -> CarrierBid:
        """
        Record a carrier's bid.

        Args:
            tender_id: Tender being bid on
            bid: Fully built bid record
            supersede: Replace the carrier's pending bid instead of failing

        Returns:
            The stored bid

        Raises:
            TenderClosed: Tender not collecting, or submitted after the deadline
            TenderAlreadyDecided: Tender already awarded or rejected
            CarrierNotEligible: Carrier not resolved for this tender
            DuplicateActiveBid: Carrier already has a pending bid and supersede is False
        """
        if bid.tender_id != tender_id:
            raise BidValidationError(f"Bid {bid.bid_id} belongs to tender {bid.tender_id}")

        changes: list[LedgerChange] = []
        with self.store.locked(tender_id) as tender:
            ensure_open(tender)
            if bid.submitted_at > tender.response_deadline:
                raise TenderClosed(tender_id, "response deadline has passed")
            if bid.expires_at < bid.submitted_at:
                raise BidValidationError(f"Bid {bid.bid_id} expires before it was submitted")
            if bid.carrier_id not in tender.eligible_carriers:
                raise CarrierNotEligible(tender_id, bid.carrier_id)

            book = self._book(tender_id)
            prior_id = book.active.get(bid.carrier_id)
            if prior_id is not None:
                prior = self._bids[prior_id]
                lapsed = prior.expires_at < bid.submitted_at
                if not (supersede or lapsed):
                    raise DuplicateActiveBid(tender_id, bid.carrier_id, prior_id)
                prior.status = BidStatus.EXPIRED
                del book.active[bid.carrier_id]
                changes.append(
                    LedgerChange(tender_id, bid.carrier_id, prior_id, ChangeKind.EXPIRED)
                )

            self._bids[bid.bid_id] = bid
            book.order.append(bid.bid_id)
            book.active[bid.carrier_id] = bid.bid_id
            tender.bid_ids.append(bid.bid_id)

            if tender.status == TenderStatus.PENDING:
                tender.transition(
                    InProgressState(
                        sent_at=tender.sent_at,
                        response_deadline=tender.response_deadline,
                        first_bid_at=bid.submitted_at,
                    )
                )
            else:
                tender.revision += 1

            changes.append(
                LedgerChange(
                    tender_id, bid.carrier_id, bid.bid_id, ChangeKind.SUBMITTED, bid.expires_at
                )
            )

        self.logger.info(
            "bid_accepted",
            tender_id=tender_id,
            carrier_id=bid.carrier_id,
            bid_id=bid.bid_id,
            total_cost=str(bid.total_cost),
            superseded=len(changes) > 1,
        )
        self._notify(changes)
        return bid

    def withdraw_bid(self, tender_id: str, carrier_id: str) -> CarrierBid:
        """
        Withdraw the carrier's pending bid; it is kept as Expired.

        Raises:
            BidNotFound: If the carrier has no pending bid
            TenderClosed / TenderAlreadyDecided: If the tender is not collecting
        """
        with self.store.locked(tender_id) as tender:
            ensure_open(tender)
            book = self._book(tender_id)
            bid_id = book.active.pop(carrier_id, None)
            if bid_id is None:
                raise BidNotFound(tender_id, carrier_id)
            bid = self._bids[bid_id]
            bid.status = BidStatus.EXPIRED
            tender.revision += 1

        self.logger.info("bid_withdrawn", tender_id=tender_id, carrier_id=carrier_id, bid_id=bid_id)
        self._notify([LedgerChange(tender_id, carrier_id, bid_id, ChangeKind.WITHDRAWN)])
        return bid

    def expire_bid(self, tender_id: str, bid_id: str, as_of: Optional[datetime] = None) -> bool:
        """
        Mark a pending bid Expired once its own expiry has passed.

        Returns:
            True if the bid was flipped
        """
        as_of = as_of or self.clock()
        with self.store.locked(tender_id) as tender:
            bid = self._bids.get(bid_id)
            if bid is None or not tender.is_collecting or not bid.is_active:
                return False
            if bid.expires_at >= as_of:
                return False
            bid.status = BidStatus.EXPIRED
            book = self._book(tender_id)
            if book.active.get(bid.carrier_id) == bid_id:
                del book.active[bid.carrier_id]
            tender.revision += 1

        self.logger.info("bid_expired", tender_id=tender_id, carrier_id=bid.carrier_id, bid_id=bid_id)
        self._notify([LedgerChange(tender_id, bid.carrier_id, bid_id, ChangeKind.EXPIRED)])
        return True

    def settle(
        self,
        tender_id: str,
        winning_bid_id: Optional[str] = None,
        losing_status: BidStatus = BidStatus.REJECTED,
    ) -> None:
        """
        Close out a tender's pending bids.

        The winner (if any) becomes Accepted, every other pending bid takes
        ``losing_status``. Called by the lifecycle manager inside the tender lock.
        """
        with self.store.lock(tender_id):
            book = self._book(tender_id)
            for bid_id in book.order:
                bid = self._bids[bid_id]
                if not bid.is_active:
                    continue
                bid.status = BidStatus.ACCEPTED if bid_id == winning_bid_id else losing_status
            book.active.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_bid(self, bid_id: str) -> CarrierBid:
        bid = self._bids.get(bid_id)
        if bid is None:
            raise KeyError(f"Unknown bid: {bid_id}")
        return bid

    def list_bids(self, tender_id: str) -> list[CarrierBid]:
        """Every bid ever submitted to the tender, in submission order."""
        with self.store.lock(tender_id):
            return [self._bids[bid_id].model_copy() for bid_id in self._book(tender_id).order]

    def list_active_bids(self, tender_id: str) -> list[CarrierBid]:
        """Pending bids, one per carrier, in submission order."""
        with self.store.lock(tender_id):
            book = self._book(tender_id)
            active = set(book.active.values())
            return [self._bids[bid_id].model_copy() for bid_id in book.order if bid_id in active]

    def valid_bids(self, tender_id: str, as_of: datetime) -> list[CarrierBid]:
        """
        Pending bids that may still be scored at ``as_of``.

        Excludes bids past their own expiry and bids submitted after the
        tender's response deadline.
        """
        with self.store.locked(tender_id) as tender:
            deadline = tender.response_deadline
            return [
                bid
                for bid in self.list_active_bids(tender_id)
                if bid.is_valid_at(as_of) and (deadline is None or bid.submitted_at <= deadline)
            ]

    def responded_carriers(self, tender_id: str) -> set[str]:
        with self.store.lock(tender_id):
            return set(self._book(tender_id).active)

    def has_full_response(self, tender_id: str) -> bool:
        """True when every eligible carrier holds a pending bid."""
        with self.store.locked(tender_id) as tender:
            if not tender.is_collecting or not tender.eligible_carriers:
                return False
            return set(tender.eligible_carriers) <= self.responded_carriers(tender_id)

    def bid_count(self, tender_id: Optional[str] = None) -> int:
        if tender_id is not None:
            with self.store.lock(tender_id):
                return len(self._book(tender_id).order)
        return len(self._bids)
