"""
Tender Lifecycle Manager - the tender state machine.

This component:
- Creates tenders from planning requests and snapshots their rules and carrier data
- Sends tenders to the carriers resolved by the pool router
- Takes carrier bids through the bid ledger
- Decides each tender once, at its deadline or when every carrier has responded
- Records manual decisions and cancellations
- Emits award / expiry / rejection events

The award decision is computed outside the tender lock and committed with a
compare-and-set on the tender's revision; a tender changed in between (new bid,
cancellation) is re-evaluated or left alone, never decided twice.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from time import time
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from tendering.core.clock import Clock, utc_now
from tendering.core.config import ConfigManager
from tendering.core.errors import (
    BidNotFound,
    BidValidationError,
    InvalidTransition,
    NoEligibleCarriers,
    NoEnabledRules,
    TenderAlreadyDecided,
    TenderClosed,
    TenderingError,
    TenderNotFound,
)
from tendering.data.models.bid import BidPayload, BidStatus, CarrierBid
from tendering.data.models.events import (
    TenderAwarded,
    TenderEvent,
    TenderExpired,
    TenderRejected,
)
from tendering.data.models.rules import SelectionRule, enabled_rules
from tendering.data.models.tender import (
    AutoAwardStrategy,
    AwardedState,
    CancelledState,
    ExpiredState,
    PendingReviewState,
    PendingState,
    RejectedState,
    ReviewReason,
    TenderLoad,
    TenderSpec,
    TenderStatus,
)
from tendering.engine.base import DecisionRecord, EngineComponent
from tendering.engine.bid_ledger import BidLedger, ensure_open
from tendering.engine.pool_router import CarrierPoolRouter
from tendering.engine.scheduler import DeadlineScheduler, Trigger, TriggerKind
from tendering.engine.scoring import BidScore, ScoringContext, rank_bids, score_bid
from tendering.engine.store import TenderStore
from tendering.notifications.publisher import EventPublisher

SYSTEM_ACTOR = "system"


class TenderStats(BaseModel):
    """Dashboard counters across all tenders."""

    active_tenders: int
    awarded: int
    pending: int
    pending_review: int
    total_bids: int
    avg_bids_per_tender: float
    auto_award_rate: float  # percent of awarded tenders decided automatically


@dataclass(frozen=True)
class _Snapshot:
    """Everything the decision needs, captured under the tender lock."""

    tender_id: str
    revision: int
    trigger: TriggerKind
    as_of: datetime
    auto_award: bool
    strategy: AutoAwardStrategy
    rules: list[SelectionRule]
    bids: list[CarrierBid]
    response_deadline: datetime


@dataclass(frozen=True)
class _Outcome:
    status: TenderStatus
    ranking: list[BidScore]
    winner: Optional[BidScore] = None
    review_reason: Optional[ReviewReason] = None
    reasoning: str = ""


class TenderLifecycleManager(EngineComponent):
    """
    Top-level tendering service.

    Owns the tender store and wires the pool router, bid ledger, deadline
    scheduler and event publisher together.
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        clock: Optional[Clock] = None,
        router: Optional[CarrierPoolRouter] = None,
        publisher: Optional[EventPublisher] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the lifecycle manager.

        Args:
            config_manager: Optional config manager (defaults to global instance)
            clock: Time source (defaults to UTC wall clock)
            router: Carrier pool router (defaults to one over the configured pools)
            publisher: Event publisher (defaults to the configured transport)
        """
        super().__init__(component_name="lifecycle", config_manager=config_manager, **kwargs)
        self.clock = clock or utc_now

        self.tendering_config = self.config_manager.get_tendering_config()
        self.scoring_config = self.config_manager.get_scoring_config()

        self.store = TenderStore()
        self.router = router or CarrierPoolRouter(config_manager=self.config_manager)
        self.ledger = BidLedger(self.store, clock=self.clock, config_manager=self.config_manager)
        self.scheduler = DeadlineScheduler(
            self.ledger,
            clock=self.clock,
            poll_seconds=self.tendering_config.scheduler_poll_seconds,
            config_manager=self.config_manager,
        )
        self.scheduler.bind(self._on_decision_due, self.flag_for_audit)
        self.publisher = publisher or EventPublisher(config_manager=self.config_manager)
        self._contexts: dict[str, ScoringContext] = {}

    # ------------------------------------------------------------------
    # Service control
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background deadline scheduler."""
        self.scheduler.start()

    def close(self) -> None:
        """Stop the scheduler and drain pending event deliveries."""
        self.scheduler.stop()
        self.publisher.close()

    # ------------------------------------------------------------------
    # Tender creation and sending
    # ------------------------------------------------------------------

    def create_tender(self, spec: Union[TenderSpec, dict[str, Any]]) -> str:
        """
        Register a new tender in Draft.

        Carrier master data and the rule set are snapshotted here and used for
        the tender's whole life.

        Args:
            spec: Planning request (model or plain dict)

        Returns:
            The new tender id
        """
        if not isinstance(spec, TenderSpec):
            spec = TenderSpec.model_validate(spec)

        tender_id = f"TND-{uuid.uuid4().hex[:12].upper()}"
        fields = spec.model_dump()
        fields["tender_number"] = spec.tender_number or tender_id
        tender = TenderLoad(**fields, tender_id=tender_id, created_at=self.clock())

        self._contexts[tender_id] = ScoringContext.for_tender(
            tender.estimated_cost,
            self.scoring_config,
            self.config_manager.get_carrier_profiles(),
            target_cost=tender.target_cost,
        )
        self.store.add(tender)

        self.logger.info(
            "tender_created",
            tender_id=tender_id,
            tender_number=tender.tender_number,
            load_type=tender.load_type.value,
            auto_award=tender.auto_award,
            rule_count=len(tender.rules),
        )
        return tender_id

    def send_tender(self, tender_id: str) -> TenderStatus:
        """
        Send a Draft tender to its eligible carriers and start the clock.

        When no carrier pool matches, the tender goes to manual review instead.

        Returns:
            The tender's status after sending (Pending or Pending Review)

        Raises:
            InvalidTransition: If the tender is not in Draft
        """
        now = self.clock()
        with self.store.locked(tender_id) as tender:
            if tender.status != TenderStatus.DRAFT:
                raise InvalidTransition(
                    tender_id, tender.status.value, TenderStatus.PENDING.value
                )
            try:
                carriers = self.router.resolve_eligible_carriers(tender)
            except NoEligibleCarriers as exc:
                self.logger.warning("manual_sourcing_required", tender_id=tender_id, error=str(exc))
                tender.transition(
                    PendingReviewState(
                        reason=ReviewReason.NO_ELIGIBLE_CARRIERS, since=now, cutoff=now
                    )
                )
                return tender.status

            window = tender.response_window or timedelta(
                minutes=self.tendering_config.default_response_window_minutes
            )
            deadline = now + window
            tender.eligible_carriers = carriers
            tender.transition(PendingState(sent_at=now, response_deadline=deadline))
            self.scheduler.schedule_deadline(tender_id, deadline)

        self.logger.info(
            "tender_sent",
            tender_id=tender_id,
            carriers=carriers,
            response_deadline=deadline.isoformat(),
        )
        return TenderStatus.PENDING

    # ------------------------------------------------------------------
    # Bids
    # ------------------------------------------------------------------

    def submit_carrier_bid(
        self,
        tender_id: str,
        carrier_id: str,
        payload: Union[BidPayload, dict[str, Any]],
        supersede: bool = False,
    ) -> str:
        """
        Accept a carrier's bid.

        Args:
            tender_id: Tender being bid on
            carrier_id: Bidding carrier
            payload: Bid contents
            supersede: Replace the carrier's current pending bid

        Returns:
            The new bid id

        Raises:
            BidValidationError: Malformed payload or ineligible carrier
            TenderClosed / TenderAlreadyDecided / DuplicateActiveBid: State errors
        """
        log = self.logger.bind(tender_id=tender_id, carrier_id=carrier_id)
        now = self.clock()
        try:
            if not isinstance(payload, BidPayload):
                payload = BidPayload.model_validate(payload)
            tender = self.store.get(tender_id)
            expires_at = payload.expires_at or tender.response_deadline or now
            bid = CarrierBid(
                **payload.model_dump(exclude={"expires_at"}),
                bid_id=f"BID-{uuid.uuid4().hex[:12].upper()}",
                tender_id=tender_id,
                carrier_id=carrier_id,
                submitted_at=now,
                expires_at=expires_at,
            )
        except ValidationError as exc:
            log.warning("bid_invalid", errors=exc.error_count())
            raise BidValidationError(f"Invalid bid for tender {tender_id}: {exc}") from exc

        try:
            self.ledger.submit_bid(tender_id, bid, supersede=supersede)
        except TenderingError as exc:
            log.warning("bid_rejected", reason=type(exc).__name__, error=str(exc))
            raise
        return bid.bid_id

    def withdraw_bid(self, tender_id: str, carrier_id: str) -> CarrierBid:
        """Withdraw a carrier's pending bid."""
        return self.ledger.withdraw_bid(tender_id, carrier_id)

    # ------------------------------------------------------------------
    # Automatic decision
    # ------------------------------------------------------------------

    def _on_decision_due(self, trigger: Trigger) -> None:
        self.evaluate_tender(trigger.tender_id, trigger.kind, trigger.fired_at)

    def _snapshot(
        self, tender_id: str, trigger: TriggerKind, now: datetime
    ) -> Optional[_Snapshot]:
        with self.store.locked(tender_id) as tender:
            if not tender.is_collecting:
                return None
            deadline = tender.response_deadline
            if trigger == TriggerKind.RESPONSE_DEADLINE:
                if now < deadline:
                    return None
                as_of = deadline
            else:
                if not self.ledger.has_full_response(tender_id):
                    return None
                as_of = min(now, deadline)

            return _Snapshot(
                tender_id=tender_id,
                revision=tender.revision,
                trigger=trigger,
                as_of=as_of,
                auto_award=tender.auto_award,
                strategy=tender.auto_award_strategy,
                rules=list(tender.rules),
                bids=self.ledger.valid_bids(tender_id, as_of),
                response_deadline=deadline,
            )

    def _decide(self, snapshot: _Snapshot) -> Optional[_Outcome]:
        context = self._contexts[snapshot.tender_id]
        ranking = rank_bids(snapshot.bids, snapshot.rules, context, snapshot.strategy)

        if not ranking:
            if snapshot.trigger == TriggerKind.RESPONSE_DEADLINE:
                return _Outcome(
                    TenderStatus.EXPIRED, ranking, reasoning="No valid bids by the response deadline"
                )
            return None

        if not snapshot.auto_award:
            return _Outcome(
                TenderStatus.PENDING_REVIEW,
                ranking,
                review_reason=ReviewReason.AUTO_AWARD_DISABLED,
                reasoning="Auto-award disabled for this tender",
            )

        if not enabled_rules(snapshot.rules):
            error = NoEnabledRules(snapshot.tender_id)
            self.logger.warning("auto_award_misconfigured", tender_id=snapshot.tender_id, error=str(error))
            return _Outcome(
                TenderStatus.PENDING_REVIEW,
                ranking,
                review_reason=ReviewReason.NO_ENABLED_RULES,
                reasoning=str(error),
            )

        eligible = [entry for entry in ranking if entry.auto_award_eligible]
        if not eligible:
            return _Outcome(
                TenderStatus.PENDING_REVIEW,
                ranking,
                review_reason=ReviewReason.NO_CONFIRMED_CAPACITY,
                reasoning="No bid has confirmed capacity",
            )

        winner = eligible[0]
        return _Outcome(
            TenderStatus.AWARDED,
            ranking,
            winner=winner,
            reasoning=(
                f"{snapshot.strategy.value}: carrier {winner.carrier_id} "
                f"scored {winner.score:.4f} of {len(ranking)} bids"
            ),
        )

    def _commit(
        self, snapshot: _Snapshot, outcome: _Outcome
    ) -> tuple[str, Optional[TenderEvent]]:
        """
        Apply an outcome if the tender is unchanged since the snapshot.

        Returns:
            ("committed" | "stale" | "retry", event to publish)
        """
        tender_id = snapshot.tender_id
        now = self.clock()
        with self.store.locked(tender_id) as tender:
            if not tender.is_collecting:
                return "stale", None
            if tender.revision != snapshot.revision:
                return "retry", None

            event: Optional[TenderEvent] = None
            if outcome.status == TenderStatus.AWARDED:
                winner = outcome.winner
                tender.transition(
                    AwardedState(
                        carrier_id=winner.carrier_id,
                        bid_id=winner.bid_id,
                        amount=winner.total_cost,
                        decided_at=now,
                        decided_by=SYSTEM_ACTOR,
                        automatic=True,
                        score=winner.score,
                    )
                )
                self.ledger.settle(tender_id, winner.bid_id)
                event = TenderAwarded(
                    tender_id=tender_id,
                    occurred_at=now,
                    carrier_id=winner.carrier_id,
                    bid_id=winner.bid_id,
                    amount=winner.total_cost,
                )
            elif outcome.status == TenderStatus.EXPIRED:
                tender.transition(ExpiredState(expired_at=snapshot.as_of))
                self.ledger.settle(tender_id, None, losing_status=BidStatus.EXPIRED)
                event = TenderExpired(tender_id=tender_id, occurred_at=now)
            else:
                tender.transition(
                    PendingReviewState(
                        reason=outcome.review_reason,
                        since=now,
                        cutoff=snapshot.as_of,
                        ranked_bid_ids=[entry.bid_id for entry in outcome.ranking],
                        response_deadline=snapshot.response_deadline,
                    )
                )
            self.scheduler.cancel(tender_id)
        return "committed", event

    def evaluate_tender(
        self,
        tender_id: str,
        trigger: TriggerKind = TriggerKind.RESPONSE_DEADLINE,
        now: Optional[datetime] = None,
    ) -> Optional[TenderStatus]:
        """
        Run the decision for a collecting tender.

        Does nothing if the tender is no longer collecting, if a deadline trigger
        arrives early, or if an early-completion trigger finds carriers missing.

        Args:
            tender_id: Tender to decide
            trigger: What caused the evaluation
            now: Evaluation time (defaults to the clock)

        Returns:
            The new status, or None when nothing was decided
        """
        start_time = time()
        now = now or self.clock()
        for attempt in range(1, self.tendering_config.max_decision_attempts + 1):
            snapshot = self._snapshot(tender_id, trigger, now)
            if snapshot is None:
                return None
            outcome = self._decide(snapshot)
            if outcome is None:
                return None

            result, event = self._commit(snapshot, outcome)
            if result == "stale":
                self.logger.info("decision_discarded", tender_id=tender_id, trigger=trigger.value)
                return None
            if result == "retry":
                self.logger.debug("decision_retry", tender_id=tender_id, attempt=attempt)
                continue

            self.log_decision(
                DecisionRecord(
                    timestamp=now,
                    component=self.component_name,
                    decision_type=outcome.status.value,
                    tender_id=tender_id,
                    input_data={
                        "trigger": trigger.value,
                        "as_of": snapshot.as_of.isoformat(),
                        "strategy": snapshot.strategy.value,
                        "bid_count": len(snapshot.bids),
                    },
                    reasoning=outcome.reasoning,
                    output_data={
                        "ranking": [
                            {"carrier_id": e.carrier_id, "bid_id": e.bid_id, "score": e.score}
                            for e in outcome.ranking
                        ],
                        "winner": outcome.winner.carrier_id if outcome.winner else None,
                    },
                    execution_time_seconds=time() - start_time,
                )
            )
            if event is not None:
                self.publisher.publish(event)
            return outcome.status

        self.logger.warning(
            "decision_contended",
            tender_id=tender_id,
            attempts=self.tendering_config.max_decision_attempts,
        )
        return None

    # ------------------------------------------------------------------
    # Manual actions
    # ------------------------------------------------------------------

    def manual_decision(
        self,
        tender_id: str,
        carrier_id: Optional[str],
        actor: str,
        reason: str = "",
    ) -> TenderStatus:
        """
        Award to a carrier or reject the tender from Pending Review.

        An award needs a bid that was valid at the review cutoff. A tender that
        entered review with ``no_eligible_carriers`` has no bids, so it is
        sourced outside the engine and closed here with a rejection (or with
        ``cancel_tender``).

        Args:
            tender_id: Tender under review
            carrier_id: Carrier to award, or None to reject
            actor: Who made the decision
            reason: Free-text justification

        Raises:
            TenderAlreadyDecided: Tender already awarded or rejected
            InvalidTransition: Tender is not in Pending Review
            BidNotFound: The carrier has no bid valid at the review cutoff
        """
        now = self.clock()
        with self.store.locked(tender_id) as tender:
            if tender.status in (TenderStatus.AWARDED, TenderStatus.REJECTED):
                raise TenderAlreadyDecided(tender_id, tender.status.value)
            if tender.status != TenderStatus.PENDING_REVIEW:
                requested = TenderStatus.AWARDED if carrier_id else TenderStatus.REJECTED
                raise InvalidTransition(tender_id, tender.status.value, requested.value)

            event: TenderEvent
            if carrier_id is None:
                tender.transition(RejectedState(decided_at=now, decided_by=actor, reason=reason))
                self.ledger.settle(tender_id, None)
                event = TenderRejected(
                    tender_id=tender_id, occurred_at=now, decided_by=actor, reason=reason or None
                )
            else:
                candidates = self.ledger.valid_bids(tender_id, tender.state.cutoff)
                bid = next((b for b in candidates if b.carrier_id == carrier_id), None)
                if bid is None:
                    raise BidNotFound(tender_id, carrier_id)
                entry = score_bid(bid, tender.rules, self._contexts[tender_id])
                tender.transition(
                    AwardedState(
                        carrier_id=carrier_id,
                        bid_id=bid.bid_id,
                        amount=bid.total_cost,
                        decided_at=now,
                        decided_by=actor,
                        automatic=False,
                        score=entry.score,
                    )
                )
                self.ledger.settle(tender_id, bid.bid_id)
                event = TenderAwarded(
                    tender_id=tender_id,
                    occurred_at=now,
                    carrier_id=carrier_id,
                    bid_id=bid.bid_id,
                    amount=bid.total_cost,
                    automatic=False,
                )
            self.scheduler.cancel(tender_id)
            status = tender.status

        self.logger.info(
            "manual_decision",
            tender_id=tender_id,
            status=status.value,
            carrier_id=carrier_id,
            actor=actor,
        )
        self.publisher.publish(event)
        return status

    def cancel_tender(self, tender_id: str, reason: str = "") -> None:
        """
        Cancel a tender from any non-terminal state.

        Pending bids are kept as Expired. Any decision already in flight for the
        tender is discarded when it tries to commit.

        Raises:
            TenderAlreadyDecided: Tender already awarded or rejected
            TenderClosed: Tender already expired or cancelled
        """
        now = self.clock()
        with self.store.locked(tender_id) as tender:
            if tender.status in (TenderStatus.AWARDED, TenderStatus.REJECTED):
                raise TenderAlreadyDecided(tender_id, tender.status.value)
            if tender.is_terminal:
                raise TenderClosed(tender_id, f"status is {tender.status.value}")
            tender.transition(CancelledState(cancelled_at=now, reason=reason))
            self.ledger.settle(tender_id, None, losing_status=BidStatus.EXPIRED)
            self.scheduler.cancel(tender_id)

        self.logger.info("tender_cancelled", tender_id=tender_id, reason=reason)

    def re_evaluate(
        self, tender_id: str, rules: Optional[list[SelectionRule]] = None
    ) -> list[BidScore]:
        """
        Re-score a tender's bids, optionally under a replacement rule set.

        Allowed while collecting bids or in Pending Review; a review tender's
        stored ranking is refreshed.

        Returns:
            The new ranking, best first
        """
        now = self.clock()
        with self.store.locked(tender_id) as tender:
            if tender.status != TenderStatus.PENDING_REVIEW:
                ensure_open(tender)
            if rules is not None:
                rule_ids = [rule.rule_id for rule in rules]
                if len(rule_ids) != len(set(rule_ids)):
                    raise ValueError("rule ids must be unique within a tender")
                tender.rules = list(rules)
                tender.revision += 1

            ranking = self._rank_locked(tender, now)
            if tender.status == TenderStatus.PENDING_REVIEW:
                tender.state = tender.state.model_copy(
                    update={"ranked_bid_ids": [entry.bid_id for entry in ranking]}
                )
                tender.revision += 1

        self.logger.info(
            "tender_re_evaluated",
            tender_id=tender_id,
            rules_replaced=rules is not None,
            bid_count=len(ranking),
        )
        return ranking

    def flag_for_audit(self, tender_id: str, error: Union[BaseException, str]) -> None:
        """Mark a tender for manual audit after an internal fault."""
        try:
            with self.store.locked(tender_id) as tender:
                tender.audit_flag = True
                tender.audit_reason = str(error) or type(error).__name__
        except TenderNotFound:
            self.logger.error("audit_flag_unknown_tender", tender_id=tender_id, error=str(error))
            return
        self.logger.error("tender_flagged_for_audit", tender_id=tender_id, error=str(error))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _rank_locked(self, tender: TenderLoad, now: datetime) -> list[BidScore]:
        if tender.status == TenderStatus.PENDING_REVIEW:
            as_of = tender.state.cutoff
        elif tender.response_deadline is not None:
            as_of = min(now, tender.response_deadline)
        else:
            as_of = now
        bids = self.ledger.valid_bids(tender.tender_id, as_of)
        return rank_bids(
            bids, tender.rules, self._contexts[tender.tender_id], tender.auto_award_strategy
        )

    def rank_bids(self, tender_id: str) -> list[BidScore]:
        """Current ranking of the tender's valid bids, best first."""
        with self.store.locked(tender_id) as tender:
            return self._rank_locked(tender, self.clock())

    def get_tender(self, tender_id: str) -> TenderLoad:
        """Copy of the tender record."""
        with self.store.locked(tender_id) as tender:
            return tender.model_copy(deep=True)

    def list_tenders(self, status: Optional[TenderStatus] = None) -> list[TenderLoad]:
        return [self.get_tender(t.tender_id) for t in self.store.all(status)]

    def list_bids(self, tender_id: str) -> list[CarrierBid]:
        return self.ledger.list_bids(tender_id)

    def stats(self) -> TenderStats:
        """Counters across every tender."""
        tenders = [self.get_tender(t.tender_id) for t in self.store.all()]
        awarded = [t for t in tenders if t.status == TenderStatus.AWARDED]
        automatic = [t for t in awarded if t.state.automatic]
        total_bids = sum(len(t.bid_ids) for t in tenders)
        return TenderStats(
            active_tenders=sum(1 for t in tenders if t.is_collecting),
            awarded=len(awarded),
            pending=sum(1 for t in tenders if t.status == TenderStatus.PENDING),
            pending_review=sum(1 for t in tenders if t.status == TenderStatus.PENDING_REVIEW),
            total_bids=total_bids,
            avg_bids_per_tender=round(total_bids / len(tenders), 1) if tenders else 0.0,
            auto_award_rate=round(len(automatic) / len(awarded) * 100, 1) if awarded else 0.0,
        )


def main() -> None:
    """Example usage of the lifecycle manager."""
    from tendering.core.config import get_config
    from tendering.core.logging import configure_logging
    from tendering.data.models.rules import Criterion, RuleOperator
    from tendering.data.models.tender import Location, TimeWindow

    config = get_config()
    configure_logging(level=config.env.log_level, json_output=config.env.log_json)

    manager = TenderLifecycleManager(config_manager=config)
    now = manager.clock()

    tender_id = manager.create_tender(
        TenderSpec(
            tender_number="TND-2024-001",
            customer="Best Buy - Phoenix",
            origin=Location(name="LA Distribution Center", city="Los Angeles", state="CA"),
            destination=Location(name="Seattle Warehouse", city="Seattle", state="WA"),
            pickup_window=TimeWindow(start=now + timedelta(days=1), end=now + timedelta(days=1, hours=4)),
            delivery_window=TimeWindow(start=now + timedelta(days=2), end=now + timedelta(days=2, hours=8)),
            distance_miles=1135,
            commodity="Electronics",
            weight_lbs=42000,
            pallets=20,
            estimated_cost=Decimal("2800"),
            target_cost=Decimal("2600"),
            rules=[
                SelectionRule(rule_id="1", name="Cost Optimization", criterion=Criterion.COST,
                              operator=RuleOperator.MINIMIZE, weight=40, priority=1),
                SelectionRule(rule_id="2", name="Carrier Rating", criterion=Criterion.RATING,
                              operator=RuleOperator.MAXIMIZE, weight=30, priority=2),
                SelectionRule(rule_id="3", name="On-Time Performance", criterion=Criterion.ON_TIME_RATE,
                              operator=RuleOperator.MAXIMIZE, weight=30, priority=3),
            ],
        )
    )
    manager.send_tender(tender_id)

    offers = {
        "1": ("2650", "265", "150", 1),
        "2": ("2450", "245", "100", 2),
        "3": ("2350", "235", "120", 2),
    }
    for carrier_id, (amount, fuel, accessorial, days) in offers.items():
        manager.submit_carrier_bid(
            tender_id,
            carrier_id,
            {
                "bid_amount": amount,
                "fuel_surcharge": fuel,
                "accessorial_charges": accessorial,
                "transit_days": days,
                "capacity_confirmed": True,
                "equipment_type": "Dry Van 53ft",
            },
        )

    ranking = manager.rank_bids(tender_id)
    tender = manager.get_tender(tender_id)
    manager.scheduler.run_due(now=tender.response_deadline)
    manager.publisher.flush()
    tender = manager.get_tender(tender_id)

    print("\n" + "=" * 80)
    print("TENDER DECISION")
    print("=" * 80)
    print(f"Tender: {tender.tender_number} ({tender.origin} → {tender.destination})")
    print(f"Status: {tender.status.value}")
    for position, entry in enumerate(ranking, start=1):
        marker = " (below target)" if entry.below_target else ""
        print(
            f"  {position}. Carrier {entry.carrier_id}: score {entry.score:.4f}, "
            f"total ${entry.total_cost}, savings ${entry.savings}{marker}"
        )
    if tender.status == TenderStatus.AWARDED:
        print(f"\nAwarded to carrier {tender.state.carrier_id} for ${tender.state.amount}")
    print("\n" + "=" * 80)
    manager.close()


if __name__ == "__main__":
    main()
