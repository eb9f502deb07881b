"""
Scoring Engine - turns a bid and a rule set into a normalized score.

Every function here is pure: the same bid, rules and context always give the
same score. Direction follows the criterion, whatever a min/max operator says:

- cost, transit time:  1 - value / reference, clamped to [0, 1]
- rating, on-time rate, capacity:  value / reference, clamped to [0, 1]
- threshold: 1.0 when the value is within the threshold (cost, transit time) or
  meets it (rating, on-time rate, capacity), else 0.0; with a non-zero
  ``threshold_partial_band`` a miss earns linear credit that falls to zero once
  the shortfall reaches that fraction of the threshold.

References: cost uses the tender's estimated cost times the slack factor,
transit time uses ``reference_max_transit_days``, rating and on-time rate use
their scale maxima, capacity uses 1.

The weighted score is ``sum(sub_score * weight) / sum(weight)`` over enabled
rules with non-zero weight. Each breakdown also carries the savings against
the tender estimate and whether the bid is at or below the target cost.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from tendering.core.config import ScoringConfig
from tendering.data.models.bid import BidStatus, CarrierBid
from tendering.data.models.carrier import CarrierProfile
from tendering.data.models.rules import Criterion, RuleOperator, SelectionRule, enabled_rules
from tendering.data.models.tender import AutoAwardStrategy

# Scores closer than this are treated as equal when ranking.
SCORE_PRECISION = 9


class ScoringContext(BaseModel):
    """Per-tender normalization references, snapshotted at tender creation."""

    estimated_cost: Decimal = Field(..., gt=0)
    target_cost: Optional[Decimal] = None
    reference_ceiling: float = Field(..., gt=0)
    reference_max_transit_days: float = Field(7.0, gt=0)
    rating_scale: float = Field(5.0, gt=0)
    on_time_scale: float = Field(100.0, gt=0)
    threshold_partial_band: float = Field(0.0, ge=0, le=1)
    carrier_metrics: dict[str, CarrierProfile] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def for_tender(
        cls,
        estimated_cost: Decimal,
        config: ScoringConfig,
        carriers: Optional[dict[str, CarrierProfile]] = None,
        target_cost: Optional[Decimal] = None,
    ) -> "ScoringContext":
        return cls(
            estimated_cost=estimated_cost,
            target_cost=target_cost,
            reference_ceiling=float(estimated_cost) * config.cost_slack_factor,
            reference_max_transit_days=config.reference_max_transit_days,
            rating_scale=config.rating_scale,
            on_time_scale=config.on_time_scale,
            threshold_partial_band=config.threshold_partial_band,
            carrier_metrics=dict(carriers or {}),
        )

    def rating_of(self, carrier_id: str) -> float:
        profile = self.carrier_metrics.get(carrier_id)
        return profile.rating if profile else 0.0

    def on_time_rate_of(self, carrier_id: str) -> float:
        profile = self.carrier_metrics.get(carrier_id)
        return profile.on_time_rate if profile else 0.0


class BidScore(BaseModel):
    """Score of one bid with its per-rule breakdown."""

    bid_id: str
    carrier_id: str
    score: float
    sub_scores: dict[str, float]
    auto_award_eligible: bool
    total_cost: Decimal
    savings: Decimal
    below_target: bool
    transit_days: int
    rating: float
    submitted_at: datetime


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def raw_value(bid: CarrierBid, criterion: Criterion, context: ScoringContext) -> float:
    """The bid's raw measurement for a criterion."""
    if criterion == Criterion.COST:
        return float(bid.total_cost)
    if criterion == Criterion.RATING:
        return context.rating_of(bid.carrier_id)
    if criterion == Criterion.ON_TIME_RATE:
        return context.on_time_rate_of(bid.carrier_id)
    if criterion == Criterion.TRANSIT_TIME:
        return float(bid.transit_days)
    if criterion == Criterion.CAPACITY:
        return 1.0 if bid.capacity_confirmed else 0.0
    raise ValueError(f"Unsupported criterion: {criterion}")


def reference_value(criterion: Criterion, context: ScoringContext) -> float:
    """Normalization reference for a criterion."""
    return {
        Criterion.COST: context.reference_ceiling,
        Criterion.RATING: context.rating_scale,
        Criterion.ON_TIME_RATE: context.on_time_scale,
        Criterion.TRANSIT_TIME: context.reference_max_transit_days,
        Criterion.CAPACITY: 1.0,
    }[criterion]


def _threshold_credit(raw: float, rule: SelectionRule, band: float) -> float:
    if rule.criterion.lower_is_better:
        meets = raw <= rule.value
    else:
        meets = raw >= rule.value
    if meets:
        return 1.0
    if band <= 0:
        return 0.0
    shortfall = abs(raw - rule.value) / (abs(rule.value) or 1.0)
    return _clamp(1.0 - shortfall / band)


def sub_score(bid: CarrierBid, rule: SelectionRule, context: ScoringContext) -> float:
    """Normalized [0, 1] score of a bid under a single rule."""
    raw = raw_value(bid, rule.criterion, context)
    if rule.operator == RuleOperator.THRESHOLD:
        return _threshold_credit(raw, rule, context.threshold_partial_band)

    reference = reference_value(rule.criterion, context)
    ratio = raw / reference
    if rule.criterion.lower_is_better:
        return _clamp(1.0 - ratio)
    return _clamp(ratio)


def score_bid(bid: CarrierBid, rules: list[SelectionRule], context: ScoringContext) -> BidScore:
    """Weighted score of a bid with its breakdown."""
    active = enabled_rules(rules)
    sub_scores = {rule.rule_id: sub_score(bid, rule, context) for rule in active}
    total_weight = sum(rule.weight for rule in active)
    if total_weight > 0:
        weighted = sum(sub_scores[rule.rule_id] * rule.weight for rule in active) / total_weight
    else:
        weighted = 0.0

    return BidScore(
        bid_id=bid.bid_id,
        carrier_id=bid.carrier_id,
        score=weighted,
        sub_scores=sub_scores,
        auto_award_eligible=bid.capacity_confirmed,
        total_cost=bid.total_cost,
        savings=context.estimated_cost - bid.total_cost,
        below_target=context.target_cost is not None and bid.total_cost <= context.target_cost,
        transit_days=bid.transit_days,
        rating=context.rating_of(bid.carrier_id),
        submitted_at=bid.submitted_at,
    )


def score(bid: CarrierBid, rules: list[SelectionRule], context: ScoringContext) -> float:
    """Weighted, normalized score in [0, 1]."""
    return score_bid(bid, rules, context).score


def _ranking_key(
    entry: BidScore, ordered_rules: list[SelectionRule], strategy: AutoAwardStrategy
) -> tuple:
    if strategy == AutoAwardStrategy.LOWEST_COST:
        primary: tuple = (entry.total_cost,)
    elif strategy == AutoAwardStrategy.BEST_RATING:
        primary = (-round(entry.rating, SCORE_PRECISION),)
    elif strategy == AutoAwardStrategy.FASTEST_TRANSIT:
        primary = (entry.transit_days,)
    else:
        primary = ()

    # Equal weighted scores fall back to the highest-priority rule whose
    # sub-score differs, then to the earliest submission.
    tie_break = tuple(
        -round(entry.sub_scores[rule.rule_id], SCORE_PRECISION) for rule in ordered_rules
    )
    return (
        primary
        + (-round(entry.score, SCORE_PRECISION),)
        + tie_break
        + (entry.submitted_at, entry.carrier_id, entry.bid_id)
    )


def rank_bids(
    bids: Iterable[CarrierBid],
    rules: list[SelectionRule],
    context: ScoringContext,
    strategy: AutoAwardStrategy = AutoAwardStrategy.BALANCED_SCORE,
) -> list[BidScore]:
    """
    Score and order bids, best first.

    Rejected and expired bids are left out entirely. Capacity-unconfirmed bids
    are ranked but marked ineligible for auto-award.
    """
    ordered_rules = enabled_rules(rules)
    scored = [
        score_bid(bid, rules, context)
        for bid in bids
        if bid.status not in (BidStatus.REJECTED, BidStatus.EXPIRED)
    ]
    return sorted(scored, key=lambda entry: _ranking_key(entry, ordered_rules, strategy))
