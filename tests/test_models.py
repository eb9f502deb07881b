"""Tests for the tender, bid and rule models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import DEADLINE, START
from tendering.core.errors import InvalidTransition
from tendering.data.models.bid import BidPayload, ServiceLevel
from tendering.data.models.carrier import CarrierPool
from tendering.data.models.rules import Criterion, RuleOperator, SelectionRule, enabled_rules
from tendering.data.models.tender import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    CancelledState,
    DraftState,
    ExpiredState,
    LoadType,
    PendingState,
    TenderStatus,
    TimeWindow,
)


def test_terminal_states_have_no_exits():
    for status in TERMINAL_STATUSES:
        assert ALLOWED_TRANSITIONS[status] == frozenset()


def test_transition_bumps_revision(make_tender):
    tender = make_tender()
    tender.transition(PendingState(sent_at=START, response_deadline=DEADLINE))
    assert tender.status == TenderStatus.PENDING
    assert tender.revision == 1
    assert tender.response_deadline == DEADLINE


def test_illegal_transition_rejected(make_tender):
    tender = make_tender()
    with pytest.raises(InvalidTransition):
        tender.transition(ExpiredState(expired_at=START))
    assert isinstance(tender.state, DraftState)
    assert tender.revision == 0


def test_cancelled_is_final(make_tender):
    tender = make_tender()
    tender.transition(CancelledState(cancelled_at=START))
    assert tender.is_terminal
    with pytest.raises(InvalidTransition):
        tender.transition(PendingState(sent_at=START, response_deadline=DEADLINE))


def test_time_window_order():
    with pytest.raises(ValidationError):
        TimeWindow(start=DEADLINE, end=START)


def test_naive_datetimes_are_utc():
    window = TimeWindow(start=datetime(2025, 11, 30, 8), end=datetime(2025, 11, 30, 12))
    assert window.start.tzinfo == timezone.utc


def test_duplicate_rule_ids_rejected(make_spec):
    rule = SelectionRule(rule_id="cost", criterion=Criterion.COST,
                         operator=RuleOperator.MINIMIZE, weight=1)
    with pytest.raises(ValidationError):
        make_spec(rules=[rule, rule])


def test_non_positive_response_window_rejected(make_spec):
    with pytest.raises(ValidationError):
        make_spec(response_window=timedelta(0))


def test_bid_total_cost(make_bid):
    bid = make_bid("2", "2450", "245", "100")
    assert bid.total_cost == Decimal("2795")
    assert bid.model_dump()["total_cost"] == Decimal("2795")


def test_bid_validity_is_inclusive_of_expiry(make_bid):
    bid = make_bid("2", expires_at=DEADLINE)
    assert bid.is_valid_at(DEADLINE)
    assert not bid.is_valid_at(DEADLINE + timedelta(microseconds=1))


def test_bid_payload_rejects_negative_charges():
    with pytest.raises(ValidationError):
        BidPayload(bid_amount="2000", fuel_surcharge="-1", transit_days=2,
                   equipment_type="Dry Van 53ft")


def test_bid_payload_schedule_order():
    with pytest.raises(ValidationError):
        BidPayload(
            bid_amount="2000",
            transit_days=2,
            equipment_type="Dry Van 53ft",
            estimated_pickup=DEADLINE,
            estimated_delivery=START,
        )


def test_enabled_rules_sorted_by_priority():
    rules = [
        SelectionRule(rule_id="b", criterion=Criterion.RATING, weight=1, priority=2),
        SelectionRule(rule_id="a", criterion=Criterion.COST, weight=1, priority=2),
        SelectionRule(rule_id="c", criterion=Criterion.CAPACITY, weight=1, priority=1),
        SelectionRule(rule_id="off", criterion=Criterion.COST, weight=1, enabled=False),
        SelectionRule(rule_id="zero", criterion=Criterion.COST, weight=0),
    ]
    assert [rule.rule_id for rule in enabled_rules(rules)] == ["c", "a", "b"]


@pytest.mark.parametrize(
    "criterion, expected",
    [
        (Criterion.COST, RuleOperator.MINIMIZE),
        (Criterion.TRANSIT_TIME, RuleOperator.MINIMIZE),
        (Criterion.RATING, RuleOperator.MAXIMIZE),
        (Criterion.ON_TIME_RATE, RuleOperator.MAXIMIZE),
        (Criterion.CAPACITY, RuleOperator.MAXIMIZE),
    ],
)
def test_rule_direction_follows_criterion(criterion, expected):
    assert SelectionRule(rule_id="r", criterion=criterion, weight=1).operator == expected
    contrary = (RuleOperator.MAXIMIZE if expected == RuleOperator.MINIMIZE
                else RuleOperator.MINIMIZE)
    assert SelectionRule(rule_id="r", criterion=criterion, operator=contrary,
                         weight=1).operator == expected


def test_threshold_operator_is_kept():
    rule = SelectionRule.model_validate(
        {"rule_id": "fast", "criterion": "transit_time", "operator": "threshold",
         "value": 3, "weight": 1}
    )
    assert rule.operator == RuleOperator.THRESHOLD


def test_pool_serves_any_requested_service():
    pool = CarrierPool(pool_id="2", name="Standard Freight Network", carrier_ids=["2"],
                       lane_types={LoadType.LTL}, service_types={ServiceLevel.ECONOMY},
                       priority=2)
    assert pool.serves(LoadType.LTL, {ServiceLevel.EXPRESS, ServiceLevel.ECONOMY})
    assert not pool.serves(LoadType.FTL, {ServiceLevel.ECONOMY})
    assert not pool.serves(LoadType.LTL, {ServiceLevel.EXPRESS})
