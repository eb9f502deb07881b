"""Tests for carrier pool routing."""

import pytest

from tendering.core.errors import NoEligibleCarriers
from tendering.data.models.bid import ServiceLevel
from tendering.data.models.carrier import CarrierPool
from tendering.data.models.tender import LoadType
from tendering.engine.pool_router import CarrierPoolRouter


@pytest.fixture
def router(config_manager):
    return CarrierPoolRouter(config_manager=config_manager)


def test_pools_loaded_from_config(router):
    assert [pool.pool_id for pool in router.pools] == ["1", "2", "3"]


def test_orders_by_priority_and_deduplicates(router, make_tender):
    tender = make_tender(
        load_type=LoadType.FTL,
        required_service_levels={ServiceLevel.EXPRESS, ServiceLevel.STANDARD},
    )
    # pools 1 and 3 (priority 1, config order) before pool 2; carrier 1 listed once
    assert router.resolve_eligible_carriers(tender) == ["1", "4", "6", "2", "3", "5"]


def test_service_levels_must_intersect(router, make_tender):
    tender = make_tender(load_type=LoadType.LTL, required_service_levels={ServiceLevel.ECONOMY})
    assert router.resolve_eligible_carriers(tender) == ["2", "3", "5"]


def test_lane_type_must_match(router, make_tender):
    tender = make_tender(load_type=LoadType.EXPEDITED, required_service_levels={ServiceLevel.EXPRESS})
    assert router.resolve_eligible_carriers(tender) == ["1", "4", "6"]


def test_manual_tender_pools_are_skipped(make_tender):
    pools = [
        CarrierPool(pool_id="a", name="Spot Market", carrier_ids=["9"], lane_types={LoadType.FTL},
                    service_types={ServiceLevel.STANDARD}, auto_tender=False, priority=0),
        CarrierPool(pool_id="b", name="Contract", carrier_ids=["2"], lane_types={LoadType.FTL},
                    service_types={ServiceLevel.STANDARD}, priority=5),
    ]
    router = CarrierPoolRouter(pools=pools)
    assert router.resolve_eligible_carriers(make_tender()) == ["2"]


def test_no_matching_pool_raises(router, make_tender):
    tender = make_tender(load_type=LoadType.INTERMODAL)
    with pytest.raises(NoEligibleCarriers) as excinfo:
        router.resolve_eligible_carriers(tender)
    assert excinfo.value.tender_id == tender.tender_id


def test_matching_pool_without_carriers_raises(make_tender):
    empty = CarrierPool(pool_id="e", name="Empty", carrier_ids=[], lane_types={LoadType.FTL},
                        service_types={ServiceLevel.STANDARD}, priority=1)
    with pytest.raises(NoEligibleCarriers):
        CarrierPoolRouter(pools=[empty]).resolve_eligible_carriers(make_tender())
