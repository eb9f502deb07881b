"""Shared fixtures for the tendering engine tests."""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable

import pytest
import yaml

from tendering.core.config import ConfigManager, NotificationConfig, ScoringConfig
from tendering.core.errors import DeliveryError
from tendering.data.models.bid import CarrierBid, ServiceLevel
from tendering.data.models.rules import Criterion, RuleOperator, SelectionRule
from tendering.data.models.tender import (
    LoadType,
    Location,
    TenderLoad,
    TenderSpec,
    TimeWindow,
)
from tendering.engine.lifecycle import TenderLifecycleManager
from tendering.engine.scoring import ScoringContext
from tendering.notifications.publisher import EventPublisher

START = datetime(2025, 11, 29, 13, 15, tzinfo=timezone.utc)
DEADLINE = datetime(2025, 11, 29, 18, 0, tzinfo=timezone.utc)

BUSINESS_CONFIG: dict[str, Any] = {
    "scoring": {
        "cost_slack_factor": 1.5,
        "reference_max_transit_days": 7,
        "rating_scale": 5.0,
        "on_time_scale": 100.0,
        "threshold_partial_band": 0.0,
    },
    "tendering": {
        "default_response_window_minutes": 240,
        "max_decision_attempts": 3,
        "scheduler_poll_seconds": 0.05,
    },
    "notifications": {
        "max_attempts": 3,
        "backoff_base_seconds": 0.5,
        "backoff_max_seconds": 4,
        "workers": 2,
    },
    "carriers": [
        {"carrier_id": "1", "name": "FedEx Freight", "rating": 4.8, "on_time_rate": 96.5},
        {"carrier_id": "2", "name": "UPS Freight", "rating": 4.6, "on_time_rate": 94.2},
        {"carrier_id": "3", "name": "XPO Logistics", "rating": 4.3, "on_time_rate": 92.1},
        {"carrier_id": "4", "name": "J.B. Hunt", "rating": 4.7, "on_time_rate": 95.8},
        {"carrier_id": "5", "name": "Old Dominion", "rating": 4.9, "on_time_rate": 98.1},
        {"carrier_id": "6", "name": "Arctic Cold Chain", "rating": 4.5, "on_time_rate": 93.4},
    ],
    "carrier_pools": [
        {
            "pool_id": "1",
            "name": "Premium Express Carriers",
            "carrier_ids": ["1", "4"],
            "lane_types": ["FTL", "Expedited"],
            "service_types": ["Express", "Standard"],
            "priority": 1,
        },
        {
            "pool_id": "2",
            "name": "Standard Freight Network",
            "carrier_ids": ["2", "3", "5"],
            "lane_types": ["FTL", "LTL"],
            "service_types": ["Standard", "Economy"],
            "priority": 2,
        },
        {
            "pool_id": "3",
            "name": "Temperature-Controlled Specialists",
            "carrier_ids": ["1", "6"],
            "lane_types": ["FTL", "Expedited"],
            "service_types": ["Express"],
            "priority": 1,
        },
    ],
}

BALANCED_RULES = [
    SelectionRule(rule_id="cost", criterion=Criterion.COST, operator=RuleOperator.MINIMIZE,
                  weight=40, priority=1),
    SelectionRule(rule_id="rating", criterion=Criterion.RATING, operator=RuleOperator.MAXIMIZE,
                  weight=30, priority=2),
    SelectionRule(rule_id="otd", criterion=Criterion.ON_TIME_RATE,
                  operator=RuleOperator.MAXIMIZE, weight=30, priority=3),
]

# (bid amount, fuel surcharge, accessorial charges, transit days)
EXAMPLE_OFFERS = {
    "1": ("2650", "265", "150", 1),
    "2": ("2450", "245", "100", 2),
    "3": ("2350", "235", "120", 2),
}


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, value: datetime) -> datetime:
        self.now = value
        return self.now


class RecordingTransport:
    """Collects delivered events; can be told to fail the first N sends."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = 0
        self.events: list = []
        self._lock = threading.Lock()

    def __call__(self, event) -> None:
        with self._lock:
            self.calls += 1
            if self.failures > 0:
                self.failures -= 1
                raise DeliveryError("consumer unavailable")
            self.events.append(event)

    def of_type(self, event_type: str) -> list:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def config_manager(tmp_path, monkeypatch) -> ConfigManager:
    monkeypatch.delenv("AWARD_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("TENDERING_CONFIG_DIR", raising=False)
    (tmp_path / "config.yaml").write_text(yaml.safe_dump(BUSINESS_CONFIG))
    return ConfigManager(config_dir=tmp_path)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def publisher(transport):
    publisher = EventPublisher(
        transport=transport,
        config=NotificationConfig(
            max_attempts=3, backoff_base_seconds=0, backoff_max_seconds=0, workers=2
        ),
        sleep=lambda _seconds: None,
    )
    yield publisher
    publisher.close()


@pytest.fixture
def manager(config_manager, clock, publisher):
    manager = TenderLifecycleManager(
        config_manager=config_manager, clock=clock, publisher=publisher
    )
    yield manager
    manager.scheduler.stop()


@pytest.fixture
def make_spec() -> Callable[..., TenderSpec]:
    def factory(**overrides: Any) -> TenderSpec:
        fields: dict[str, Any] = {
            "tender_number": "TND-2024-001",
            "customer": "Best Buy - Phoenix",
            "load_type": LoadType.FTL,
            "origin": Location(name="LA Distribution Center", city="Los Angeles", state="CA"),
            "destination": Location(name="Seattle Warehouse", city="Seattle", state="WA"),
            "pickup_window": TimeWindow(
                start=datetime(2025, 11, 30, 8, tzinfo=timezone.utc),
                end=datetime(2025, 11, 30, 12, tzinfo=timezone.utc),
            ),
            "delivery_window": TimeWindow(
                start=datetime(2025, 12, 1, 8, tzinfo=timezone.utc),
                end=datetime(2025, 12, 1, 17, tzinfo=timezone.utc),
            ),
            "distance_miles": 1135,
            "commodity": "Electronics",
            "weight_lbs": 42000,
            "pallets": 20,
            "required_service_levels": {ServiceLevel.STANDARD},
            "estimated_cost": Decimal("2800"),
            "target_cost": Decimal("2600"),
            "response_window": DEADLINE - START,
            "rules": list(BALANCED_RULES),
        }
        fields.update(overrides)
        return TenderSpec(**fields)

    return factory


@pytest.fixture
def make_tender(make_spec) -> Callable[..., TenderLoad]:
    def factory(tender_id: str = "TND-TEST", **overrides: Any) -> TenderLoad:
        spec = make_spec(**overrides)
        return TenderLoad(**spec.model_dump(), tender_id=tender_id, created_at=START)

    return factory


@pytest.fixture
def scoring_context(config_manager) -> ScoringContext:
    return ScoringContext.for_tender(
        Decimal("2800"), ScoringConfig(), config_manager.get_carrier_profiles()
    )


@pytest.fixture
def make_bid() -> Callable[..., CarrierBid]:
    def factory(
        carrier_id: str,
        amount: str = "2500",
        fuel: str = "0",
        accessorial: str = "0",
        transit_days: int = 2,
        capacity_confirmed: bool = True,
        submitted_at: datetime = START,
        expires_at: datetime = DEADLINE,
        tender_id: str = "TND-TEST",
        bid_id: str = "",
        **extra: Any,
    ) -> CarrierBid:
        return CarrierBid(
            bid_id=bid_id or f"BID-{carrier_id}-{submitted_at:%H%M%S%f}",
            tender_id=tender_id,
            carrier_id=carrier_id,
            bid_amount=Decimal(amount),
            fuel_surcharge=Decimal(fuel),
            accessorial_charges=Decimal(accessorial),
            transit_days=transit_days,
            capacity_confirmed=capacity_confirmed,
            equipment_type="Dry Van 53ft",
            submitted_at=submitted_at,
            expires_at=expires_at,
            **extra,
        )

    return factory


def offer_payload(carrier_id: str, capacity_confirmed: bool = True, **overrides: Any) -> dict:
    amount, fuel, accessorial, days = EXAMPLE_OFFERS[carrier_id]
    payload = {
        "bid_amount": amount,
        "fuel_surcharge": fuel,
        "accessorial_charges": accessorial,
        "transit_days": days,
        "capacity_confirmed": capacity_confirmed,
        "equipment_type": "Dry Van 53ft",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def offer() -> Callable[..., dict]:
    return offer_payload
