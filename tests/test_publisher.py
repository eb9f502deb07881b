"""Tests for outbound event delivery."""

from decimal import Decimal

import pytest
import requests

from conftest import START, RecordingTransport
from tendering.core.config import NotificationConfig
from tendering.core.errors import DeliveryError
from tendering.data.models.events import TenderAwarded, TenderExpired
from tendering.notifications.publisher import EventPublisher, LoggingTransport, WebhookTransport


def award_event(tender_id: str = "TND-1") -> TenderAwarded:
    return TenderAwarded(
        tender_id=tender_id,
        occurred_at=START,
        carrier_id="2",
        bid_id="BID-2",
        amount=Decimal("2795"),
    )


def make_publisher(transport, sleeps, **settings) -> EventPublisher:
    config = NotificationConfig(**{"max_attempts": 3, "backoff_base_seconds": 0.5,
                                   "backoff_max_seconds": 4, "workers": 1, **settings})
    return EventPublisher(transport=transport, config=config, sleep=sleeps.append)


def test_retries_then_delivers():
    transport = RecordingTransport(failures=2)
    sleeps = []
    publisher = make_publisher(transport, sleeps)

    assert publisher.publish(award_event()).result(timeout=5) is True
    publisher.close()

    assert transport.calls == 3
    assert sleeps == [0.5, 1.0]
    assert [e.tender_id for e in publisher.delivered] == ["TND-1"]
    assert publisher.dead_letters == []


def test_gives_up_into_dead_letters():
    transport = RecordingTransport(failures=5)
    sleeps = []
    publisher = make_publisher(transport, sleeps)

    assert publisher.publish(award_event()).result(timeout=5) is False
    publisher.close()

    assert transport.calls == 3
    assert transport.events == []
    assert [e.event_type for e in publisher.dead_letters] == ["TenderAwarded"]


@pytest.mark.parametrize(
    "attempt, expected",
    [(1, 0.5), (2, 1.0), (3, 2.0), (4, 4.0), (5, 4.0), (10, 4.0)],
)
def test_backoff_is_capped(attempt, expected):
    publisher = make_publisher(RecordingTransport(), [])
    try:
        assert publisher.backoff_delay(attempt) == expected
    finally:
        publisher.close()


def test_flush_waits_for_every_event():
    transport = RecordingTransport()
    publisher = make_publisher(transport, [], workers=2)
    for index in range(10):
        publisher.publish(TenderExpired(tender_id=f"TND-{index}", occurred_at=START))
    publisher.flush(timeout=5)

    assert len(transport.events) == 10
    publisher.close()


def test_delivered_history_is_bounded(monkeypatch):
    monkeypatch.setattr(EventPublisher, "history_limit", 3)
    transport = RecordingTransport()
    publisher = make_publisher(transport, [])
    for index in range(5):
        publisher.publish(TenderExpired(tender_id=f"TND-{index}", occurred_at=START))
    publisher.flush(timeout=5)
    publisher.close()

    assert len(transport.events) == 5
    assert [e.tender_id for e in publisher.delivered] == ["TND-2", "TND-3", "TND-4"]


def test_default_transport_logs_without_webhook(config_manager):
    publisher = EventPublisher(config_manager=config_manager)
    try:
        assert isinstance(publisher.transport, LoggingTransport)
        assert publisher.config.max_attempts == 3
    finally:
        publisher.close()


def test_default_transport_uses_webhook_when_configured(config_manager, monkeypatch):
    monkeypatch.setenv("AWARD_WEBHOOK_URL", "https://shipments.example.com/hooks/tenders")
    config_manager._env_settings = None
    publisher = EventPublisher(config_manager=config_manager)
    try:
        assert isinstance(publisher.transport, WebhookTransport)
        assert publisher.transport.url == "https://shipments.example.com/hooks/tenders"
    finally:
        publisher.close()


class StubResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


class StubSession:
    def __init__(self, status_code: int = 202, error: Exception = None) -> None:
        self.status_code = status_code
        self.error = error
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return StubResponse(self.status_code)


def test_webhook_posts_json_with_idempotency_key():
    session = StubSession()
    transport = WebhookTransport("https://hooks.example.com/awards", session=session,
                                 timeout_seconds=3)
    transport(award_event("TND-42"))

    request = session.requests[0]
    assert request["url"] == "https://hooks.example.com/awards"
    assert request["headers"] == {"Idempotency-Key": "TND-42"}
    assert request["timeout"] == 3
    assert request["json"]["event_type"] == "TenderAwarded"
    assert request["json"]["amount"] == "2795"


def test_webhook_error_status_raises():
    transport = WebhookTransport("https://hooks.example.com/awards", session=StubSession(503))
    with pytest.raises(DeliveryError):
        transport(award_event())


def test_webhook_connection_error_raises():
    session = StubSession(error=requests.ConnectionError("connection refused"))
    transport = WebhookTransport("https://hooks.example.com/awards", session=session)
    with pytest.raises(DeliveryError):
        transport(award_event())
