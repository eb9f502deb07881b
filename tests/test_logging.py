"""Tests for structured logging."""

import json

import pytest
import structlog
from structlog.testing import capture_logs

from tendering.core.errors import TenderClosed
from tendering.core.logging import configure_logging, get_logger


@pytest.fixture
def restore_structlog():
    yield
    structlog.reset_defaults()


def test_json_lines(capsys, restore_structlog):
    configure_logging(level="INFO", json_output=True)
    get_logger("bid_ledger").info("bid_accepted", tender_id="TND-1", carrier_id="2")

    record = json.loads(capsys.readouterr().out.strip())
    assert record["event"] == "bid_accepted"
    assert record["component"] == "bid_ledger"
    assert record["level"] == "info"
    assert record["tender_id"] == "TND-1"
    assert "timestamp" in record


def test_level_filter(capsys, restore_structlog):
    configure_logging(level="WARNING", json_output=True)
    log = get_logger("lifecycle")
    log.info("tender_sent")
    log.warning("manual_sourcing_required")

    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["manual_sourcing_required"]


def test_lifecycle_events_are_logged(manager, make_spec, offer):
    with capture_logs() as logs:
        tender_id = manager.create_tender(make_spec())
        with pytest.raises(TenderClosed):
            manager.submit_carrier_bid(tender_id, "1", offer("1"))

    created = [entry for entry in logs if entry["event"] == "tender_created"]
    assert created and created[0]["tender_id"] == tender_id
    rejected = [entry for entry in logs if entry["event"] == "bid_rejected"]
    assert rejected[0]["reason"] == "TenderClosed"
    assert rejected[0]["log_level"] == "warning"
