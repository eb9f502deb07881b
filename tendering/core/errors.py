"""
Exception hierarchy for the tendering engine.

Validation errors are rejected synchronously, state errors are surfaced to the
caller, configuration errors push a tender into manual review, and delivery
errors stay inside the notification retry loop.
"""

from typing import Optional


class TenderingError(Exception):
    """Base class for all engine errors."""


# Validation ----------------------------------------------------------------


class BidValidationError(TenderingError, ValueError):
    """Malformed bid or missing required field."""


class CarrierNotEligible(BidValidationError):
    """Carrier is not in the tender's resolved carrier pool."""

    def __init__(self, tender_id: str, carrier_id: str) -> None:
        super().__init__(f"Carrier {carrier_id} is not eligible to bid on tender {tender_id}")
        self.tender_id = tender_id
        self.carrier_id = carrier_id


# State ---------------------------------------------------------------------


class TenderStateError(TenderingError):
    """Operation not permitted in the tender's current state."""

    def __init__(self, tender_id: str, message: str) -> None:
        super().__init__(message)
        self.tender_id = tender_id


class TenderClosed(TenderStateError):
    """Tender is not collecting bids (not yet sent, past deadline, or closed)."""

    def __init__(self, tender_id: str, reason: str = "tender is not accepting bids") -> None:
        super().__init__(tender_id, f"Tender {tender_id} closed: {reason}")
        self.reason = reason


class TenderAlreadyDecided(TenderStateError):
    """Tender was already awarded or rejected."""

    def __init__(self, tender_id: str, status: str) -> None:
        super().__init__(tender_id, f"Tender {tender_id} already decided ({status})")
        self.status = status


class DuplicateActiveBid(TenderStateError):
    """Carrier already holds a pending bid on this tender."""

    def __init__(self, tender_id: str, carrier_id: str, bid_id: str) -> None:
        super().__init__(
            tender_id,
            f"Carrier {carrier_id} already has pending bid {bid_id} on tender {tender_id}",
        )
        self.carrier_id = carrier_id
        self.bid_id = bid_id


class BidNotFound(TenderStateError):
    """No matching bid for the carrier on this tender."""

    def __init__(self, tender_id: str, carrier_id: Optional[str] = None) -> None:
        who = f" for carrier {carrier_id}" if carrier_id else ""
        super().__init__(tender_id, f"No active bid{who} on tender {tender_id}")
        self.carrier_id = carrier_id


class InvalidTransition(TenderStateError):
    """Requested state change is not allowed by the lifecycle."""

    def __init__(self, tender_id: str, current: str, requested: str) -> None:
        super().__init__(tender_id, f"Tender {tender_id}: cannot move from {current} to {requested}")
        self.current = current
        self.requested = requested


class TenderNotFound(TenderingError, KeyError):
    """Unknown tender id."""

    def __init__(self, tender_id: str) -> None:
        super().__init__(f"Unknown tender: {tender_id}")
        self.tender_id = tender_id

    def __str__(self) -> str:
        return str(self.args[0])


# Configuration -------------------------------------------------------------


class ConfigurationError(TenderingError):
    """Business configuration prevents an automatic decision."""


class NoEligibleCarriers(ConfigurationError):
    """No carrier pool covers the tender's lane and service levels."""

    def __init__(self, tender_id: str, load_type: str, service_levels: list[str]) -> None:
        super().__init__(
            f"No eligible carriers for tender {tender_id} "
            f"(lane={load_type}, services={', '.join(sorted(service_levels))})"
        )
        self.tender_id = tender_id


class NoEnabledRules(ConfigurationError):
    """Auto-award requested but the tender has no enabled selection rules."""

    def __init__(self, tender_id: str) -> None:
        super().__init__(f"Tender {tender_id} has no enabled selection rules")
        self.tender_id = tender_id


# Delivery ------------------------------------------------------------------


class DeliveryError(TenderingError):
    """Outbound event could not be delivered."""
