"""
Pydantic data models for carrier tendering.

Core models:
- TenderLoad / TenderSpec: The load being tendered and its lifecycle state
- CarrierBid / BidPayload: Carrier offers
- SelectionRule: Weighted award criteria
- CarrierPool / CarrierProfile: Read-only carrier master data
- TenderAwarded / TenderExpired / TenderRejected: Outbound events
"""

from .bid import BidPayload, BidStatus, CarrierBid, ServiceLevel
from .carrier import CarrierPool, CarrierProfile
from .events import TenderAwarded, TenderEvent, TenderExpired, TenderRejected
from .rules import Criterion, RuleOperator, SelectionRule
from .tender import (
    AutoAwardStrategy,
    LoadType,
    Location,
    PriorityTier,
    ReviewReason,
    TenderLoad,
    TenderSpec,
    TenderStatus,
    TimeWindow,
)

__all__ = [
    "AutoAwardStrategy",
    "BidPayload",
    "BidStatus",
    "CarrierBid",
    "CarrierPool",
    "CarrierProfile",
    "Criterion",
    "LoadType",
    "Location",
    "PriorityTier",
    "ReviewReason",
    "RuleOperator",
    "SelectionRule",
    "ServiceLevel",
    "TenderAwarded",
    "TenderEvent",
    "TenderExpired",
    "TenderLoad",
    "TenderRejected",
    "TenderSpec",
    "TenderStatus",
    "TimeWindow",
]
