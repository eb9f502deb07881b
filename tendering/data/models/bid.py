"""
Carrier bid models - a carrier's priced, time-bounded offer against a tender.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from tendering.core.clock import ensure_utc


class ServiceLevel(str, Enum):
    """Service level offered by a carrier."""

    EXPRESS = "Express"
    STANDARD = "Standard"
    ECONOMY = "Economy"


class BidStatus(str, Enum):
    """Bid status enumeration."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    EXPIRED = "Expired"


class BidPayload(BaseModel):
    """
    What a carrier sends when bidding.

    The engine assigns the identifiers, the submission timestamp and the status.
    """

    bid_amount: Decimal = Field(..., gt=0, description="Line-haul rate (USD)")
    currency: str = Field("USD", min_length=3, max_length=3)
    fuel_surcharge: Decimal = Field(Decimal("0"), ge=0, description="Fuel surcharge (USD)")
    accessorial_charges: Decimal = Field(
        Decimal("0"), ge=0, description="Accessorial charges (USD)"
    )
    transit_days: int = Field(..., ge=0, description="Door-to-door transit in days")
    service_level: ServiceLevel = ServiceLevel.STANDARD
    capacity_confirmed: bool = False
    equipment_type: str = Field(..., min_length=1)
    estimated_pickup: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None
    expires_at: Optional[datetime] = Field(
        None, description="Offer expiry; defaults to the tender's response deadline"
    )
    notes: Optional[str] = None

    @field_validator("estimated_pickup", "estimated_delivery", "expires_at")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_schedule(self) -> "BidPayload":
        if (
            self.estimated_pickup is not None
            and self.estimated_delivery is not None
            and self.estimated_delivery < self.estimated_pickup
        ):
            raise ValueError("estimated_delivery precedes estimated_pickup")
        return self


class CarrierBid(BidPayload):
    """
    A bid recorded in the ledger.

    Only ``status`` changes after creation; bids are never deleted.
    """

    bid_id: str
    tender_id: str
    carrier_id: str
    submitted_at: datetime
    expires_at: datetime
    status: BidStatus = BidStatus.PENDING

    @field_validator("submitted_at", "expires_at")
    @classmethod
    def _stamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @computed_field
    @property
    def total_cost(self) -> Decimal:
        """Line-haul plus all surcharges."""
        return self.bid_amount + self.fuel_surcharge + self.accessorial_charges

    @property
    def is_active(self) -> bool:
        return self.status == BidStatus.PENDING

    def is_valid_at(self, as_of: datetime) -> bool:
        """Pending and not yet past its own expiry."""
        return self.is_active and self.expires_at >= as_of
