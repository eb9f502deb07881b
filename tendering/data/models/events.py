"""
Outbound events emitted when a tender reaches a decision.

Consumers must deduplicate by ``tender_id``; delivery is at-least-once.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class _TenderEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    tender_id: str
    occurred_at: datetime

    model_config = {"frozen": True}


class TenderAwarded(_TenderEvent):
    """Consumed by shipment creation."""

    event_type: Literal["TenderAwarded"] = "TenderAwarded"
    carrier_id: str
    bid_id: str
    amount: Decimal
    automatic: bool = True


class TenderExpired(_TenderEvent):
    """Consumed by planning / re-sourcing."""

    event_type: Literal["TenderExpired"] = "TenderExpired"


class TenderRejected(_TenderEvent):
    """Consumed by planning / re-sourcing."""

    event_type: Literal["TenderRejected"] = "TenderRejected"
    decided_by: str
    reason: Optional[str] = None


TenderEvent = Union[TenderAwarded, TenderExpired, TenderRejected]
