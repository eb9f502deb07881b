"""
Tender data model - one load offered to carriers for bidding.

The tender's lifecycle state is a tagged union: each status carries exactly the
fields that make sense for it, and transitions are checked against
``ALLOWED_TRANSITIONS``.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from tendering.core.clock import ensure_utc
from tendering.core.errors import InvalidTransition
from tendering.data.models.bid import ServiceLevel
from tendering.data.models.rules import SelectionRule


class LoadType(str, Enum):
    """Load size / mode category."""

    FTL = "FTL"
    LTL = "LTL"
    INTERMODAL = "Intermodal"
    EXPEDITED = "Expedited"


class PriorityTier(str, Enum):
    """Business priority of a tender."""

    STANDARD = "Standard"
    HIGH = "High"
    CRITICAL = "Critical"


class AutoAwardStrategy(str, Enum):
    """Primary ordering used when awarding automatically."""

    LOWEST_COST = "Lowest Cost"
    BEST_RATING = "Best Rating"
    FASTEST_TRANSIT = "Fastest Transit"
    BALANCED_SCORE = "Balanced Score"


class TenderStatus(str, Enum):
    """Tender status enumeration."""

    DRAFT = "Draft"
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    PENDING_REVIEW = "Pending Review"
    AWARDED = "Awarded"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"


class ReviewReason(str, Enum):
    """Why a tender was surfaced for a human decision."""

    AUTO_AWARD_DISABLED = "auto_award_disabled"
    NO_CONFIRMED_CAPACITY = "no_confirmed_capacity"
    NO_ENABLED_RULES = "no_enabled_rules"
    NO_ELIGIBLE_CARRIERS = "no_eligible_carriers"


TERMINAL_STATUSES = frozenset(
    {
        TenderStatus.AWARDED,
        TenderStatus.REJECTED,
        TenderStatus.EXPIRED,
        TenderStatus.CANCELLED,
    }
)

COLLECTING_STATUSES = frozenset({TenderStatus.PENDING, TenderStatus.IN_PROGRESS})

ALLOWED_TRANSITIONS: dict[TenderStatus, frozenset[TenderStatus]] = {
    TenderStatus.DRAFT: frozenset(
        {TenderStatus.PENDING, TenderStatus.PENDING_REVIEW, TenderStatus.CANCELLED}
    ),
    TenderStatus.PENDING: frozenset(
        {
            TenderStatus.IN_PROGRESS,
            TenderStatus.AWARDED,
            TenderStatus.PENDING_REVIEW,
            TenderStatus.EXPIRED,
            TenderStatus.CANCELLED,
        }
    ),
    TenderStatus.IN_PROGRESS: frozenset(
        {
            TenderStatus.AWARDED,
            TenderStatus.PENDING_REVIEW,
            TenderStatus.EXPIRED,
            TenderStatus.CANCELLED,
        }
    ),
    TenderStatus.PENDING_REVIEW: frozenset(
        {TenderStatus.AWARDED, TenderStatus.REJECTED, TenderStatus.CANCELLED}
    ),
    TenderStatus.AWARDED: frozenset(),
    TenderStatus.REJECTED: frozenset(),
    TenderStatus.EXPIRED: frozenset(),
    TenderStatus.CANCELLED: frozenset(),
}


class Location(BaseModel):
    """Pickup or delivery site."""

    name: str = ""
    city: str
    state: str
    postal_code: Optional[str] = None

    def __str__(self) -> str:
        """String representation."""
        return f"{self.city}, {self.state}"


class TimeWindow(BaseModel):
    """Inclusive time window."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if self.end < self.start:
            raise ValueError("time window ends before it starts")
        return self


# --------------------------------------------------------------------------
# Lifecycle states
# --------------------------------------------------------------------------


class DraftState(BaseModel):
    status: Literal[TenderStatus.DRAFT] = TenderStatus.DRAFT


class PendingState(BaseModel):
    """Sent to carriers, no bid received yet."""

    status: Literal[TenderStatus.PENDING] = TenderStatus.PENDING
    sent_at: datetime
    response_deadline: datetime


class InProgressState(BaseModel):
    """Bids are arriving."""

    status: Literal[TenderStatus.IN_PROGRESS] = TenderStatus.IN_PROGRESS
    sent_at: datetime
    response_deadline: datetime
    first_bid_at: datetime


class PendingReviewState(BaseModel):
    """
    Waiting for a human decision.

    ``cutoff`` is the instant the bids were evaluated at; a manual award may only
    pick a bid that was still valid at that instant.
    """

    status: Literal[TenderStatus.PENDING_REVIEW] = TenderStatus.PENDING_REVIEW
    reason: ReviewReason
    since: datetime
    cutoff: datetime
    ranked_bid_ids: list[str] = Field(default_factory=list)
    response_deadline: Optional[datetime] = None


class AwardedState(BaseModel):
    status: Literal[TenderStatus.AWARDED] = TenderStatus.AWARDED
    carrier_id: str
    bid_id: str
    amount: Decimal
    decided_at: datetime
    decided_by: str
    automatic: bool
    score: Optional[float] = None


class RejectedState(BaseModel):
    status: Literal[TenderStatus.REJECTED] = TenderStatus.REJECTED
    decided_at: datetime
    decided_by: str
    reason: str = ""


class ExpiredState(BaseModel):
    status: Literal[TenderStatus.EXPIRED] = TenderStatus.EXPIRED
    expired_at: datetime


class CancelledState(BaseModel):
    status: Literal[TenderStatus.CANCELLED] = TenderStatus.CANCELLED
    cancelled_at: datetime
    reason: str = ""


TenderState = Annotated[
    Union[
        DraftState,
        PendingState,
        InProgressState,
        PendingReviewState,
        AwardedState,
        RejectedState,
        ExpiredState,
        CancelledState,
    ],
    Field(discriminator="status"),
]


# --------------------------------------------------------------------------
# Tender
# --------------------------------------------------------------------------


class TenderSpec(BaseModel):
    """
    Planning request that creates a tender.

    Mirrors the tender attributes minus bids and lifecycle fields.
    """

    tender_number: Optional[str] = Field(None, description="Human-facing tender number")
    customer: str = ""
    load_type: LoadType = LoadType.FTL
    priority: PriorityTier = PriorityTier.STANDARD

    origin: Location
    destination: Location
    pickup_window: TimeWindow
    delivery_window: TimeWindow
    distance_miles: Optional[int] = Field(None, gt=0)

    commodity: str = ""
    weight_lbs: int = Field(..., gt=0, description="Weight in pounds")
    pallets: int = Field(0, ge=0)
    special_requirements: list[str] = Field(default_factory=list)
    required_service_levels: set[ServiceLevel] = Field(
        default_factory=lambda: {ServiceLevel.STANDARD}, min_length=1
    )

    estimated_cost: Decimal = Field(..., gt=0, description="Planner's cost estimate (USD)")
    target_cost: Optional[Decimal] = Field(None, gt=0, description="Target cost (USD)")

    response_window: Optional[timedelta] = Field(
        None, description="Time carriers get to respond once the tender is sent"
    )
    auto_award: bool = True
    auto_award_strategy: AutoAwardStrategy = AutoAwardStrategy.BALANCED_SCORE
    rules: list[SelectionRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_rules(self) -> "TenderSpec":
        rule_ids = [rule.rule_id for rule in self.rules]
        if len(rule_ids) != len(set(rule_ids)):
            raise ValueError("rule ids must be unique within a tender")
        if self.response_window is not None and self.response_window <= timedelta(0):
            raise ValueError("response_window must be positive")
        return self


class TenderLoad(TenderSpec):
    """
    A tender as tracked by the engine.

    Holds its bids by id only; the bid ledger owns the bid records. Mutated only
    by the lifecycle manager and the bid ledger, under the tender's lock.
    """

    tender_id: str
    created_at: datetime
    state: TenderState = Field(default_factory=DraftState)
    eligible_carriers: list[str] = Field(default_factory=list)
    bid_ids: list[str] = Field(default_factory=list)
    revision: int = 0

    audit_flag: bool = False
    audit_reason: Optional[str] = None

    @property
    def status(self) -> TenderStatus:
        return self.state.status

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_collecting(self) -> bool:
        return self.status in COLLECTING_STATUSES

    @property
    def response_deadline(self) -> Optional[datetime]:
        return getattr(self.state, "response_deadline", None)

    @property
    def sent_at(self) -> Optional[datetime]:
        return getattr(self.state, "sent_at", None)

    def transition(self, new_state: TenderState) -> None:
        """
        Move to ``new_state`` if the state machine allows it.

        Raises:
            InvalidTransition: If the move is not permitted from the current status
        """
        allowed = ALLOWED_TRANSITIONS[self.status]
        if new_state.status not in allowed:
            raise InvalidTransition(self.tender_id, self.status.value, new_state.status.value)
        self.state = new_state
        self.revision += 1
