"""
Carrier master snapshot and carrier pool models.

Both are owned by carrier management; the engine only reads them.
"""

from pydantic import BaseModel, Field

from tendering.data.models.bid import ServiceLevel
from tendering.data.models.tender import LoadType


class CarrierProfile(BaseModel):
    """Carrier quality metrics used for scoring."""

    carrier_id: str
    name: str
    rating: float = Field(0.0, ge=0, description="Carrier rating (0-5 scale)")
    on_time_rate: float = Field(0.0, ge=0, le=100, description="On-time delivery %")
    equipment_types: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class CarrierPool(BaseModel):
    """Named, priority-ranked group of carriers for certain lanes and services."""

    pool_id: str
    name: str
    carrier_ids: list[str]
    lane_types: set[LoadType]
    service_types: set[ServiceLevel]
    auto_tender: bool = True
    priority: int = Field(..., description="Lower number means higher priority")

    model_config = {"frozen": True}

    def serves(self, load_type: LoadType, service_levels: set[ServiceLevel]) -> bool:
        """True when the pool covers the lane and at least one requested service."""
        return load_type in self.lane_types and bool(self.service_types & service_levels)
