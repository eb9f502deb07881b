"""
Selection rule model - one weighted award criterion attached to a tender.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class Criterion(str, Enum):
    """What a rule measures on a bid."""

    COST = "cost"
    RATING = "rating"
    TRANSIT_TIME = "transit_time"
    ON_TIME_RATE = "on_time_rate"
    CAPACITY = "capacity"

    @property
    def lower_is_better(self) -> bool:
        """Cost and transit time improve as they go down."""
        return self in (Criterion.COST, Criterion.TRANSIT_TIME)


class RuleOperator(str, Enum):
    """
    How a rule turns a raw value into a sub-score.

    Only THRESHOLD changes the scoring; the direction of MINIMIZE and MAXIMIZE
    always follows the criterion.
    """

    MINIMIZE = "min"
    MAXIMIZE = "max"
    THRESHOLD = "threshold"


class SelectionRule(BaseModel):
    """
    Weighted decision criterion.

    Weights are relative; they are normalized over the enabled rules when a bid
    is scored. Priority is only used to break ties between equal scores.

    When no operator is given it is derived from the criterion: MINIMIZE for
    cost and transit time, MAXIMIZE for the rest. A MINIMIZE or MAXIMIZE that
    contradicts the criterion is normalized to the criterion's direction.
    """

    rule_id: str = Field(..., description="Rule identifier, unique within a tender")
    name: str = Field("", description="Display name")
    criterion: Criterion
    operator: RuleOperator
    value: float = Field(0.0, description="Threshold value (threshold rules only)")
    weight: float = Field(..., ge=0, description="Relative weight")
    enabled: bool = True
    priority: int = Field(1, description="Tie-break order, lower decides first")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def direction_from_criterion(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("criterion") is None:
            return data
        operator = data.get("operator")
        if operator is not None and RuleOperator(operator) == RuleOperator.THRESHOLD:
            return data
        criterion = Criterion(data["criterion"])
        direction = RuleOperator.MINIMIZE if criterion.lower_is_better else RuleOperator.MAXIMIZE
        return {**data, "operator": direction}


def enabled_rules(rules: list[SelectionRule]) -> list[SelectionRule]:
    """Enabled rules carrying weight, in tie-break order."""
    active = [rule for rule in rules if rule.enabled and rule.weight > 0]
    return sorted(active, key=lambda rule: (rule.priority, rule.rule_id))
