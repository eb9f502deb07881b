"""
Base class for the tendering engine components.

Provides common functionality:
- Configuration access
- Structured logging bound to the component
- Decision tracking
"""

import json
from collections import deque
from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from tendering.core.config import ConfigManager, get_config
from tendering.core.logging import get_logger


class DecisionRecord(BaseModel):
    """
    Structured record of an engine decision.

    Used to track reasoning and provide an audit trail.
    """

    timestamp: datetime
    component: str
    decision_type: str
    tender_id: str
    input_data: dict[str, Any]
    reasoning: str
    output_data: dict[str, Any]
    execution_time_seconds: float


class EngineComponent:
    """
    Base class for engine components.

    Provides:
    - Configuration loading (lazy, defaults to the global instance)
    - Decision logging
    """

    history_limit = 1000

    def __init__(
        self,
        component_name: str,
        config_manager: Optional[ConfigManager] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the component.

        Args:
            component_name: Name used in log records (e.g. "bid_ledger")
            config_manager: Optional config manager (defaults to global instance)
            logger: Optional structured logger
        """
        self.component_name = component_name
        self._config_manager = config_manager
        self.logger = get_logger(component_name, logger)
        self.decision_history: deque[DecisionRecord] = deque(maxlen=self.history_limit)

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = get_config()
        return self._config_manager

    def log_decision(self, decision: DecisionRecord) -> None:
        """
        Record a decision for transparency and audit.

        Args:
            decision: DecisionRecord instance with decision details
        """
        self.decision_history.append(decision)
        self.logger.info(
            "engine_decision",
            tender_id=decision.tender_id,
            decision_type=decision.decision_type,
            reasoning=decision.reasoning,
            execution_time=decision.execution_time_seconds,
        )

    def export_decisions(self, filepath: str) -> None:
        """
        Export decision history to a JSON file.

        Args:
            filepath: Path to output JSON file
        """
        with open(filepath, "w") as f:
            decisions = [d.model_dump(mode="json") for d in list(self.decision_history)]
            json.dump(decisions, f, indent=2, default=str)

        self.logger.info("decisions_exported", filepath=filepath, count=len(decisions))

    def __repr__(self) -> str:
        """String representation of the component."""
        return f"{self.__class__.__name__}(component_name='{self.component_name}')"
