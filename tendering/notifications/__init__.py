"""
Outbound integrations for the tendering engine.

This module provides delivery of decision events to:
- Shipment creation (TenderAwarded)
- Planning / re-sourcing workflows (TenderExpired, TenderRejected)
"""

from .publisher import EventPublisher, LoggingTransport, WebhookTransport

__all__ = ["EventPublisher", "LoggingTransport", "WebhookTransport"]
