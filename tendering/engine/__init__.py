"""
Tendering engine components.

This module contains:
- Carrier Pool Router: Eligible carriers per lane and service level
- Bid Ledger: Authoritative bid store, one pending bid per carrier
- Scoring Engine: Rule-weighted bid scoring and ranking
- Deadline Scheduler: Response deadlines, bid expiries, early completion
- Tender Lifecycle Manager: The tender state machine and public API
"""

from .base import DecisionRecord, EngineComponent
from .bid_ledger import BidLedger
from .lifecycle import TenderLifecycleManager, TenderStats
from .pool_router import CarrierPoolRouter
from .scheduler import DeadlineScheduler, Trigger, TriggerKind
from .scoring import BidScore, ScoringContext, rank_bids, score, score_bid
from .store import TenderStore

__all__ = [
    "BidLedger",
    "BidScore",
    "CarrierPoolRouter",
    "DeadlineScheduler",
    "DecisionRecord",
    "EngineComponent",
    "ScoringContext",
    "TenderLifecycleManager",
    "TenderStats",
    "TenderStore",
    "Trigger",
    "TriggerKind",
    "rank_bids",
    "score",
    "score_bid",
]
