"""
Carrier tendering and award engine.

Collects competing carrier bids for a load, scores them against the tender's
selection rules, and awards the load automatically or escalates it for review.
"""

__version__ = "0.1.0"
