"""Market data and candidate pool adapters."""

from .interfaces import CandidatePool, MarketSnapshotProvider
from .market import CcxtMarketSnapshotProvider
from .pool import HttpCandidatePool, StaticCandidatePool

__all__ = [
    "MarketSnapshotProvider",
    "CandidatePool",
    "CcxtMarketSnapshotProvider",
    "HttpCandidatePool",
    "StaticCandidatePool",
]
