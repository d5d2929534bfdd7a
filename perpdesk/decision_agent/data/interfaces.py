from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..models import CandidateSymbol, MarketRecord, OIMomentumRecord
from .formatting import format_market_record

# Contracts for market data and candidate sources (module-local abstract
# interfaces). These are plain ABCs (not Pydantic models) so implementations
# can wrap any transport.


class MarketSnapshotProvider(ABC):
    """Per-symbol market data access used by context aggregation.

    `get` must be safe to call concurrently for distinct symbols.
    """

    @abstractmethod
    async def get(self, symbol: str) -> MarketRecord:
        """Return a fresh market record for `symbol`.

        Raises:
            MarketDataFetchError: when the record cannot be built
        """
        raise NotImplementedError

    def format(self, record: MarketRecord) -> str:
        """Deterministic text rendering used verbatim in the state prompt."""
        return format_market_record(record)


class CandidatePool(ABC):
    """Source of ranked candidate symbols and OI momentum annotations."""

    @abstractmethod
    async def ranked_symbols(self) -> List[CandidateSymbol]:
        """Return candidate symbols in ranking order."""
        raise NotImplementedError

    @abstractmethod
    async def oi_momentum(self) -> List[OIMomentumRecord]:
        """Return the open interest momentum ranking.

        Raises:
            CandidatePoolError: when the ranking cannot be obtained
        """
        raise NotImplementedError
