"""Context aggregation for a decision cycle.

Resolves the symbol universe (open positions first, then ranked
candidates), fetches market records concurrently, applies the liquidity
filter to symbols without an open position and attaches the open interest
momentum ranking when it is available.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..constants import DEFAULT_LIQUIDITY_FLOOR_USD
from ..data.interfaces import CandidatePool, MarketSnapshotProvider
from ..models import (
    AggregationResult,
    CandidateSymbol,
    MarketRecord,
    OIMomentumRecord,
    PositionRecord,
)


def resolve_universe(
    positions: Sequence[PositionRecord],
    candidates: Sequence[CandidateSymbol],
    max_candidates: Optional[int] = None,
) -> List[str]:
    """Position symbols followed by the first `max_candidates` candidates.

    `None` analyzes every candidate. Order is preserved and duplicates are
    removed.
    """
    ranked = list(candidates)
    if max_candidates is not None:
        ranked = ranked[:max_candidates]
    symbols = [p.symbol for p in positions] + [c.symbol for c in ranked]
    return list(dict.fromkeys(symbols))


class ContextAggregator:
    """Builds the market and OI momentum maps for one cycle."""

    def __init__(
        self,
        provider: MarketSnapshotProvider,
        pool: CandidatePool,
        liquidity_floor_usd: float = DEFAULT_LIQUIDITY_FLOOR_USD,
    ) -> None:
        self._provider = provider
        self._pool = pool
        self._liquidity_floor_usd = liquidity_floor_usd

    async def _fetch_one(self, symbol: str) -> Tuple[str, Optional[MarketRecord]]:
        try:
            return symbol, await self._provider.get(symbol)
        except Exception as exc:
            logger.warning("Dropping {}: market data unavailable ({})", symbol, exc)
            return symbol, None

    async def _fetch_oi_momentum(self) -> Dict[str, OIMomentumRecord]:
        try:
            records = await self._pool.oi_momentum()
        except Exception as exc:
            logger.warning("OI momentum ranking unavailable: {}", exc)
            return {}
        return {r.symbol: r for r in records}

    def _is_illiquid(self, record: MarketRecord) -> bool:
        oi_value = record.open_interest_value()
        return oi_value is not None and oi_value < self._liquidity_floor_usd

    async def aggregate(
        self,
        positions: Sequence[PositionRecord],
        candidates: Sequence[CandidateSymbol],
        max_candidates: Optional[int] = None,
    ) -> AggregationResult:
        universe = resolve_universe(positions, candidates, max_candidates)
        position_symbols = {p.symbol for p in positions}

        logger.info(
            "Fetching market data for {} symbols ({} with open positions)",
            len(universe),
            len(position_symbols),
        )
        fetched, oi_by_symbol = await asyncio.gather(
            asyncio.gather(*(self._fetch_one(s) for s in universe)),
            self._fetch_oi_momentum(),
        )

        market_by_symbol: Dict[str, MarketRecord] = {}
        for symbol, record in fetched:
            if record is None:
                continue
            if symbol not in position_symbols and self._is_illiquid(record):
                logger.info(
                    "Skipping {}: open interest value {:.2f}M USD below {:.2f}M floor",
                    symbol,
                    record.open_interest_value() / 1_000_000,
                    self._liquidity_floor_usd / 1_000_000,
                )
                continue
            market_by_symbol[symbol] = record

        return AggregationResult(
            market_by_symbol=market_by_symbol, oi_by_symbol=oi_by_symbol
        )
