"""
Unit tests for perpdesk.decision_agent.context.aggregator module
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from perpdesk.decision_agent.context.aggregator import (
    ContextAggregator,
    resolve_universe,
)
from perpdesk.decision_agent.data.interfaces import (
    CandidatePool,
    MarketSnapshotProvider,
)
from perpdesk.decision_agent.exceptions import CandidatePoolError, MarketDataFetchError
from perpdesk.decision_agent.models import (
    CandidateSymbol,
    MarketRecord,
    OIMomentumRecord,
    OpenInterest,
    PositionRecord,
    PositionSide,
)


def _record(symbol: str, price: float, oi: Optional[float] = None) -> MarketRecord:
    return MarketRecord(
        symbol=symbol,
        current_price=price,
        open_interest=OpenInterest(latest=oi, average=oi) if oi is not None else None,
    )


def _position(symbol: str) -> PositionRecord:
    return PositionRecord(
        symbol=symbol,
        side=PositionSide.LONG,
        entry_price=1.0,
        mark_price=1.0,
        quantity=10.0,
    )


def _candidates(*symbols: str) -> List[CandidateSymbol]:
    return [CandidateSymbol(symbol=s) for s in symbols]


class FakeProvider(MarketSnapshotProvider):
    def __init__(self, records: Dict[str, MarketRecord]):
        self.records = records
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get(self, symbol: str) -> MarketRecord:
        self.calls.append(symbol)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if symbol not in self.records:
                raise MarketDataFetchError(symbol, "not listed")
            return self.records[symbol]
        finally:
            self.in_flight -= 1


class FakePool(CandidatePool):
    def __init__(self, momentum: Optional[List[OIMomentumRecord]] = None):
        self.momentum = momentum

    async def ranked_symbols(self) -> List[CandidateSymbol]:
        return []

    async def oi_momentum(self) -> List[OIMomentumRecord]:
        if self.momentum is None:
            raise CandidatePoolError("ranking offline")
        return self.momentum


class TestResolveUniverse:
    """Test resolve_universe."""

    def test_positions_first_then_candidates_deduplicated(self):
        universe = resolve_universe(
            [_position("SOLUSDT")], _candidates("BTCUSDT", "SOLUSDT", "ETHUSDT")
        )

        assert universe == ["SOLUSDT", "BTCUSDT", "ETHUSDT"]

    def test_max_candidates_limits_candidates_only(self):
        universe = resolve_universe(
            [_position("DOGEUSDT")], _candidates("BTCUSDT", "ETHUSDT", "SOLUSDT"), 1
        )

        assert universe == ["DOGEUSDT", "BTCUSDT"]

    def test_none_means_all_candidates(self):
        universe = resolve_universe([], _candidates("A", "B", "C"), None)

        assert universe == ["A", "B", "C"]


class TestContextAggregator:
    """Test ContextAggregator.aggregate."""

    @pytest.mark.asyncio
    async def test_position_symbol_kept_despite_low_open_interest(self):
        provider = FakeProvider({"PEPEUSDT": _record("PEPEUSDT", 0.00001, oi=1e9)})
        aggregator = ContextAggregator(provider, FakePool([]))

        result = await aggregator.aggregate([_position("PEPEUSDT")], [])

        assert "PEPEUSDT" in result.market_by_symbol

    @pytest.mark.asyncio
    async def test_illiquid_candidate_dropped(self):
        provider = FakeProvider(
            {
                # 100k contracts x 100 USD = 10M < 15M
                "LOWUSDT": _record("LOWUSDT", 100.0, oi=100_000),
                # 200k contracts x 100 USD = 20M
                "HIGHUSDT": _record("HIGHUSDT", 100.0, oi=200_000),
                "NOOIUSDT": _record("NOOIUSDT", 5.0),
            }
        )
        aggregator = ContextAggregator(provider, FakePool([]))

        result = await aggregator.aggregate(
            [], _candidates("LOWUSDT", "HIGHUSDT", "NOOIUSDT")
        )

        assert list(result.market_by_symbol) == ["HIGHUSDT", "NOOIUSDT"]

    @pytest.mark.asyncio
    async def test_fetch_failure_drops_symbol(self):
        provider = FakeProvider({"BTCUSDT": _record("BTCUSDT", 97000.0)})
        aggregator = ContextAggregator(provider, FakePool([]))

        result = await aggregator.aggregate(
            [_position("GONEUSDT")], _candidates("BTCUSDT", "MISSINGUSDT")
        )

        assert list(result.market_by_symbol) == ["BTCUSDT"]
        assert set(provider.calls) == {"GONEUSDT", "BTCUSDT", "MISSINGUSDT"}

    @pytest.mark.asyncio
    async def test_oi_momentum_failure_is_tolerated(self):
        provider = FakeProvider({"BTCUSDT": _record("BTCUSDT", 97000.0)})
        aggregator = ContextAggregator(provider, FakePool(None))

        result = await aggregator.aggregate([], _candidates("BTCUSDT"))

        assert result.oi_by_symbol == {}
        assert "BTCUSDT" in result.market_by_symbol

    @pytest.mark.asyncio
    async def test_oi_momentum_mapped_by_symbol(self):
        momentum = [
            OIMomentumRecord(symbol="SOLUSDT", rank=1, oi_delta_percent=4.2),
            OIMomentumRecord(symbol="ARBUSDT", rank=2, oi_delta_percent=3.1),
        ]
        provider = FakeProvider({"SOLUSDT": _record("SOLUSDT", 150.0)})
        aggregator = ContextAggregator(provider, FakePool(momentum))

        result = await aggregator.aggregate([], _candidates("SOLUSDT"))

        assert result.oi_by_symbol["SOLUSDT"].rank == 1
        assert result.oi_by_symbol["ARBUSDT"].oi_delta_percent == 3.1

    @pytest.mark.asyncio
    async def test_max_candidates_respected(self):
        records = {s: _record(s, 10.0) for s in ("A", "B", "C")}
        provider = FakeProvider(records)
        aggregator = ContextAggregator(provider, FakePool([]))

        result = await aggregator.aggregate([], _candidates("A", "B", "C"), 2)

        assert list(result.market_by_symbol) == ["A", "B"]
        assert "C" not in provider.calls

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self):
        records = {s: _record(s, 10.0) for s in ("A", "B", "C")}
        provider = FakeProvider(records)
        aggregator = ContextAggregator(provider, FakePool([]))

        await aggregator.aggregate([], _candidates("A", "B", "C"))

        assert provider.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_custom_liquidity_floor(self):
        provider = FakeProvider({"LOWUSDT": _record("LOWUSDT", 100.0, oi=100_000)})
        aggregator = ContextAggregator(
            provider, FakePool([]), liquidity_floor_usd=5_000_000
        )

        result = await aggregator.aggregate([], _candidates("LOWUSDT"))

        assert "LOWUSDT" in result.market_by_symbol
