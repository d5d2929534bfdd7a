from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from perpdesk.utils.ts import utc_now

from .data.interfaces import CandidatePool
from .engine import DecisionEngine
from .models import (
    AccountSnapshot,
    DecisionBatch,
    DecisionContext,
    EngineConfig,
    PerformanceSummary,
    PositionRecord,
)


@dataclass
class DecisionRuntime:
    """Stateful wrapper that builds a fresh context for every cycle.

    Tracks the start time and the call counter shown to the oracle and pulls
    the ranked candidates from the engine's pool.
    """

    engine: DecisionEngine
    started_at: datetime = field(default_factory=utc_now)
    call_count: int = 0

    async def build_context(
        self,
        account: AccountSnapshot,
        positions: Optional[List[PositionRecord]] = None,
        performance: Optional[PerformanceSummary] = None,
    ) -> DecisionContext:
        self.call_count += 1
        now = utc_now()
        config = self.engine.config
        candidates = await self.engine.pool.ranked_symbols()
        return DecisionContext(
            account=account,
            positions=list(positions or []),
            candidates=candidates,
            major_leverage=config.major_leverage,
            altcoin_leverage=config.altcoin_leverage,
            performance=performance,
            current_time=now.strftime("%Y-%m-%d %H:%M:%S UTC"),
            runtime_minutes=int((now - self.started_at).total_seconds() // 60),
            call_count=self.call_count,
        )

    async def run_cycle(
        self,
        account: AccountSnapshot,
        positions: Optional[List[PositionRecord]] = None,
        performance: Optional[PerformanceSummary] = None,
    ) -> DecisionBatch:
        context = await self.build_context(account, positions, performance)
        return await self.engine.get_full_decision(context)


def create_decision_engine(
    config: Optional[EngineConfig] = None, pool: Optional[CandidatePool] = None
) -> DecisionEngine:
    """Create a decision engine wired to ccxt, the HTTP pool and agno."""
    return DecisionEngine.from_config(config or EngineConfig(), pool=pool)


def create_decision_runtime(
    config: Optional[EngineConfig] = None, pool: Optional[CandidatePool] = None
) -> DecisionRuntime:
    return DecisionRuntime(engine=create_decision_engine(config, pool=pool))
