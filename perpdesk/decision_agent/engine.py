"""Decision engine: one full decision cycle from context to validated batch.

Flow per cycle:
1. Aggregate market data and OI momentum for positions and candidates.
2. Render the policy (system) and state (user) texts.
3. Submit both to the oracle in a single round trip.
4. Extract the rationale and the decision array from the reply.
5. Validate every action against the risk policy.

Any failure after the oracle replied carries the rationale so the operator
can see what the oracle was thinking.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from perpdesk.utils.ts import utc_now

from .context.aggregator import ContextAggregator
from .data.interfaces import CandidatePool, MarketSnapshotProvider
from .data.market import CcxtMarketSnapshotProvider
from .data.pool import HttpCandidatePool
from .decision.extractor import ResponseExtractor
from .decision.interfaces import OracleClient
from .decision.oracle import AgnoOracleClient
from .decision.system_prompt import build_system_prompt
from .decision.user_prompt import build_user_prompt
from .decision.validator import validate_decisions
from .exceptions import DecisionEngineError
from .models import DecisionBatch, DecisionContext, EngineConfig, RiskPolicy


class DecisionEngine:
    """Runs decision cycles against injected collaborators."""

    def __init__(
        self,
        *,
        provider: MarketSnapshotProvider,
        pool: CandidatePool,
        oracle: OracleClient,
        config: Optional[EngineConfig] = None,
        policy: Optional[RiskPolicy] = None,
        extractor: Optional[ResponseExtractor] = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._provider = provider
        self._pool = pool
        self._oracle = oracle
        self._policy = policy or RiskPolicy()
        self._extractor = extractor or ResponseExtractor()
        self._aggregator = ContextAggregator(
            provider, pool, liquidity_floor_usd=self._config.liquidity_floor_usd
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def pool(self) -> CandidatePool:
        return self._pool

    async def get_full_decision(self, context: DecisionContext) -> DecisionBatch:
        """Run one cycle and return the validated decision batch.

        The input context is not mutated; market maps are filled on a copy.

        Raises:
            OracleError: the oracle call failed
            ExtractionError: the reply had no parseable decision array
            DecisionValidationError: an action violated a risk constraint
        """
        aggregation = await self._aggregator.aggregate(
            context.positions, context.candidates, self._config.max_candidates
        )
        cycle_context = context.model_copy(
            update={
                "market_by_symbol": aggregation.market_by_symbol,
                "oi_by_symbol": aggregation.oi_by_symbol,
            }
        )

        policy_text = build_system_prompt(
            cycle_context.major_leverage, cycle_context.altcoin_leverage
        )
        state_text = build_user_prompt(cycle_context, self._provider.format)

        logger.info(
            "Submitting decision request: {} symbols with market data, {} positions",
            len(aggregation.market_by_symbol),
            len(cycle_context.positions),
        )
        reply = await self._oracle.submit(policy_text, state_text)

        try:
            rationale, actions = self._extractor.extract(reply)
            validate_decisions(
                actions,
                cycle_context.account.total_equity,
                cycle_context.major_leverage,
                cycle_context.altcoin_leverage,
                self._policy,
                rationale=rationale,
            )
        except DecisionEngineError as exc:
            logger.warning("Decision batch rejected: {}", exc)
            raise

        logger.info("Decision batch accepted with {} actions", len(actions))
        return DecisionBatch(
            rationale=rationale,
            actions=actions,
            timestamp=utc_now(),
            user_prompt=state_text,
        )

    @classmethod
    def from_config(
        cls, config: EngineConfig, pool: Optional[CandidatePool] = None
    ) -> "DecisionEngine":
        """Wire the ccxt market provider, HTTP pool and agno oracle.

        `pool` replaces the HTTP candidate pool when given.
        """
        provider = CcxtMarketSnapshotProvider(exchange_id=config.exchange_id)
        if pool is None:
            pool = HttpCandidatePool(config.pool_config)
        oracle = AgnoOracleClient.from_config(
            config.llm_model_config, timeout_s=config.oracle_timeout_s
        )
        return cls(provider=provider, pool=pool, oracle=oracle, config=config)
