import os
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from perpdesk.utils.env import get_provider_api_key

from .constants import (
    ALTCOIN_NOTIONAL_MULTIPLIER,
    ASSUMED_ENTRY_FRACTION,
    DEFAULT_AGENT_MODEL,
    DEFAULT_ALTCOIN_LEVERAGE,
    DEFAULT_EXCHANGE_ID,
    DEFAULT_FALLBACK_SYMBOLS,
    DEFAULT_LIQUIDITY_FLOOR_USD,
    DEFAULT_MAJOR_LEVERAGE,
    DEFAULT_MODEL_PROVIDER,
    DEFAULT_POOL_TIMEOUT_S,
    MAJOR_NOTIONAL_MULTIPLIER,
    MAJOR_PAIRS,
    MIN_INVALIDATION_LENGTH,
    MIN_RISK_REWARD_RATIO,
    NOTIONAL_TOLERANCE,
)


class PositionSide(str, Enum):
    """Side of an open exchange position."""

    LONG = "long"
    SHORT = "short"


class ActionKind(str, Enum):
    """Recognized decision actions.

    Semantics:
    - OPEN_LONG/OPEN_SHORT: enter a new position (only when flat)
    - CLOSE_LONG/CLOSE_SHORT: exit an existing position
    - HOLD: keep an existing position as is
    - WAIT: no position, no action
    """

    OPEN_LONG = "open_long"
    OPEN_SHORT = "open_short"
    CLOSE_LONG = "close_long"
    CLOSE_SHORT = "close_short"
    HOLD = "hold"
    WAIT = "wait"


OPENING_ACTIONS = frozenset({ActionKind.OPEN_LONG.value, ActionKind.OPEN_SHORT.value})


class CandidateSource(str, Enum):
    """Provenance tag of a candidate symbol."""

    AI500 = "ai500"  # ranked by composite score
    OI_TOP = "oi_top"  # ranked by open interest momentum


# =========================
# Configuration
# =========================


class LLMModelConfig(BaseModel):
    """AI model configuration for the decision oracle.

    Missing values are backfilled from the environment:
    PERPDESK_MODEL_PROVIDER, PERPDESK_MODEL_ID and <PROVIDER>_API_KEY.
    """

    provider: str = Field(
        default=DEFAULT_MODEL_PROVIDER,
        description="Model provider (e.g., 'openrouter', 'deepseek', 'openai')",
    )
    model_id: str = Field(
        default=DEFAULT_AGENT_MODEL,
        description="Model identifier (e.g., 'deepseek/deepseek-chat-v3.1')",
    )
    api_key: Optional[str] = Field(
        default=None, description="API key for the model provider"
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        values = dict(data)
        provider = (
            values.get("provider")
            or os.getenv("PERPDESK_MODEL_PROVIDER")
            or DEFAULT_MODEL_PROVIDER
        )
        values["provider"] = provider
        values["model_id"] = (
            values.get("model_id")
            or os.getenv("PERPDESK_MODEL_ID")
            or DEFAULT_AGENT_MODEL
        )
        if values.get("api_key") is None:
            values["api_key"] = get_provider_api_key(provider)
        return values


class PoolConfig(BaseModel):
    """Candidate pool endpoints and fallback universe."""

    ai500_url: Optional[str] = Field(
        default=None, description="Endpoint returning the score-ranked coin list"
    )
    oi_top_url: Optional[str] = Field(
        default=None,
        description="Endpoint returning the open-interest momentum ranking",
    )
    timeout_s: float = Field(
        default=DEFAULT_POOL_TIMEOUT_S, description="HTTP timeout in seconds", gt=0
    )
    fallback_symbols: List[str] = Field(
        default_factory=lambda: list(DEFAULT_FALLBACK_SYMBOLS),
        description="Symbols used when the score ranking is unavailable",
    )

    @field_validator("fallback_symbols")
    @classmethod
    def _upper_symbols(cls, v):
        return [s.strip().upper() for s in v if s and s.strip()]


class EngineConfig(BaseModel):
    """Decision engine configuration threaded into every cycle."""

    exchange_id: str = Field(
        default=DEFAULT_EXCHANGE_ID,
        description="ccxt exchange id used for market data (e.g., 'binance')",
    )
    major_leverage: int = Field(
        default=DEFAULT_MAJOR_LEVERAGE,
        description="Leverage ceiling for BTC/ETH",
        ge=1,
    )
    altcoin_leverage: int = Field(
        default=DEFAULT_ALTCOIN_LEVERAGE,
        description="Leverage ceiling for every other symbol",
        ge=1,
    )
    max_candidates: Optional[int] = Field(
        default=None,
        description="Number of ranked candidates to analyze (None = all)",
        ge=0,
    )
    liquidity_floor_usd: float = Field(
        default=DEFAULT_LIQUIDITY_FLOOR_USD,
        description="Minimum open interest value (OI x price) for new symbols",
        ge=0,
    )
    oracle_timeout_s: Optional[float] = Field(
        default=None,
        description="Optional timeout for the oracle round trip",
        gt=0,
    )
    llm_model_config: LLMModelConfig = Field(
        default_factory=LLMModelConfig, description="AI model configuration"
    )
    pool_config: PoolConfig = Field(
        default_factory=PoolConfig, description="Candidate pool configuration"
    )


class RiskPolicy(BaseModel):
    """Immutable risk bands applied by the decision validator.

    Leverage ceilings are not part of the policy: they are passed on every
    validation call.
    """

    model_config = ConfigDict(frozen=True)

    major_pairs: Tuple[str, ...] = MAJOR_PAIRS
    major_notional_multiplier: float = MAJOR_NOTIONAL_MULTIPLIER
    altcoin_notional_multiplier: float = ALTCOIN_NOTIONAL_MULTIPLIER
    notional_tolerance: float = NOTIONAL_TOLERANCE
    min_risk_reward: float = MIN_RISK_REWARD_RATIO
    entry_fraction: float = ASSUMED_ENTRY_FRACTION
    min_invalidation_length: int = MIN_INVALIDATION_LENGTH


# =========================
# Account / position state (owned by the caller)
# =========================


class AccountSnapshot(BaseModel):
    """Account state captured once per decision cycle."""

    model_config = ConfigDict(frozen=True)

    total_equity: float = Field(..., description="Account equity in quote currency")
    available_balance: float = Field(default=0.0)
    total_pnl: float = Field(default=0.0)
    total_pnl_pct: float = Field(default=0.0)
    margin_used: float = Field(default=0.0)
    margin_used_pct: float = Field(default=0.0)
    position_count: int = Field(default=0, ge=0)


class PositionRecord(BaseModel):
    """One currently open exchange position (read-only to the engine)."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    side: PositionSide
    entry_price: float
    mark_price: float
    quantity: float
    leverage: int = Field(default=1, ge=1)
    unrealized_pnl: float = Field(default=0.0)
    unrealized_pnl_pct: float = Field(default=0.0)
    liquidation_price: float = Field(default=0.0)
    margin_used: float = Field(default=0.0)
    update_time: int = Field(default=0, description="Last update timestamp in ms")


class CandidateSymbol(BaseModel):
    """A symbol proposed by the candidate pool, with provenance tags."""

    symbol: str
    sources: List[CandidateSource] = Field(default_factory=list)

    def has_source(self, source: CandidateSource) -> bool:
        return source in self.sources


class PerformanceSummary(BaseModel):
    """Historical performance feedback attached to a cycle."""

    sharpe_ratio: float


# =========================
# Market data
# =========================


class OpenInterest(BaseModel):
    model_config = ConfigDict(frozen=True)

    latest: float
    average: float


class IntradaySeries(BaseModel):
    """Short-timeframe (3m) series, ordered OLDEST -> NEWEST."""

    model_config = ConfigDict(frozen=True)

    mid_prices: List[float] = Field(default_factory=list)
    ema20_values: List[float] = Field(default_factory=list)
    macd_values: List[float] = Field(default_factory=list)
    rsi7_values: List[float] = Field(default_factory=list)
    rsi14_values: List[float] = Field(default_factory=list)


class LongerTermContext(BaseModel):
    """Longer-timeframe (4h) context, series ordered OLDEST -> NEWEST."""

    model_config = ConfigDict(frozen=True)

    ema20: float
    ema50: float
    atr3: float
    atr14: float
    current_volume: float
    average_volume: float
    macd_values: List[float] = Field(default_factory=list)
    rsi14_values: List[float] = Field(default_factory=list)


class MarketRecord(BaseModel):
    """Market data for one symbol, fetched fresh each cycle."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_price: float
    price_change_1h: float = Field(default=0.0, description="Percent change, 1h")
    price_change_4h: float = Field(default=0.0, description="Percent change, 4h")
    current_ema20: float = Field(default=0.0)
    current_macd: float = Field(default=0.0)
    current_rsi7: float = Field(default=0.0)
    open_interest: Optional[OpenInterest] = Field(default=None)
    funding_rate: Optional[float] = Field(default=None)
    intraday: Optional[IntradaySeries] = Field(default=None)
    longer_term: Optional[LongerTermContext] = Field(default=None)

    def open_interest_value(self) -> Optional[float]:
        """Open interest value in quote currency (OI x price), if known."""
        if self.open_interest is None or self.current_price <= 0:
            return None
        return self.open_interest.latest * self.current_price


class OIMomentumRecord(BaseModel):
    """Open interest momentum ranking entry (informational only)."""

    symbol: str
    rank: int
    oi_delta_percent: float = Field(default=0.0)
    oi_delta_value: float = Field(default=0.0)
    price_delta_percent: float = Field(default=0.0)
    net_long: float = Field(default=0.0)
    net_short: float = Field(default=0.0)


class AggregationResult(BaseModel):
    """Output of context aggregation for one cycle."""

    market_by_symbol: Dict[str, MarketRecord] = Field(default_factory=dict)
    oi_by_symbol: Dict[str, OIMomentumRecord] = Field(default_factory=dict)


class DecisionContext(BaseModel):
    """Everything the oracle sees for one decision cycle.

    Built by the caller at the start of a cycle; the engine fills the market
    maps on a copy, so one context is never shared between cycles.
    """

    account: AccountSnapshot
    positions: List[PositionRecord] = Field(default_factory=list)
    candidates: List[CandidateSymbol] = Field(default_factory=list)
    market_by_symbol: Dict[str, MarketRecord] = Field(default_factory=dict)
    oi_by_symbol: Dict[str, OIMomentumRecord] = Field(default_factory=dict)
    major_leverage: int = Field(default=DEFAULT_MAJOR_LEVERAGE, ge=1)
    altcoin_leverage: int = Field(default=DEFAULT_ALTCOIN_LEVERAGE, ge=1)
    performance: Optional[PerformanceSummary] = Field(default=None)
    current_time: str = Field(default="", description="Display time of the cycle")
    runtime_minutes: int = Field(default=0, ge=0)
    call_count: int = Field(default=0, ge=0)


# =========================
# Oracle output
# =========================


class ProposedAction(BaseModel):
    """One decision item as emitted by the oracle.

    Only `action` is required here. Numbers must be finite and not booleans;
    whether the kind is recognized and the values are acceptable is decided
    by the validator.
    """

    model_config = ConfigDict(extra="ignore")

    symbol: str = Field(default="")
    action: str = Field(..., min_length=1)
    leverage: Optional[Union[int, float]] = Field(default=None)
    position_size_usd: Optional[float] = Field(default=None, allow_inf_nan=False)
    stop_loss: Optional[float] = Field(default=None, allow_inf_nan=False)
    take_profit: Optional[float] = Field(default=None, allow_inf_nan=False)
    invalidation_condition: Optional[str] = Field(default=None)
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    risk_usd: Optional[float] = Field(default=None, allow_inf_nan=False)
    reasoning: str = Field(default="")

    @field_validator("action")
    @classmethod
    def _strip_action(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("action must be a non-empty string")
        return v

    @field_validator(
        "leverage",
        "position_size_usd",
        "stop_loss",
        "take_profit",
        "confidence",
        "risk_usd",
        mode="before",
    )
    @classmethod
    def _reject_bool_numbers(cls, v, info):
        if isinstance(v, bool):
            raise ValueError(f"{info.field_name} must be a number, not a boolean")
        return v

    @field_validator("symbol", "reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def is_opening(self) -> bool:
        return self.action in OPENING_ACTIONS


class Rejection(BaseModel):
    """Structured reason why a proposed action was rejected."""

    constraint: str
    value: Optional[Union[float, int, str]] = None
    limit: Optional[Union[float, int, str]] = None
    detail: str = ""


class DecisionBatch(BaseModel):
    """Validated result of one decision cycle."""

    rationale: str = Field(default="", description="Oracle chain of thought")
    actions: List[ProposedAction] = Field(default_factory=list)
    timestamp: datetime
    user_prompt: str = Field(
        default="", description="State text sent to the oracle for this cycle"
    )
