"""
Unit tests for perpdesk.decision_agent.models and utils modules
"""

import pytest
from pydantic import ValidationError

from perpdesk.decision_agent.models import (
    AccountSnapshot,
    EngineConfig,
    LLMModelConfig,
    MarketRecord,
    OpenInterest,
    PoolConfig,
    ProposedAction,
    RiskPolicy,
)
from perpdesk.decision_agent.utils import display_coin, normalize_symbol


class TestLLMModelConfig:
    """Test environment backfill of LLMModelConfig."""

    def test_env_backfill(self, monkeypatch):
        monkeypatch.setenv("PERPDESK_MODEL_PROVIDER", "deepseek")
        monkeypatch.setenv("PERPDESK_MODEL_ID", "deepseek-chat")
        monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")

        config = LLMModelConfig()

        assert config.provider == "deepseek"
        assert config.model_id == "deepseek-chat"
        assert config.api_key == "sk-test"

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("PERPDESK_MODEL_PROVIDER", "deepseek")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        config = LLMModelConfig(provider="openai", model_id="gpt-4o", api_key="sk-arg")

        assert config.provider == "openai"
        assert config.api_key == "sk-arg"

    def test_none_values_fall_back(self, monkeypatch):
        monkeypatch.delenv("PERPDESK_MODEL_PROVIDER", raising=False)
        monkeypatch.delenv("PERPDESK_MODEL_ID", raising=False)
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

        config = LLMModelConfig(provider=None, model_id=None)

        assert config.provider == "openrouter"
        assert config.model_id
        assert config.api_key is None


class TestConfigs:
    """Test pool and engine configuration."""

    def test_pool_fallback_symbols_normalized(self):
        config = PoolConfig(fallback_symbols=[" btcusdt", "", "EthUsdt"])

        assert config.fallback_symbols == ["BTCUSDT", "ETHUSDT"]

    def test_engine_defaults(self):
        config = EngineConfig()

        assert config.max_candidates is None
        assert config.liquidity_floor_usd == 15_000_000.0
        assert config.major_leverage >= 1

    def test_engine_rejects_zero_leverage(self):
        with pytest.raises(ValidationError):
            EngineConfig(altcoin_leverage=0)

    def test_risk_policy_is_frozen(self):
        policy = RiskPolicy()

        assert policy.major_pairs == ("BTCUSDT", "ETHUSDT")
        with pytest.raises(ValidationError):
            policy.min_risk_reward = 1.0


class TestProposedAction:
    """Test ProposedAction parsing rules."""

    def test_action_is_stripped(self):
        assert ProposedAction(action=" hold ").action == "hold"

    def test_bool_leverage_rejected(self):
        with pytest.raises(ValidationError):
            ProposedAction(action="open_long", leverage=True)

    @pytest.mark.parametrize(
        "field", ["position_size_usd", "stop_loss", "take_profit", "risk_usd"]
    )
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), True])
    def test_numeric_fields_reject_non_finite_and_bool(self, field, value):
        with pytest.raises(ValidationError):
            ProposedAction(action="open_long", **{field: value})

    @pytest.mark.parametrize("confidence", [-1, 101, True])
    def test_confidence_range(self, confidence):
        with pytest.raises(ValidationError):
            ProposedAction(action="open_long", confidence=confidence)

        assert ProposedAction(action="open_long", confidence=100).confidence == 100

    def test_null_text_fields_become_empty(self):
        action = ProposedAction(action="wait", symbol=None, reasoning=None)

        assert action.symbol == ""
        assert action.reasoning == ""

    def test_is_opening(self):
        assert ProposedAction(action="open_short").is_opening
        assert not ProposedAction(action="close_short").is_opening


class TestMarketRecord:
    def test_open_interest_value(self):
        record = MarketRecord(
            symbol="BTCUSDT",
            current_price=100.0,
            open_interest=OpenInterest(latest=200_000, average=150_000),
        )

        assert record.open_interest_value() == 20_000_000

    def test_open_interest_value_requires_price(self):
        record = MarketRecord(
            symbol="BTCUSDT",
            current_price=0.0,
            open_interest=OpenInterest(latest=1.0, average=1.0),
        )

        assert record.open_interest_value() is None

    def test_account_snapshot_is_frozen(self):
        account = AccountSnapshot(total_equity=1000.0)

        with pytest.raises(ValidationError):
            account.total_equity = 5.0


class TestSymbolUtils:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("BTCUSDT", "BTC/USDT:USDT"),
            ("eth-usdt", "ETH/USDT:USDT"),
            ("SOL/USDC", "SOL/USDC:USDC"),
            ("BTC/USDT:USDT", "BTC/USDT:USDT"),
        ],
    )
    def test_normalize_symbol(self, raw, expected):
        assert normalize_symbol(raw) == expected

    def test_display_coin(self):
        assert display_coin("BTCUSDT") == "BTC"
        assert display_coin("1000PEPEUSDT") == "1000PEPE"
