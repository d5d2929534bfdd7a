"""
Unit tests for perpdesk.decision_agent.decision.validator module
"""

import pytest

from perpdesk.decision_agent.decision.validator import (
    risk_bands,
    risk_reward_ratio,
    validate_decision,
    validate_decisions,
)
from perpdesk.decision_agent.exceptions import DecisionValidationError
from perpdesk.decision_agent.models import ProposedAction, RiskPolicy

EQUITY = 1000.0


def _open(**overrides) -> ProposedAction:
    fields = dict(
        symbol="BTCUSDT",
        action="open_short",
        leverage=5,
        position_size_usd=5000,
        stop_loss=97000,
        take_profit=91000,
        confidence=85,
        risk_usd=300,
        reasoning="Downtrend",
        invalidation_condition="4h close back above 96500",
    )
    fields.update(overrides)
    return ProposedAction(**fields)


def _check(action: ProposedAction, major: int = 5, alt: int = 10, **kwargs):
    return validate_decision(action, EQUITY, major, alt, **kwargs)


class TestValidateDecision:
    """Test validate_decision."""

    def test_valid_major_short_passes(self):
        assert _check(_open()) is None

    def test_valid_altcoin_long_passes(self):
        action = _open(
            symbol="SOLUSDT",
            action="open_long",
            leverage=3,
            position_size_usd=1200,
            stop_loss=150,
            take_profit=180,
        )
        assert _check(action) is None

    @pytest.mark.parametrize("kind", ["hold", "wait", "close_long", "close_short"])
    def test_non_opening_actions_skip_numeric_checks(self, kind):
        assert _check(ProposedAction(symbol="DOGEUSDT", action=kind)) is None

    def test_unknown_action_rejected(self):
        rejection = _check(ProposedAction(symbol="BTCUSDT", action="buy"))

        assert rejection.constraint == "action"
        assert rejection.value == "buy"

    def test_altcoin_leverage_above_ceiling(self):
        action = _open(
            symbol="DOGEUSDT",
            action="open_long",
            leverage=15,
            position_size_usd=1000,
            stop_loss=0.10,
            take_profit=0.13,
        )
        rejection = _check(action, major=20, alt=10)

        assert rejection.constraint == "leverage"
        assert rejection.value == 15
        assert rejection.limit == 10

    def test_major_pairs_use_major_ceiling(self):
        rejection = _check(_open(leverage=8), major=5, alt=20)

        assert rejection.constraint == "leverage"
        assert rejection.limit == 5

    @pytest.mark.parametrize("leverage", [None, 0, 2.5, float("nan"), float("inf")])
    def test_leverage_must_be_integer_in_range(self, leverage):
        rejection = _check(_open(leverage=leverage))

        assert rejection.constraint == "leverage"

    def test_integral_float_leverage_accepted(self):
        assert _check(_open(leverage=3.0)) is None

    def test_altcoin_notional_tolerance(self):
        base = dict(
            symbol="SOLUSDT",
            action="open_long",
            leverage=3,
            stop_loss=150,
            take_profit=180,
        )
        assert _check(_open(position_size_usd=1514, **base)) is None

        rejection = _check(_open(position_size_usd=1516, **base))
        assert rejection.constraint == "position_size_usd"
        assert rejection.limit == pytest.approx(1500.0)

    def test_major_notional_band(self):
        assert _check(_open(position_size_usd=10_050)) is None

        rejection = _check(_open(position_size_usd=10_200))
        assert rejection.constraint == "position_size_usd"
        assert rejection.limit == pytest.approx(10_000.0)

    @pytest.mark.parametrize("size", [None, 0, -10])
    def test_position_size_must_be_positive(self, size):
        rejection = _check(_open(position_size_usd=size))

        assert rejection.constraint == "position_size_usd"

    def test_stop_loss_and_take_profit_must_be_positive(self):
        assert _check(_open(stop_loss=0)).constraint == "stop_loss"
        assert _check(_open(take_profit=None)).constraint == "take_profit"

    def test_missing_invalidation_condition(self):
        rejection = _check(_open(invalidation_condition=None))

        assert rejection.constraint == "invalidation_condition"

    def test_short_invalidation_condition(self):
        rejection = _check(_open(invalidation_condition="   too short   "))

        assert rejection.constraint == "invalidation_condition"
        assert rejection.limit == 10

    def test_long_stop_must_be_below_target(self):
        action = _open(action="open_long", stop_loss=97000, take_profit=91000)
        rejection = _check(action)

        assert rejection.constraint == "stop_take_order"
        assert rejection.value == 97000
        assert rejection.limit == 91000

    def test_short_stop_must_be_above_target(self):
        action = _open(stop_loss=91000, take_profit=97000)

        assert _check(action).constraint == "stop_take_order"

    def test_checks_run_in_order(self):
        action = _open(
            leverage=50, position_size_usd=-1, stop_loss=0, invalidation_condition=""
        )

        assert _check(action).constraint == "leverage"

    def test_risk_reward_below_minimum(self):
        policy = RiskPolicy(entry_fraction=0.3)
        action = _open(
            symbol="SOLUSDT",
            action="open_long",
            leverage=3,
            position_size_usd=1000,
            stop_loss=100,
            take_profit=200,
        )
        rejection = _check(action, policy=policy)

        assert rejection.constraint == "risk_reward"
        assert rejection.value == pytest.approx(70 / 30, rel=1e-3)
        assert rejection.limit == 3.0


class TestRiskHelpers:
    """Test risk_bands and risk_reward_ratio."""

    def test_risk_bands(self):
        assert risk_bands("BTCUSDT", 1000, 5, 10) == (5, 10_000.0)
        assert risk_bands("ETHUSDT", 1000, 5, 10) == (5, 10_000.0)
        assert risk_bands("XRPUSDT", 1000, 5, 10) == (10, 1500.0)

    def test_default_entry_fraction_yields_four(self):
        assert risk_reward_ratio("open_long", 100, 200, 0.2) == pytest.approx(4.0)
        assert risk_reward_ratio("open_short", 97000, 91000, 0.2) == pytest.approx(4.0)

    def test_zero_risk_yields_zero_ratio(self):
        assert risk_reward_ratio("open_long", 100, 200, 0.0) == 0.0


class TestValidateDecisions:
    """Test validate_decisions batch semantics."""

    def test_all_valid_batch(self):
        actions = [ProposedAction(symbol="ETHUSDT", action="hold"), _open()]

        assert validate_decisions(actions, EQUITY, 5, 10) is None

    def test_first_failure_reports_index(self):
        actions = [
            ProposedAction(symbol="ETHUSDT", action="hold"),
            ProposedAction(symbol="SOLUSDT", action="wait"),
            _open(invalidation_condition=None),
            _open(leverage=99),
        ]
        with pytest.raises(DecisionValidationError) as exc_info:
            validate_decisions(actions, EQUITY, 5, 10, rationale="because")

        err = exc_info.value
        assert err.index == 2
        assert err.constraint == "invalidation_condition"
        assert err.rationale == "because"
        assert len(err.actions) == 4
        assert "decision #3" in str(err)

    def test_empty_batch_is_valid(self):
        assert validate_decisions([], EQUITY, 5, 10) is None
