"""Risk validation of proposed actions.

Non-opening actions only need a recognized action kind. Opening actions are
checked in a fixed order and the first violated constraint is reported;
numeric fields are never corrected.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..exceptions import DecisionValidationError
from ..models import ActionKind, ProposedAction, Rejection, RiskPolicy

_VALID_ACTIONS = frozenset(kind.value for kind in ActionKind)
_DEFAULT_POLICY = RiskPolicy()


def risk_bands(
    symbol: str,
    account_equity: float,
    major_leverage: int,
    altcoin_leverage: int,
    policy: RiskPolicy = _DEFAULT_POLICY,
) -> Tuple[int, float]:
    """Return `(leverage_ceiling, max_notional_usd)` for a symbol."""
    if symbol in policy.major_pairs:
        return major_leverage, account_equity * policy.major_notional_multiplier
    return altcoin_leverage, account_equity * policy.altcoin_notional_multiplier


def risk_reward_ratio(
    action: str, stop_loss: float, take_profit: float, entry_fraction: float
) -> float:
    """Reward/risk with the entry assumed `entry_fraction` of the way from the stop.

    Returns 0 when the computed risk is not positive.
    """
    if action == ActionKind.OPEN_LONG.value:
        entry = stop_loss + (take_profit - stop_loss) * entry_fraction
        risk_pct = (entry - stop_loss) / entry * 100
        reward_pct = (take_profit - entry) / entry * 100
    else:
        entry = stop_loss - (stop_loss - take_profit) * entry_fraction
        risk_pct = (stop_loss - entry) / entry * 100
        reward_pct = (entry - take_profit) / entry * 100
    if risk_pct <= 0:
        return 0.0
    return reward_pct / risk_pct


def _check_leverage(value, ceiling: int) -> Optional[Rejection]:
    detail = f"leverage must be an integer between 1 and {ceiling}, got {value!r}"
    if value is None or isinstance(value, bool):
        return Rejection(constraint="leverage", value=None, limit=ceiling, detail=detail)
    if isinstance(value, float) and not value.is_integer():
        return Rejection(constraint="leverage", value=value, limit=ceiling, detail=detail)
    if not 1 <= value <= ceiling:
        return Rejection(
            constraint="leverage", value=int(value), limit=ceiling, detail=detail
        )
    return None


def validate_decision(
    decision: ProposedAction,
    account_equity: float,
    major_leverage: int,
    altcoin_leverage: int,
    policy: RiskPolicy = _DEFAULT_POLICY,
) -> Optional[Rejection]:
    """Return the first violated constraint of `decision`, or None if it passes."""
    if decision.action not in _VALID_ACTIONS:
        return Rejection(
            constraint="action",
            value=decision.action,
            detail=f"invalid action: {decision.action}",
        )
    if not decision.is_opening:
        return None

    ceiling, max_notional = risk_bands(
        decision.symbol, account_equity, major_leverage, altcoin_leverage, policy
    )

    rejection = _check_leverage(decision.leverage, ceiling)
    if rejection is not None:
        return rejection

    size = decision.position_size_usd
    if size is None or size <= 0:
        return Rejection(
            constraint="position_size_usd",
            value=size,
            limit=0,
            detail=f"position size must be greater than 0, got {size}",
        )
    if size > max_notional * (1 + policy.notional_tolerance):
        return Rejection(
            constraint="position_size_usd",
            value=size,
            limit=max_notional,
            detail=(
                f"{decision.symbol} position value cannot exceed {max_notional:.0f} USD, "
                f"got {size:.0f}"
            ),
        )

    if decision.stop_loss is None or decision.stop_loss <= 0:
        return Rejection(
            constraint="stop_loss",
            value=decision.stop_loss,
            limit=0,
            detail="stop loss must be greater than 0",
        )
    if decision.take_profit is None or decision.take_profit <= 0:
        return Rejection(
            constraint="take_profit",
            value=decision.take_profit,
            limit=0,
            detail="take profit must be greater than 0",
        )

    condition = (decision.invalidation_condition or "").strip()
    if not condition:
        return Rejection(
            constraint="invalidation_condition",
            value=decision.invalidation_condition,
            limit=policy.min_invalidation_length,
            detail="invalidation_condition is mandatory for new positions",
        )
    if len(condition) < policy.min_invalidation_length:
        return Rejection(
            constraint="invalidation_condition",
            value=decision.invalidation_condition,
            limit=policy.min_invalidation_length,
            detail=(
                "invalidation_condition must be at least "
                f"{policy.min_invalidation_length} characters, got {condition!r}"
            ),
        )

    stop, target = decision.stop_loss, decision.take_profit
    if decision.action == ActionKind.OPEN_LONG.value and stop >= target:
        return Rejection(
            constraint="stop_take_order",
            value=stop,
            limit=target,
            detail="long stop loss must be below take profit",
        )
    if decision.action == ActionKind.OPEN_SHORT.value and stop <= target:
        return Rejection(
            constraint="stop_take_order",
            value=stop,
            limit=target,
            detail="short stop loss must be above take profit",
        )

    ratio = risk_reward_ratio(decision.action, stop, target, policy.entry_fraction)
    if ratio < policy.min_risk_reward:
        return Rejection(
            constraint="risk_reward",
            value=round(ratio, 4),
            limit=policy.min_risk_reward,
            detail=(
                f"risk:reward 1:{ratio:.2f} is below the 1:{policy.min_risk_reward:.1f} "
                "minimum"
            ),
        )
    return None


def validate_decisions(
    decisions: Sequence[ProposedAction],
    account_equity: float,
    major_leverage: int,
    altcoin_leverage: int,
    policy: RiskPolicy = _DEFAULT_POLICY,
    *,
    rationale: Optional[str] = None,
) -> None:
    """Validate a batch; raise on the first invalid action.

    Raises:
        DecisionValidationError: carrying the 0-based index of the offending
            action and its Rejection
    """
    actions: List[ProposedAction] = list(decisions)
    for index, decision in enumerate(actions):
        rejection = validate_decision(
            decision, account_equity, major_leverage, altcoin_leverage, policy
        )
        if rejection is not None:
            raise DecisionValidationError(
                index, rejection, actions=actions, rationale=rationale
            )
