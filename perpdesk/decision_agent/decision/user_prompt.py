from typing import Callable, Dict, List

from ..data.formatting import format_market_record
from ..models import (
    CandidateSource,
    CandidateSymbol,
    DecisionContext,
    MarketRecord,
    OIMomentumRecord,
    PositionRecord,
)
from ..utils import display_coin

MarketFormatter = Callable[[MarketRecord], str]

_SOURCE_LABELS = {
    CandidateSource.AI500: "AI500 score ranking",
    CandidateSource.OI_TOP: "OI top ranking",
}


def _display_symbols(context: DecisionContext) -> List[str]:
    """Position symbols first, then candidates that have market data."""
    symbols = [p.symbol for p in context.positions]
    symbols += [
        c.symbol for c in context.candidates if c.symbol in context.market_by_symbol
    ]
    return list(dict.fromkeys(symbols))


def _source_line(candidate: CandidateSymbol) -> str:
    labels = [_SOURCE_LABELS.get(s, str(s.value)) for s in candidate.sources]
    return "Candidate sources: " + " + ".join(labels)


def _oi_momentum_line(record: OIMomentumRecord) -> str:
    return (
        f"OI momentum: rank #{record.rank}, OI change {record.oi_delta_percent:+.2f}% "
        f"({record.oi_delta_value:+.2f}), price change {record.price_delta_percent:+.2f}%, "
        f"net long {record.net_long:.2f} / net short {record.net_short:.2f}"
    )


def _position_line(position: PositionRecord) -> str:
    notional = position.quantity * position.mark_price
    return (
        f"{{'symbol': '{position.symbol}', 'side': '{position.side.value}', "
        f"'quantity': {position.quantity:.4f}, 'entry_price': {position.entry_price:.2f}, "
        f"'current_price': {position.mark_price:.2f}, "
        f"'liquidation_price': {position.liquidation_price:.2f}, "
        f"'unrealized_pnl': {position.unrealized_pnl:.2f} "
        f"({position.unrealized_pnl_pct:+.2f}%), 'leverage': {position.leverage}, "
        f"'margin_used': {position.margin_used:.2f}, 'notional_usd': {notional:.2f}}}"
    )


def build_user_prompt(
    context: DecisionContext,
    formatter: MarketFormatter = format_market_record,
) -> str:
    """Render the per-cycle state text sent to the oracle.

    Sections: status header, market state per symbol (open positions first,
    then candidates with data), account, positions and, when present, the
    Sharpe ratio.
    """
    candidates: Dict[str, CandidateSymbol] = {c.symbol: c for c in context.candidates}
    sections: List[str] = [
        f"It has been {context.runtime_minutes} minutes since you started trading. "
        f"The current time is {context.current_time} and you've been invoked "
        f"{context.call_count} times. Below is the market state of every symbol you "
        "may trade, followed by your account, positions and performance.",
        "ALL OF THE PRICE OR SIGNAL DATA BELOW IS ORDERED: OLDEST → NEWEST",
        "Intraday series use 3-minute intervals unless a section title states otherwise.",
        "## CURRENT MARKET STATE FOR ALL COINS",
    ]

    for symbol in _display_symbols(context):
        record = context.market_by_symbol.get(symbol)
        if record is None:
            continue
        block = [f"### ALL {display_coin(symbol)} DATA"]
        candidate = candidates.get(symbol)
        if candidate is not None and candidate.sources:
            block.append(_source_line(candidate))
        oi_record = context.oi_by_symbol.get(symbol)
        if oi_record is not None:
            block.append(_oi_momentum_line(oi_record))
        block.append(formatter(record))
        sections.append("\n\n".join(block))

    account = context.account
    sections.extend(
        [
            "## HERE IS YOUR ACCOUNT INFORMATION & PERFORMANCE",
            f"Current Total Return (percent): {account.total_pnl_pct:.2f}%",
            f"Available Cash: {account.available_balance:.2f}",
            f"Current Account Value: {account.total_equity:.2f}",
            f"Margin Used: {account.margin_used:.2f} ({account.margin_used_pct:.2f}%)",
            "Current live positions & performance:",
        ]
    )
    if context.positions:
        sections.extend(_position_line(p) for p in context.positions)
    else:
        sections.append("None")

    if context.performance is not None:
        sections.append(f"Sharpe Ratio: {context.performance.sharpe_ratio:.3f}")

    return "\n\n".join(sections) + "\n"
