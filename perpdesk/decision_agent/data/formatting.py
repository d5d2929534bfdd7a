"""Text rendering of market records for the oracle state prompt."""

from __future__ import annotations

from typing import List, Sequence

from ..models import MarketRecord


def _fmt_series(values: Sequence[float], precision: int = 3) -> str:
    return "[" + ", ".join(f"{v:.{precision}f}" for v in values) + "]"


def _fmt_price(value: float) -> str:
    # Sub-dollar coins need more decimals to stay meaningful.
    if abs(value) < 1:
        return f"{value:.6f}"
    if abs(value) < 100:
        return f"{value:.4f}"
    return f"{value:.2f}"


def format_market_record(record: MarketRecord) -> str:
    """Render a MarketRecord as deterministic plain text.

    All series are printed OLDEST -> NEWEST.
    """
    lines: List[str] = [
        f"current_price = {_fmt_price(record.current_price)}, "
        f"current_ema20 = {record.current_ema20:.3f}, "
        f"current_macd = {record.current_macd:.3f}, "
        f"current_rsi (7 period) = {record.current_rsi7:.3f}",
        "",
        f"Price change: 1h {record.price_change_1h:+.2f}%, "
        f"4h {record.price_change_4h:+.2f}%",
        "",
    ]

    if record.open_interest is not None or record.funding_rate is not None:
        lines.append(
            f"In addition, here is the latest {record.symbol} open interest and "
            "funding rate for perps:"
        )
        lines.append("")
        if record.open_interest is not None:
            lines.append(
                f"Open Interest: Latest: {record.open_interest.latest:.2f} "
                f"Average: {record.open_interest.average:.2f}"
            )
            lines.append("")
        if record.funding_rate is not None:
            lines.append(f"Funding Rate: {record.funding_rate:.2e}")
            lines.append("")

    intraday = record.intraday
    if intraday is not None:
        lines.append("Intraday series (3-minute intervals, oldest -> latest):")
        lines.append("")
        if intraday.mid_prices:
            lines.append(f"Mid prices: {_fmt_series(intraday.mid_prices)}")
            lines.append("")
        if intraday.ema20_values:
            lines.append(
                f"EMA indicators (20-period): {_fmt_series(intraday.ema20_values)}"
            )
            lines.append("")
        if intraday.macd_values:
            lines.append(f"MACD indicators: {_fmt_series(intraday.macd_values)}")
            lines.append("")
        if intraday.rsi7_values:
            lines.append(
                f"RSI indicators (7-Period): {_fmt_series(intraday.rsi7_values)}"
            )
            lines.append("")
        if intraday.rsi14_values:
            lines.append(
                f"RSI indicators (14-Period): {_fmt_series(intraday.rsi14_values)}"
            )
            lines.append("")

    longer = record.longer_term
    if longer is not None:
        lines.append("Longer-term context (4-hour timeframe):")
        lines.append("")
        lines.append(
            f"20-Period EMA: {longer.ema20:.3f} vs. 50-Period EMA: {longer.ema50:.3f}"
        )
        lines.append("")
        lines.append(
            f"3-Period ATR: {longer.atr3:.3f} vs. 14-Period ATR: {longer.atr14:.3f}"
        )
        lines.append("")
        lines.append(
            f"Current Volume: {longer.current_volume:.3f} vs. "
            f"Average Volume: {longer.average_volume:.3f}"
        )
        lines.append("")
        if longer.macd_values:
            lines.append(f"MACD indicators: {_fmt_series(longer.macd_values)}")
            lines.append("")
        if longer.rsi14_values:
            lines.append(
                f"RSI indicators (14-Period): {_fmt_series(longer.rsi14_values)}"
            )
            lines.append("")

    return "\n".join(lines)
