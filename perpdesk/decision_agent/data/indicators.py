"""Technical indicator computation on OHLCV candles (pandas based)."""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from ..constants import BARS_PER_HOUR_3M, SERIES_TAIL
from ..models import IntradaySeries, LongerTermContext

OHLCV_COLUMNS = ["ts", "open", "high", "low", "close", "volume"]


def candles_to_frame(rows: Sequence[Sequence[float]]) -> pd.DataFrame:
    """Convert ccxt OHLCV rows `[ts, open, high, low, close, volume]` to a frame."""
    df = pd.DataFrame([list(r)[:6] for r in rows], columns=OHLCV_COLUMNS)
    df = df.dropna(subset=["close"]).astype(float)
    return df.reset_index(drop=True)


def ema(series: pd.Series, span: int) -> pd.Series:
    return series.ewm(span=span, adjust=False).mean()


def macd(close: pd.Series, fast: int = 12, slow: int = 26) -> pd.Series:
    return ema(close, fast) - ema(close, slow)


def rsi(close: pd.Series, period: int) -> pd.Series:
    """Wilder RSI. Flat windows (no gains, no losses) read as 50."""
    delta = close.diff()
    gain = delta.clip(lower=0).ewm(alpha=1 / period, adjust=False).mean()
    loss = (-delta.clip(upper=0)).ewm(alpha=1 / period, adjust=False).mean()
    rs = gain / loss
    out = 100 - (100 / (1 + rs))
    return out.fillna(50.0)


def atr(df: pd.DataFrame, period: int) -> pd.Series:
    prev_close = df["close"].shift(1)
    true_range = pd.concat(
        [
            df["high"] - df["low"],
            (df["high"] - prev_close).abs(),
            (df["low"] - prev_close).abs(),
        ],
        axis=1,
    ).max(axis=1)
    return true_range.ewm(alpha=1 / period, adjust=False).mean()


def pct_change(old: float, new: float) -> float:
    if not old:
        return 0.0
    return (new - old) / old * 100.0


def _tail(series: pd.Series, n: int = SERIES_TAIL) -> List[float]:
    return [float(v) for v in series.tail(n).tolist()]


def price_change_1h(intraday: pd.DataFrame) -> float:
    """Percent change over the last hour of 3m bars (0 if not enough bars)."""
    closes = intraday["close"]
    if len(closes) <= BARS_PER_HOUR_3M:
        return 0.0
    return pct_change(
        float(closes.iloc[-1 - BARS_PER_HOUR_3M]), float(closes.iloc[-1])
    )


def price_change_4h(longer: pd.DataFrame) -> float:
    """Percent change between the last two 4h closes (0 if not enough bars)."""
    closes = longer["close"]
    if len(closes) < 2:
        return 0.0
    return pct_change(float(closes.iloc[-2]), float(closes.iloc[-1]))


def build_intraday_series(intraday: pd.DataFrame) -> IntradaySeries:
    close = intraday["close"]
    mid = (intraday["high"] + intraday["low"]) / 2
    return IntradaySeries(
        mid_prices=_tail(mid),
        ema20_values=_tail(ema(close, 20)),
        macd_values=_tail(macd(close)),
        rsi7_values=_tail(rsi(close, 7)),
        rsi14_values=_tail(rsi(close, 14)),
    )


def build_longer_term_context(longer: pd.DataFrame) -> Optional[LongerTermContext]:
    if longer.empty:
        return None
    close = longer["close"]
    return LongerTermContext(
        ema20=float(ema(close, 20).iloc[-1]),
        ema50=float(ema(close, 50).iloc[-1]),
        atr3=float(atr(longer, 3).iloc[-1]),
        atr14=float(atr(longer, 14).iloc[-1]),
        current_volume=float(longer["volume"].iloc[-1]),
        average_volume=float(longer["volume"].mean()),
        macd_values=_tail(macd(close)),
        rsi14_values=_tail(rsi(close, 14)),
    )
