from typing import Dict, List, Optional

from loguru import logger

from ..constants import (
    DEFAULT_EXCHANGE_ID,
    INTRADAY_LOOKBACK,
    INTRADAY_TIMEFRAME,
    LONGER_TERM_LOOKBACK,
    LONGER_TERM_TIMEFRAME,
)
from ..exceptions import MarketDataFetchError
from ..models import MarketRecord, OpenInterest
from ..utils import get_exchange_cls, normalize_symbol
from . import indicators
from .interfaces import MarketSnapshotProvider


def build_market_record(
    symbol: str,
    intraday_rows: List[List],
    longer_rows: List[List],
    ticker: Optional[Dict] = None,
    open_interest: Optional[OpenInterest] = None,
    funding_rate: Optional[float] = None,
) -> MarketRecord:
    """Assemble a MarketRecord from raw ccxt payloads.

    `intraday_rows` and `longer_rows` are ccxt OHLCV rows
    (`[ts, open, high, low, close, volume]`). The intraday frame must not be
    empty; the ticker's `last` price wins over the last 3m close.
    """
    intraday = indicators.candles_to_frame(intraday_rows)
    if intraday.empty:
        raise ValueError("no intraday candles")
    longer = indicators.candles_to_frame(longer_rows)

    close = intraday["close"]
    last_price = (ticker or {}).get("last")
    current_price = float(last_price) if last_price else float(close.iloc[-1])

    return MarketRecord(
        symbol=symbol,
        current_price=current_price,
        price_change_1h=indicators.price_change_1h(intraday),
        price_change_4h=indicators.price_change_4h(longer) if not longer.empty else 0.0,
        current_ema20=float(indicators.ema(close, 20).iloc[-1]),
        current_macd=float(indicators.macd(close).iloc[-1]),
        current_rsi7=float(indicators.rsi(close, 7).iloc[-1]),
        open_interest=open_interest,
        funding_rate=funding_rate,
        intraday=indicators.build_intraday_series(intraday),
        longer_term=indicators.build_longer_term_context(longer),
    )


class CcxtMarketSnapshotProvider(MarketSnapshotProvider):
    """Builds per-symbol market records from a ccxt.pro exchange.

    Each `get` call opens its own exchange client so concurrent calls for
    distinct symbols never share connection state. Ticker and candles are
    required; open interest and funding rate are best-effort.
    """

    def __init__(
        self,
        exchange_id: Optional[str] = None,
        ccxt_options: Optional[Dict] = None,
    ) -> None:
        self._exchange_id = exchange_id or DEFAULT_EXCHANGE_ID
        self._ccxt_options = ccxt_options or {}

    async def get(self, symbol: str) -> MarketRecord:
        sym = normalize_symbol(symbol)
        exchange_cls = get_exchange_cls(self._exchange_id)
        exchange = exchange_cls({"newUpdates": False, **self._ccxt_options})
        try:
            try:
                ticker = await exchange.fetch_ticker(sym)
                intraday_rows = await exchange.fetch_ohlcv(
                    sym, timeframe=INTRADAY_TIMEFRAME, since=None, limit=INTRADAY_LOOKBACK
                )
                longer_rows = await exchange.fetch_ohlcv(
                    sym,
                    timeframe=LONGER_TERM_TIMEFRAME,
                    since=None,
                    limit=LONGER_TERM_LOOKBACK,
                )
            except Exception as exc:
                raise MarketDataFetchError(symbol, str(exc)) from exc

            open_interest = await self._fetch_open_interest(exchange, symbol, sym)
            funding_rate = await self._fetch_funding_rate(exchange, symbol, sym)

            try:
                return build_market_record(
                    symbol,
                    intraday_rows,
                    longer_rows,
                    ticker=ticker,
                    open_interest=open_interest,
                    funding_rate=funding_rate,
                )
            except Exception as exc:
                raise MarketDataFetchError(symbol, str(exc)) from exc
        finally:
            try:
                await exchange.close()
            except Exception:
                logger.exception(
                    "Failed to close exchange connection for {}", self._exchange_id
                )

    async def _fetch_open_interest(
        self, exchange, symbol: str, sym: str
    ) -> Optional[OpenInterest]:
        try:
            oi = await exchange.fetch_open_interest(sym)
        except Exception:
            logger.warning(
                "Failed to fetch open interest for {} at {}", symbol, self._exchange_id
            )
            return None

        latest = oi.get("openInterestAmount") or oi.get("baseVolume")
        if latest is None:
            return None
        latest = float(latest)
        average = latest

        # history is optional on most venues
        if exchange.has.get("fetchOpenInterestHistory"):
            try:
                history = await exchange.fetch_open_interest_history(
                    sym, timeframe="5m", limit=30
                )
                amounts = [
                    float(h["openInterestAmount"])
                    for h in history
                    if h.get("openInterestAmount") is not None
                ]
                if amounts:
                    average = sum(amounts) / len(amounts)
            except Exception:
                logger.debug(
                    "Open interest history unavailable for {} at {}",
                    symbol,
                    self._exchange_id,
                )
        return OpenInterest(latest=latest, average=average)

    async def _fetch_funding_rate(self, exchange, symbol: str, sym: str) -> Optional[float]:
        try:
            fr = await exchange.fetch_funding_rate(sym)
        except Exception:
            logger.warning(
                "Failed to fetch funding rate for {} at {}", symbol, self._exchange_id
            )
            return None
        rate = fr.get("fundingRate")
        return float(rate) if rate is not None else None
