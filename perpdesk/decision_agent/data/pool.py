from typing import Any, Dict, List, Optional, Sequence

import httpx
from loguru import logger

from ..exceptions import CandidatePoolError
from ..models import CandidateSource, CandidateSymbol, OIMomentumRecord, PoolConfig
from .interfaces import CandidatePool


def _unwrap_items(payload: Any, key: str) -> List[Dict]:
    """Return the item list of a ranking response.

    Accepts a bare JSON array, `{"data": [...]}` or `{"data": {key: [...]}}`.
    """
    if isinstance(payload, dict):
        if payload.get("success") is False:
            raise ValueError(payload.get("error") or "ranking request unsuccessful")
        payload = payload.get("data", payload)
        if isinstance(payload, dict):
            payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise ValueError(f"unexpected ranking payload type: {type(payload).__name__}")
    return [item for item in payload if isinstance(item, dict)]


def _item_symbol(item: Dict) -> Optional[str]:
    symbol = item.get("pair") or item.get("symbol")
    if not symbol:
        return None
    return str(symbol).strip().upper()


class HttpCandidatePool(CandidatePool):
    """Candidate pool backed by the score ranking and OI top HTTP endpoints.

    The score (AI500) ranking comes first; symbols that only appear in the
    OI top ranking are appended after it. A symbol listed by both carries
    both source tags. When the score ranking is unavailable the configured
    fallback symbols take its place.

    The OI top ranking fetched by `ranked_symbols` is kept and handed out by
    the next `oi_momentum` call, so the source tags and the momentum
    annotations of one cycle come from the same snapshot.
    """

    def __init__(
        self,
        config: Optional[PoolConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or PoolConfig()
        self._transport = transport
        self._pending_oi: Optional[List[OIMomentumRecord]] = None

    async def _get_json(self, url: str) -> Any:
        async with httpx.AsyncClient(
            timeout=self._config.timeout_s, transport=self._transport
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.json()

    async def _score_symbols(self) -> List[str]:
        url = self._config.ai500_url
        if not url:
            return list(self._config.fallback_symbols)
        try:
            items = _unwrap_items(await self._get_json(url), "coins")
        except Exception as exc:
            logger.warning(
                "Score ranking unavailable, using {} fallback symbols: {}",
                len(self._config.fallback_symbols),
                exc,
            )
            return list(self._config.fallback_symbols)
        symbols = [s for s in (_item_symbol(i) for i in items) if s]
        return symbols or list(self._config.fallback_symbols)

    async def ranked_symbols(self) -> List[CandidateSymbol]:
        score_symbols = await self._score_symbols()

        oi_symbols: List[str] = []
        self._pending_oi = None
        if self._config.oi_top_url:
            try:
                records = await self._fetch_oi_top()
            except CandidatePoolError as exc:
                logger.warning("OI top ranking unavailable: {}", exc)
            else:
                self._pending_oi = records
                oi_symbols = [r.symbol for r in records]

        merged: Dict[str, CandidateSymbol] = {}
        for symbol in score_symbols:
            merged.setdefault(symbol, CandidateSymbol(symbol=symbol))
            if CandidateSource.AI500 not in merged[symbol].sources:
                merged[symbol].sources.append(CandidateSource.AI500)
        for symbol in oi_symbols:
            merged.setdefault(symbol, CandidateSymbol(symbol=symbol))
            if CandidateSource.OI_TOP not in merged[symbol].sources:
                merged[symbol].sources.append(CandidateSource.OI_TOP)
        return list(merged.values())

    async def oi_momentum(self) -> List[OIMomentumRecord]:
        if self._pending_oi is not None:
            records, self._pending_oi = self._pending_oi, None
            return records
        return await self._fetch_oi_top()

    async def _fetch_oi_top(self) -> List[OIMomentumRecord]:
        url = self._config.oi_top_url
        if not url:
            raise CandidatePoolError("OI top endpoint is not configured")
        try:
            items = _unwrap_items(await self._get_json(url), "positions")
        except Exception as exc:
            raise CandidatePoolError(f"failed to fetch OI top ranking: {exc}") from exc

        records: List[OIMomentumRecord] = []
        for idx, item in enumerate(items):
            symbol = _item_symbol(item)
            if not symbol:
                continue
            try:
                records.append(
                    OIMomentumRecord(
                        symbol=symbol,
                        rank=int(item.get("rank") or idx + 1),
                        oi_delta_percent=float(item.get("oi_delta_percent") or 0.0),
                        oi_delta_value=float(item.get("oi_delta_value") or 0.0),
                        price_delta_percent=float(
                            item.get("price_delta_percent") or 0.0
                        ),
                        net_long=float(item.get("net_long") or 0.0),
                        net_short=float(item.get("net_short") or 0.0),
                    )
                )
            except (TypeError, ValueError):
                logger.warning("Skipping malformed OI top entry: {}", item)
        return records


class StaticCandidatePool(CandidatePool):
    """Fixed candidate list without OI momentum data."""

    def __init__(self, symbols: Sequence[str]) -> None:
        self._symbols = [s.strip().upper() for s in symbols if s and s.strip()]

    async def ranked_symbols(self) -> List[CandidateSymbol]:
        return [
            CandidateSymbol(symbol=s, sources=[CandidateSource.AI500])
            for s in self._symbols
        ]

    async def oi_momentum(self) -> List[OIMomentumRecord]:
        raise CandidatePoolError("static pool has no OI momentum data")
