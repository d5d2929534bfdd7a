import ccxt.pro as ccxtpro

_KNOWN_QUOTES = ("USDT", "USDC", "USD")


def normalize_symbol(symbol: str) -> str:
    """Normalize symbol format for CCXT perpetual swaps.

    Examples:
        BTCUSDT -> BTC/USDT:USDT
        BTC-USDT -> BTC/USDT:USDT
        ETH/USDC -> ETH/USDC:USDC
        BTC/USDT:USDT -> BTC/USDT:USDT (unchanged)

    Args:
        symbol: Symbol in format 'BTCUSDT', 'BTC-USDT', 'BTC/USDT', etc.

    Returns:
        Normalized CCXT symbol
    """
    base_symbol = symbol.strip().upper().replace("-", "/")

    if "/" not in base_symbol:
        for quote in _KNOWN_QUOTES:
            if base_symbol.endswith(quote) and len(base_symbol) > len(quote):
                base_symbol = f"{base_symbol[: -len(quote)]}/{quote}"
                break

    if ":" not in base_symbol:
        parts = base_symbol.split("/")
        if len(parts) == 2:
            base_symbol = f"{parts[0]}/{parts[1]}:{parts[1]}"

    return base_symbol


def display_coin(symbol: str) -> str:
    """Coin name used in prompts, e.g. BTCUSDT -> BTC."""
    return symbol.replace("USDT", "", 1)


def get_exchange_cls(exchange_id: str):
    """Get CCXT exchange class by exchange ID."""

    exchange_cls = getattr(ccxtpro, exchange_id, None)
    if exchange_cls is None:
        raise RuntimeError(f"Exchange '{exchange_id}' not found in ccxt.pro")
    return exchange_cls
