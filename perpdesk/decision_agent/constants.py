"""Default constants used across the decision_agent package.

Centralizes defaults so they can be imported from one place.
"""

DEFAULT_MODEL_PROVIDER = "openrouter"
DEFAULT_AGENT_MODEL = "deepseek/deepseek-chat-v3.1"
DEFAULT_EXCHANGE_ID = "binance"

# Leverage ceilings (configurable per engine)
DEFAULT_MAJOR_LEVERAGE = 5
DEFAULT_ALTCOIN_LEVERAGE = 5

# Risk policy bands
MAJOR_PAIRS = ("BTCUSDT", "ETHUSDT")
MAJOR_NOTIONAL_MULTIPLIER = 10.0
ALTCOIN_NOTIONAL_MULTIPLIER = 1.5
NOTIONAL_TOLERANCE = 0.01
MIN_RISK_REWARD_RATIO = 3.0
ASSUMED_ENTRY_FRACTION = 0.2
MIN_INVALIDATION_LENGTH = 10

# Liquidity filter: open interest value (OI x price) floor in USD
DEFAULT_LIQUIDITY_FLOOR_USD = 15_000_000.0

# Market data windows
INTRADAY_TIMEFRAME = "3m"
INTRADAY_LOOKBACK = 40
LONGER_TERM_TIMEFRAME = "4h"
LONGER_TERM_LOOKBACK = 60
SERIES_TAIL = 10
BARS_PER_HOUR_3M = 20

# Candidate pool
DEFAULT_POOL_TIMEOUT_S = 30.0
DEFAULT_FALLBACK_SYMBOLS = (
    "BTCUSDT",
    "ETHUSDT",
    "SOLUSDT",
    "BNBUSDT",
    "XRPUSDT",
    "DOGEUSDT",
    "ADAUSDT",
    "HYPEUSDT",
)
