"""Oracle prompts, reply extraction and risk validation."""

from .extractor import ResponseExtractor
from .interfaces import OracleClient
from .oracle import AgnoOracleClient
from .validator import validate_decision, validate_decisions

__all__ = [
    "OracleClient",
    "AgnoOracleClient",
    "ResponseExtractor",
    "validate_decision",
    "validate_decisions",
]
