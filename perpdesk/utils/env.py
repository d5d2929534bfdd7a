"""Environment flag helpers shared across PerpDesk modules."""

import os
from typing import Optional


def agent_debug_mode_enabled() -> bool:
    """Return whether agent debug mode is enabled via environment.

    Checks `AGENT_DEBUG_MODE`.
    """
    flag = os.getenv("AGENT_DEBUG_MODE", "false")
    return str(flag).lower() == "true"


def get_log_level(default: str = "INFO") -> str:
    """Return the configured log level (`PERPDESK_LOG_LEVEL`), upper-cased."""
    return os.getenv("PERPDESK_LOG_LEVEL", default).strip().upper() or default


def get_provider_api_key(provider: Optional[str]) -> Optional[str]:
    """Resolve the API key for a model provider from `<PROVIDER>_API_KEY`.

    Example: provider "openrouter" -> OPENROUTER_API_KEY.
    """
    if not provider:
        return None
    return os.getenv(f"{provider.strip().upper()}_API_KEY") or None
