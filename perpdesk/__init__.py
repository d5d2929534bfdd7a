"""PerpDesk - LLM-driven decision agent for crypto perpetual futures."""

__version__ = "0.1.0"
__author__ = "PerpDesk Team"
__description__ = "LLM-driven decision agent for crypto perpetual futures"

__all__ = [
    "__version__",
    "__author__",
    "__description__",
]

import os
from pathlib import Path

from dotenv import load_dotenv


def load_env_file_early() -> None:
    """Load environment variables from the project `.env` file at import time.

    Existing environment variables take precedence (override=False). Set
    PERPDESK_DEBUG=true to print where the file was looked up.
    """
    env_file = Path(__file__).parent.parent / ".env"
    debug = os.getenv("PERPDESK_DEBUG", "false").lower() == "true"

    if env_file.exists():
        load_dotenv(env_file, override=False)
        if debug:
            print(f"Environment variables loaded from {env_file}")
    elif debug:
        print(f"No .env file found at {env_file}")


load_env_file_early()
