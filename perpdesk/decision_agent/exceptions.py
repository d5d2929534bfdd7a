"""Error taxonomy of the decision pipeline.

Every fatal error carries the oracle's rationale when one was available so
that an operator can see why a cycle produced no actionable decisions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .models import ProposedAction, Rejection


class DecisionEngineError(Exception):
    """Base class for decision pipeline failures."""

    def __init__(self, message: str, *, rationale: Optional[str] = None) -> None:
        super().__init__(message)
        self.rationale = rationale


class MarketDataFetchError(DecisionEngineError):
    """Market data for a single symbol could not be fetched (non-fatal)."""

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"failed to fetch market data for {symbol}: {reason}")
        self.symbol = symbol


class CandidatePoolError(DecisionEngineError):
    """Candidate pool or OI ranking could not be obtained."""


class OracleError(DecisionEngineError):
    """The oracle call failed or timed out; fatal to the cycle."""


class ExtractionError(DecisionEngineError):
    """The oracle reply did not contain a usable decision array."""


class NoStructuredDataError(ExtractionError):
    """The reply contains no `[` at all."""


class MalformedPayloadError(ExtractionError):
    """The bracketed payload could not be parsed into decisions."""

    def __init__(self, message: str, *, payload: str, rationale: str) -> None:
        super().__init__(message, rationale=rationale)
        self.payload = payload


class DecisionValidationError(DecisionEngineError):
    """A proposed action violated a risk constraint."""

    def __init__(
        self,
        index: int,
        rejection: "Rejection",
        *,
        actions: Optional[List["ProposedAction"]] = None,
        rationale: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"decision #{index + 1} validation failed "
            f"[{rejection.constraint}]: {rejection.detail}",
            rationale=rationale,
        )
        self.index = index
        self.rejection = rejection
        self.actions = list(actions or [])

    @property
    def constraint(self) -> str:
        return self.rejection.constraint
