from __future__ import annotations

from abc import ABC, abstractmethod

# Contracts for the decision oracle (module-local abstract interfaces).
# The oracle receives the policy text and the per-cycle state text and
# answers with free text ending in a JSON decision array.


class OracleClient(ABC):
    """Single round trip to the decision oracle.

    Input: policy (system) text and state (user) text
    Output: raw reply text
    """

    @abstractmethod
    async def submit(self, policy_text: str, state_text: str) -> str:
        """Send one request and return the raw reply text.

        Raises:
            OracleError: when the call fails, times out or returns no text
        """
        raise NotImplementedError
