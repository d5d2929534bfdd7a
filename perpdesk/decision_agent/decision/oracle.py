from __future__ import annotations

import asyncio
from typing import Optional

from agno.agent import Agent as AgnoAgent
from loguru import logger

from perpdesk.utils import env as env_utils
from perpdesk.utils import model as model_utils

from ..exceptions import OracleError
from ..models import LLMModelConfig
from .interfaces import OracleClient


class AgnoOracleClient(OracleClient):
    """Oracle backed by an agno Agent.

    A fresh agent is created per call with the policy text as its system
    message, so no conversation state leaks between cycles.
    """

    def __init__(self, model, *, timeout_s: Optional[float] = None) -> None:
        self._model = model
        self._timeout_s = timeout_s

    @classmethod
    def from_config(
        cls, llm_config: LLMModelConfig, *, timeout_s: Optional[float] = None
    ) -> "AgnoOracleClient":
        model = model_utils.create_model_with_provider(
            provider=llm_config.provider,
            model_id=llm_config.model_id,
            api_key=llm_config.api_key,
        )
        return cls(model, timeout_s=timeout_s)

    async def submit(self, policy_text: str, state_text: str) -> str:
        agent = AgnoAgent(
            model=self._model,
            system_message=policy_text,
            markdown=False,
            debug_mode=env_utils.agent_debug_mode_enabled(),
        )
        try:
            if self._timeout_s is not None:
                response = await asyncio.wait_for(
                    agent.arun(state_text), timeout=self._timeout_s
                )
            else:
                response = await agent.arun(state_text)
        except asyncio.TimeoutError as exc:
            raise OracleError(
                f"oracle call timed out after {self._timeout_s}s"
            ) from exc
        except Exception as exc:
            logger.exception(
                "Oracle call failed for {}", model_utils.describe_model(self._model)
            )
            raise OracleError(f"oracle call failed: {exc}") from exc

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise OracleError("oracle returned an empty reply")
        logger.debug("Oracle reply received ({} chars)", len(content))
        return content
