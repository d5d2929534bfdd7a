"""Model utility functions for creating agno model instances.

Providers are resolved by name and imported lazily so that only the SDK of
the provider actually in use has to be importable.
"""

from typing import Callable, Dict, Optional

from loguru import logger

DEFAULT_MODEL_IDS: Dict[str, str] = {
    "openrouter": "deepseek/deepseek-chat-v3.1",
    "openai": "gpt-4o-mini",
    "deepseek": "deepseek-chat",
    "google": "gemini-2.5-flash",
    "anthropic": "claude-sonnet-4-5",
}


def _openrouter(model_id: str, api_key: Optional[str], **kwargs):
    from agno.models.openrouter import OpenRouter

    return OpenRouter(id=model_id, api_key=api_key, **kwargs)


def _openai(model_id: str, api_key: Optional[str], **kwargs):
    from agno.models.openai import OpenAIChat

    return OpenAIChat(id=model_id, api_key=api_key, **kwargs)


def _deepseek(model_id: str, api_key: Optional[str], **kwargs):
    from agno.models.deepseek import DeepSeek

    return DeepSeek(id=model_id, api_key=api_key, **kwargs)


def _google(model_id: str, api_key: Optional[str], **kwargs):
    from agno.models.google import Gemini

    return Gemini(id=model_id, api_key=api_key, **kwargs)


def _anthropic(model_id: str, api_key: Optional[str], **kwargs):
    from agno.models.anthropic import Claude

    return Claude(id=model_id, api_key=api_key, **kwargs)


_PROVIDERS: Dict[str, Callable] = {
    "openrouter": _openrouter,
    "openai": _openai,
    "deepseek": _deepseek,
    "google": _google,
    "anthropic": _anthropic,
}


def supported_providers() -> list[str]:
    return sorted(_PROVIDERS)


def create_model_with_provider(
    provider: str,
    model_id: Optional[str] = None,
    api_key: Optional[str] = None,
    **kwargs,
):
    """Create a model from a specific provider.

    Args:
        provider: Provider name (e.g., "openrouter", "deepseek", "openai")
        model_id: Model identifier (uses the provider default if None)
        api_key: Provider API key
        **kwargs: Additional model parameters (temperature, max_tokens, ...)

    Raises:
        ValueError: If the provider is unknown
    """
    name = (provider or "").strip().lower()
    factory = _PROVIDERS.get(name)
    if factory is None:
        raise ValueError(
            f"Unknown model provider '{provider}'. Supported: {supported_providers()}"
        )
    resolved_id = model_id or DEFAULT_MODEL_IDS[name]
    logger.info("Creating {} model: {}", name, resolved_id)
    return factory(resolved_id, api_key, **kwargs)


def describe_model(model) -> str:
    """Return a short human readable `provider/id` description of a model."""
    model_id = getattr(model, "id", None) or "unknown"
    provider = getattr(model, "provider", None) or type(model).__name__
    return f"{provider}/{model_id}"
