"""
Backend selection for the Reasoning Provider.

The host resolves the backend once from its configuration; core logic only
ever sees the ReasoningProvider interface.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

try:
    from ..config import PROVIDER_OPENAI, ModelConfig, config
    from .base import ReasoningProvider
except ImportError:
    from learnforge.config import PROVIDER_OPENAI, ModelConfig, config
    from learnforge.agents.base import ReasoningProvider


def create_provider(model_config: Optional[ModelConfig] = None) -> ReasoningProvider:
    """
    Build the configured Reasoning Provider.

    Args:
        model_config: Model configuration (defaults to the global config)

    Returns:
        OpenAIProvider or GeminiProvider
    """
    model_config = model_config or config.model
    selected = model_config.resolve_provider()

    logger.info(
        f"AI provider: {selected.upper()} "
        f"(openai key: {'yes' if model_config.has_openai else 'no'}, "
        f"gemini key: {'yes' if model_config.has_gemini else 'no'})"
    )

    if selected == PROVIDER_OPENAI:
        from .openai_provider import OpenAIProvider

        return OpenAIProvider(model_config)

    if not model_config.has_gemini:
        logger.warning("No Gemini API key - provider calls will fail and fall back")

    from .gemini_provider import GeminiProvider

    return GeminiProvider(model_config)
