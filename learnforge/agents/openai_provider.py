"""
OpenAI Reasoning Provider - chat completions via LangChain.
"""

from __future__ import annotations

from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

try:
    from ..config import ModelConfig, config, token_tracker
    from .base import ReasoningProvider
except ImportError:
    from learnforge.config import ModelConfig, config, token_tracker
    from learnforge.agents.base import ReasoningProvider


class OpenAIProvider(ReasoningProvider):
    """
    Reasoning Provider backed by an OpenAI chat model.

    One ChatOpenAI client is shared by every operation; temperature and
    JSON mode are passed per call.
    """

    name = "openai"

    def __init__(self, model_config: Optional[ModelConfig] = None):
        """
        Initialize provider.

        Args:
            model_config: Model configuration (defaults to the global config)
        """
        super().__init__(model_config or config.model)

        self.llm = ChatOpenAI(
            model=self.model_config.openai_model,
            api_key=self.model_config.openai_api_key or None,
            base_url=self.model_config.openai_base_url,
            max_tokens=self.model_config.max_tokens,
            timeout=self.model_config.request_timeout,
        )

    def _complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        messages = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        kwargs = {"temperature": temperature}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = self.llm.invoke(messages, **kwargs)

        usage = getattr(response, "usage_metadata", None)
        if isinstance(usage, dict):
            token_tracker.add_tokens(
                usage.get("input_tokens", 0), usage.get("output_tokens", 0)
            )

        return response.content
