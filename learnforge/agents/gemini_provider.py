"""
Gemini Reasoning Provider - Google Generative AI SDK.
"""

from __future__ import annotations

from typing import Optional

import google.generativeai as genai

try:
    from ..config import ModelConfig, config, token_tracker
    from .base import ReasoningProvider
except ImportError:
    from learnforge.config import ModelConfig, config, token_tracker
    from learnforge.agents.base import ReasoningProvider


class GeminiProvider(ReasoningProvider):
    """Reasoning Provider backed by a Gemini model."""

    name = "gemini"

    def __init__(self, model_config: Optional[ModelConfig] = None):
        super().__init__(model_config or config.model)
        genai.configure(api_key=self.model_config.gemini_api_key)

    def _complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        model = genai.GenerativeModel(
            self.model_config.gemini_model,
            system_instruction=system,
        )

        generation_config = {
            "temperature": temperature,
            "max_output_tokens": self.model_config.max_tokens,
        }
        if json_mode:
            generation_config["response_mime_type"] = "application/json"

        response = model.generate_content(
            prompt,
            generation_config=generation_config,
            request_options={"timeout": self.model_config.request_timeout},
        )

        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = getattr(usage, "prompt_token_count", None)
        output_tokens = getattr(usage, "candidates_token_count", None)
        if isinstance(prompt_tokens, int) and isinstance(output_tokens, int):
            token_tracker.add_tokens(prompt_tokens, output_tokens)

        return response.text
