"""
Reasoning Provider backends.

This module contains the LLM-powered collaborators of the mastery engine:
- ReasoningProvider: the capability interface (extract, question, evaluate, summarize)
- OpenAIProvider: LangChain ChatOpenAI backend
- GeminiProvider: Google Generative AI backend
- create_provider: one-time backend selection from configuration

Note: the mastery state machine and concept graph live in learnforge.models
(pure logic, no LLM calls).
"""

from .base import ReasoningProvider, call_with_timeout
from .openai_provider import OpenAIProvider
from .gemini_provider import GeminiProvider
from .factory import create_provider

__all__ = [
    "ReasoningProvider",
    "call_with_timeout",
    "OpenAIProvider",
    "GeminiProvider",
    "create_provider",
]
