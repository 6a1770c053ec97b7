"""LLM adapter layer used for AI job-title generation."""

from worknow.adapters.llm.base import AbstractLLMClient
from worknow.adapters.llm.factory import create_llm_client
from worknow.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "create_llm_client",
]
