"""
Text-completion service used by the scout's extraction agents.

Key Components:
- llm_client: Unified async client for OpenAI/Anthropic with JSON parsing
"""

from signal_scout.agentic.llm_client import LLMClient, get_llm_client, LLMResponse

__all__ = [
    "LLMClient",
    "get_llm_client",
    "LLMResponse",
]
