"""
Completion client behind the scout agents.

Each agent call is one system + user message pair sent to OpenAI or
Anthropic, optionally constrained to a JSON object. Calls are never
retried; the agents treat any failure as "no output". Token usage and
estimated cost are accumulated per client for logging.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


# Pricing per 1M tokens
MODEL_PRICING = {
    # OpenAI
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    # Anthropic
    "claude-3-5-sonnet-20241022": {"input": 3.00, "output": 15.00},
    "claude-3-5-haiku-20241022": {"input": 0.80, "output": 4.00},
}

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-20241022",
}


@dataclass
class LLMResponse:
    """Response from LLM call."""

    content: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    model: str
    cost_usd: float
    raw_response: Any = None

    def parse_json(self) -> Optional[Dict]:
        """Parse content as a JSON object, handling markdown code blocks."""
        text = self.content.strip()
        if not text:
            return None

        # Remove markdown code blocks if present
        fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
        if fenced:
            text = fenced.group(1)

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            # Some models wrap the object in prose
            match = re.search(r"\{[\s\S]*\}", text)
            if not match:
                logger.warning(f"Failed to parse LLM response as JSON: {text[:200]}")
                return None
            try:
                parsed = json.loads(match.group())
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse LLM response as JSON: {e}")
                return None

        if not isinstance(parsed, dict):
            logger.warning(f"LLM response is JSON but not an object: {type(parsed).__name__}")
            return None
        return parsed


class LLMClient:
    """
    One provider, one key, per-call model and temperature overrides.

    Usage:
        client = LLMClient(provider="openai", api_key="sk-...")
        response = await client.complete("Extract contacts...", system_prompt="...", json_mode=True)
        data = response.parse_json()
    """

    def __init__(
        self,
        provider: str = "openai",
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.1,
    ):
        """
        Initialize LLM client.

        Args:
            provider: "openai" or "anthropic"
            api_key: API key for the provider
            model: Default model name (uses sensible defaults)
            max_tokens: Maximum tokens in response
            temperature: Default sampling temperature (0-1)
        """
        self.provider = provider.lower()
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.model = model or DEFAULT_MODELS.get(self.provider, DEFAULT_MODELS["openai"])

        self._client = None
        self._total_tokens_used = 0
        self._total_cost_usd = 0.0

    @property
    def is_available(self) -> bool:
        """Check if the selected provider can be called."""
        return self.provider in DEFAULT_MODELS and bool(self.api_key)

    def _get_client(self):
        """Get or create the provider SDK client."""
        if self._client is None:
            if self.provider == "openai":
                self._client = AsyncOpenAI(api_key=self.api_key)
            elif self.provider == "anthropic":
                self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    def _calculate_cost(
        self, model: str, input_tokens: int, output_tokens: int
    ) -> float:
        """Calculate cost in USD for token usage."""
        pricing = MODEL_PRICING.get(model, {"input": 0.0, "output": 0.0})
        return (
            input_tokens * pricing["input"] + output_tokens * pricing["output"]
        ) / 1_000_000

    def _request_kwargs(
        self,
        prompt: str,
        system_prompt: Optional[str],
        json_mode: bool,
        model: str,
        temperature: float,
    ) -> Dict[str, Any]:
        """
        Provider-specific request body.

        OpenAI takes the system prompt as a message and supports a JSON
        response format; Anthropic takes it as a top-level `system` field
        and relies on the prompt alone for JSON.
        """
        kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
        }
        if self.provider == "openai":
            messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
            messages.append({"role": "user", "content": prompt})
            kwargs["messages"] = messages
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
        else:
            kwargs["messages"] = [{"role": "user", "content": prompt}]
            if system_prompt:
                kwargs["system"] = system_prompt
        return kwargs

    async def _send(self, client, kwargs: Dict[str, Any]) -> Tuple[str, int, int, Any]:
        """Call the SDK and return (content, input tokens, output tokens, raw)."""
        if self.provider == "openai":
            response = await client.chat.completions.create(**kwargs)
            content = response.choices[0].message.content or ""
            usage = response.usage
            return (
                content,
                usage.prompt_tokens if usage else 0,
                usage.completion_tokens if usage else 0,
                response,
            )

        response = await client.messages.create(**kwargs)
        content = response.content[0].text if response.content else ""
        usage = response.usage
        return (
            content,
            usage.input_tokens if usage else 0,
            usage.output_tokens if usage else 0,
            response,
        )

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """
        Send one completion request. SDK errors are not retried.

        Args:
            prompt: User message
            system_prompt: Optional system instructions
            json_mode: Ask for a JSON object (enforced by OpenAI only)
            model: Per-call model override
            temperature: Per-call temperature override

        Returns:
            LLMResponse with content and usage stats

        Raises:
            ValueError: If the provider is unknown or has no key
        """
        if not self.is_available:
            raise ValueError(
                f"LLM provider '{self.provider}' not available. "
                f"Check that the API key is set."
            )

        model = model or self.model
        temperature = self.temperature if temperature is None else temperature
        kwargs = self._request_kwargs(prompt, system_prompt, json_mode, model, temperature)

        content, input_tokens, output_tokens, raw = await self._send(self._get_client(), kwargs)
        response = LLMResponse(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            model=model,
            cost_usd=self._calculate_cost(model, input_tokens, output_tokens),
            raw_response=raw,
        )

        self._total_tokens_used += response.total_tokens
        self._total_cost_usd += response.cost_usd
        logger.debug(
            f"[LLMClient] {self.provider}/{model}: {response.total_tokens} tokens, "
            f"${response.cost_usd:.5f}"
        )
        return response

    @property
    def total_tokens_used(self) -> int:
        return self._total_tokens_used

    @property
    def total_cost_usd(self) -> float:
        return self._total_cost_usd


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    settings=None,
) -> Optional[LLMClient]:
    """
    Get an LLM client using settings from config.

    Args:
        provider: Override provider (openai/anthropic)
        model: Override default model name
        settings: Settings instance (defaults to get_settings())

    Returns:
        LLMClient if API key available, None otherwise
    """
    from signal_scout.core.config import get_settings

    settings = settings or get_settings()

    if provider is None:
        provider = settings.llm_provider

    if provider is None:
        # Try OpenAI first, then Anthropic
        if settings.get_openai_api_key():
            provider = "openai"
        elif settings.get_anthropic_api_key():
            provider = "anthropic"
        else:
            logger.warning(
                "No LLM API key configured (OPENAI_API_KEY or ANTHROPIC_API_KEY)"
            )
            return None

    if provider == "openai":
        api_key = settings.get_openai_api_key()
    else:
        api_key = settings.get_anthropic_api_key()

    if not api_key:
        logger.warning(f"No API key configured for {provider}")
        return None

    if model is None and provider == "openai":
        model = settings.scout_agent_model

    return LLMClient(
        provider=provider,
        api_key=api_key,
        model=model,
        max_tokens=settings.scout_max_tokens,
    )
