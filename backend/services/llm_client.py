"""
LLM Client
Thin async wrapper over the hosted model providers.

Supports Anthropic (default) and OpenAI, selected by ``settings.llm_provider``.
Callers send a system and user prompt and get back either plain text or a
parsed JSON object. Any transport or parse failure surfaces as ``LLMError``
so services can fall back to a fixed value.
"""

import json
import math
from typing import Any, Optional

import anthropic
import openai
import structlog

from backend.core.config import settings

logger = structlog.get_logger(__name__)


class LLMError(Exception):
    """Raised when the model call fails or returns unusable output."""


def estimate_tokens(text: str) -> int:
    """Rough token estimate at four characters per token."""
    return math.ceil(len(text) / 4)


def extract_json_object(response_text: str) -> dict[str, Any]:
    """
    Parse the first ``{...}`` block in a model response.

    Raises:
        LLMError: If no JSON object can be parsed
    """
    json_start = response_text.find("{")
    json_end = response_text.rfind("}") + 1
    if json_start == -1 or json_end <= json_start:
        raise LLMError("No JSON object in model response")

    try:
        data = json.loads(response_text[json_start:json_end])
    except json.JSONDecodeError as e:
        raise LLMError(f"Invalid JSON in model response: {e}") from e

    if not isinstance(data, dict):
        raise LLMError("Model response JSON is not an object")
    return data


class LLMClient:
    """Provider-agnostic completion client."""

    def __init__(self, provider: Optional[str] = None):
        """
        Raises:
            LLMError: No API key configured for the provider
            ValueError: Unknown provider name
        """
        self.provider = (provider or settings.llm_provider).lower()
        if self.provider == "openai" and not settings.openai_api_key:
            raise LLMError("OPENAI_API_KEY is not configured")
        if self.provider == "anthropic" and not settings.anthropic_api_key:
            raise LLMError("ANTHROPIC_API_KEY is not configured")

        if self.provider == "openai":
            self.model = settings.openai_model
            self._openai = openai.AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout_seconds,
            )
        elif self.provider == "anthropic":
            self.model = settings.llm_model
            self._anthropic = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.llm_timeout_seconds,
            )
        else:
            raise ValueError(f"Unsupported LLM provider: {self.provider}")

    async def complete_text(
        self,
        system: str,
        user: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Return the model's text reply."""
        max_tokens = max_tokens or settings.llm_max_tokens
        try:
            if self.provider == "openai":
                response = await self._openai.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
                text = response.choices[0].message.content or ""
            else:
                response = await self._anthropic.messages.create(
                    model=self.model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system,
                    messages=[{"role": "user", "content": user}],
                )
                text = response.content[0].text
        except (anthropic.APIError, openai.APIError) as e:
            logger.error("LLM request failed", provider=self.provider, error=str(e))
            raise LLMError(str(e)) from e

        logger.debug(
            "LLM completion",
            provider=self.provider,
            model=self.model,
            prompt_tokens=estimate_tokens(system) + estimate_tokens(user),
            response_tokens=estimate_tokens(text),
        )
        return text

    async def complete_json(
        self,
        system: str,
        user: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        """Return the model's reply parsed as a JSON object."""
        text = await self.complete_text(system, user, temperature=temperature, max_tokens=max_tokens)
        return extract_json_object(text)


_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the shared LLM client."""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
