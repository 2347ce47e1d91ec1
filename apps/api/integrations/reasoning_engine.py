"""
Reasoning Engine
================

Text-generation collaborator used by the SQL and context tiers.

    engine.generate(prompt, json_output=False) -> str

Every call from the pipeline goes through generate_with_timeout(), which
wraps it in asyncio.wait_for. Expiry raises EngineTimeoutError, a tier
error, so the orchestrator moves on to the next tier.

OpenAI errors are re-raised as EngineError with messages the online-error
summary recognises ("rate limit", "api key", "network").
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import openai
from openai import AsyncOpenAI

from config.env import AISettings
from utils.errors import EngineError, EngineTimeoutError

logger = logging.getLogger(__name__)


class ReasoningEngine(ABC):
    """Interface: one prompt in, generated text out."""

    @abstractmethod
    async def generate(self, prompt: str, json_output: bool = False) -> str:
        """Generated text; JSON object text when json_output is set."""
        pass


async def generate_with_timeout(
    engine: ReasoningEngine,
    prompt: str,
    json_output: bool = False,
    timeout_seconds: Optional[float] = None,
) -> str:
    """engine.generate() bounded by timeout_seconds (None or <= 0 = unbounded)."""
    if not timeout_seconds or timeout_seconds <= 0:
        return await engine.generate(prompt, json_output=json_output)
    try:
        return await asyncio.wait_for(
            engine.generate(prompt, json_output=json_output),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning(f"[Engine] Timeout after {timeout_seconds:g}s")
        raise EngineTimeoutError(timeout_seconds)


# =============================================================================
# OPENAI
# =============================================================================

_openai_client: Optional[AsyncOpenAI] = None


def get_openai_client(api_key: str) -> AsyncOpenAI:
    """Get or create the shared async OpenAI client."""
    global _openai_client
    if _openai_client is None:
        _openai_client = AsyncOpenAI(api_key=api_key)
    return _openai_client


class OpenAIReasoningEngine(ReasoningEngine):
    """Chat Completions backed engine."""

    def __init__(self, ai: AISettings, client: Optional[AsyncOpenAI] = None):
        self.model = ai.model
        self.temperature = ai.temperature
        self.reasoning_effort = (ai.reasoning_effort or "").strip().lower() or None
        self._api_key = ai.openai_api_key
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client(self._api_key)
        return self._client

    def _request_kwargs(self, prompt: str, json_output: bool) -> dict:
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.reasoning_effort:
            # Reasoning models reject a custom temperature
            kwargs["reasoning_effort"] = self.reasoning_effort
        else:
            kwargs["temperature"] = self.temperature
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    async def generate(self, prompt: str, json_output: bool = False) -> str:
        try:
            response = await self.client.chat.completions.create(
                **self._request_kwargs(prompt, json_output)
            )
        except openai.RateLimitError as e:
            raise EngineError(f"OpenAI rate limit: {e}") from e
        except openai.AuthenticationError as e:
            raise EngineError(f"Invalid API key: {e}") from e
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise EngineError(f"OpenAI network error: {e}") from e
        except openai.APIError as e:
            raise EngineError(f"OpenAI error: {e}") from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        return content.strip()
