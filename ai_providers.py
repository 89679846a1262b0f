"""
AI Provider Interface

Oracle capabilities consumed by the generation pipeline, and the OpenAI /
Anthropic providers that back them. All providers include exponential backoff
with jitter for transient failures.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import asyncio
import json
import logging
import random

from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

from request_builder import SimulationRequest
from prompts import CODE_SYSTEM_PROMPT, SIMULATION_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

# ─── Retry Configuration ───────────────────────────────────────────

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0       # seconds
DEFAULT_MAX_DELAY = 30.0       # seconds
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_JITTER = 0.5           # ±50% jitter

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5"
DEFAULT_OPENAI_MODEL = "gpt-5.2"

# Exceptions worth retrying (transient / rate-limit)
_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 529}


class RemoteUnavailableError(RuntimeError):
    """An oracle could not be reached or returned a transport-level failure."""


def _is_retryable(exc: Exception) -> bool:
    """Return True if the exception is a transient failure worth retrying."""
    if getattr(exc, "status_code", None) in _RETRYABLE_STATUS_CODES:
        return True
    # Generic HTTP status via response attribute
    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) in _RETRYABLE_STATUS_CODES:
        return True
    # Connection-level errors
    err_name = type(exc).__name__.lower()
    if any(kw in err_name for kw in ("timeout", "connection", "overloaded", "ratelimit")):
        return True
    return False


async def _retry_with_backoff(
    fn,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    jitter: float = DEFAULT_JITTER,
):
    """
    Execute `fn` (an async callable returning a value) with exponential backoff.
    Retries only on transient / rate-limit errors.
    """
    last_exc: Optional[Exception] = None
    for attempt in range(max_retries + 1):
        try:
            return await fn()
        except Exception as exc:
            last_exc = exc
            if attempt >= max_retries or not _is_retryable(exc):
                raise
            delay = min(base_delay * (backoff_factor ** attempt), max_delay)
            delay *= 1.0 + random.uniform(-jitter, jitter)
            delay = max(0.1, delay)
            logger.warning(
                "API call failed (attempt %d/%d): %s, retrying in %.1fs",
                attempt + 1, max_retries + 1, exc, delay,
            )
            await asyncio.sleep(delay)
    raise last_exc  # type: ignore[misc]


def _schema_instruction(response_schema: Optional[Dict[str, Any]]) -> str:
    if not response_schema:
        return "Respond with valid JSON only."
    return (
        "Respond with valid JSON only, conforming exactly to this JSON schema:\n"
        f"{json.dumps(response_schema, indent=2)}"
    )


# ─── Oracle capabilities ───────────────────────────────────────────

class CodeOracle(ABC):
    """Turns a code-generation request into free-form reply text."""

    @abstractmethod
    async def generate_code(self, request: str) -> str:
        pass


class SimulationOracle(ABC):
    """Turns a simulation request into reply text that should be schema-shaped JSON."""

    @abstractmethod
    async def simulate_backtest(self, request: SimulationRequest) -> str:
        pass


# ─── Providers ─────────────────────────────────────────────────────

class AIProvider(ABC):
    """Abstract base class for AI providers"""

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> str:
        """Generate text completion"""
        pass

    @abstractmethod
    async def generate_json(
        self,
        user_prompt: str,
        *,
        system_prompt: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        """Generate a JSON reply, returned as raw text for the caller to parse."""
        pass


class OpenAIProvider(AIProvider):
    """OpenAI chat-completions provider"""

    def __init__(self, api_key: str, model: str = DEFAULT_OPENAI_MODEL):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> str:
        async def _call():
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
            return response.choices[0].message.content or ""

        return await _retry_with_backoff(_call)

    async def generate_json(
        self,
        user_prompt: str,
        *,
        system_prompt: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        """Uses structured outputs when a schema is given, JSON mode otherwise."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        if response_schema:
            response_format = {
                "type": "json_schema",
                "json_schema": {
                    "name": "structured_result",
                    "schema": response_schema,
                    "strict": True,
                },
            }
        else:
            response_format = {"type": "json_object"}

        async def _call():
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format=response_format,
            )
            return response.choices[0].message.content or ""

        return await _retry_with_backoff(_call)


class AnthropicProvider(AIProvider):
    """Anthropic Claude AI provider"""

    def __init__(self, api_key: str, model: str = DEFAULT_ANTHROPIC_MODEL, max_tokens: int = 8192):
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> str:
        async def _call():
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                temperature=0.7,
                messages=[
                    {"role": "user", "content": user_prompt}
                ]
            )
            return response.content[0].text

        return await _retry_with_backoff(_call)

    async def generate_json(
        self,
        user_prompt: str,
        *,
        system_prompt: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        """The schema travels in the (cached) system prompt."""
        instruction = _schema_instruction(response_schema)
        enhanced_system = f"{system_prompt}\n\n{instruction}" if system_prompt else instruction
        system_blocks = [
            {"type": "text", "text": enhanced_system, "cache_control": {"type": "ephemeral"}}
        ]

        async def _call():
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_blocks,
                messages=[{"role": "user", "content": user_prompt}],
            )
            return response.content[0].text

        return await _retry_with_backoff(_call)


class ProviderOracle(CodeOracle, SimulationOracle):
    """
    Binds both oracle capabilities to AI providers.

    Code and simulation may use different providers (e.g. a stronger model for
    code and a cheaper one for the estimate).
    """

    def __init__(self, code_provider: AIProvider, simulation_provider: Optional[AIProvider] = None):
        self.code_provider = code_provider
        self.simulation_provider = simulation_provider or code_provider

    async def generate_code(self, request: str) -> str:
        return await self.code_provider.generate(CODE_SYSTEM_PROMPT, request)

    async def simulate_backtest(self, request: SimulationRequest) -> str:
        return await self.simulation_provider.generate_json(
            request.prompt,
            system_prompt=SIMULATION_SYSTEM_PROMPT,
            response_schema=request.response_schema,
        )


def get_provider(api_key: str, model: Optional[str] = None, provider: str = "anthropic") -> AIProvider:
    """Factory function to get AI provider

    Args:
        api_key: API key for the provider
        model: Model name (optional, uses default for provider)
        provider: Provider name ('openai' or 'anthropic')
    """

    if provider.lower() == "anthropic":
        return AnthropicProvider(
            api_key=api_key,
            model=model or DEFAULT_ANTHROPIC_MODEL
        )
    elif provider.lower() == "openai":
        return OpenAIProvider(
            api_key=api_key,
            model=model or DEFAULT_OPENAI_MODEL
        )
    raise ValueError(f"Invalid provider: {provider}. Must be 'openai' or 'anthropic'")
