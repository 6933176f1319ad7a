"""
LLM provider abstraction for the recipe importer and ingredient parser.

- AnthropicProvider: real Messages API calls
- NullLLMProvider: inert stand-in used when no API key is configured

Both importer paths that need a model (AI fallback extraction and AI
ingredient parsing) go through complete_json(), which asks for a strict
JSON object and returns it together with the token usage.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError, LLMError

logger = logging.getLogger(__name__)


@dataclass
class NullTextBlock:
    text: str
    type: str = "text"


@dataclass
class NullResponse:
    """Response shape returned by NullLLMProvider (mirrors the SDK's Message)."""
    content: List[Any] = field(default_factory=list)
    stop_reason: str = "end_turn"
    model: str = "null-llm"
    usage: Any = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        **kwargs
    ) -> Any:
        """Send one completion request and return the raw response."""

    @property
    @abstractmethod
    def is_null(self) -> bool:
        """True when no real model sits behind this provider."""


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    def __init__(self, api_key: str):
        from anthropic import Anthropic

        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY required for AnthropicProvider")
        self.client = Anthropic(api_key=api_key)

    def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        **kwargs
    ) -> Any:
        params = {"model": model, "max_tokens": max_tokens, "messages": messages}
        if system:
            params["system"] = system
        params.update(kwargs)
        return self.client.messages.create(**params)

    @property
    def is_null(self) -> bool:
        return False


class NullLLMProvider(LLMProvider):
    """
    Inert provider for running without an API key.

    It records call boundaries and returns a fixed non-JSON text block,
    so anything depending on a real answer fails loudly instead of
    pretending to work.
    """

    def __init__(self):
        self.call_count = 0
        self.last_messages = None
        logger.info("NullLLMProvider initialized - LLM calls will return canned responses")

    def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        **kwargs
    ) -> NullResponse:
        self.call_count += 1
        self.last_messages = messages
        logger.debug(f"NullLLM call #{self.call_count}: model={model}")
        return NullResponse(content=[NullTextBlock(text="[NullLLM: No real LLM call made]")])

    @property
    def is_null(self) -> bool:
        return True


def get_llm_provider(api_key: Optional[str] = None, use_null: bool = False) -> LLMProvider:
    """
    Get an LLM provider, falling back to NullLLMProvider without a key.

    Args:
        api_key: Anthropic API key (Settings.anthropic_api_key)
        use_null: Force NullLLMProvider (USE_NULL_LLM=true)
    """
    if use_null:
        return NullLLMProvider()
    if not api_key:
        logger.warning("No ANTHROPIC_API_KEY found, using NullLLMProvider")
        return NullLLMProvider()
    return AnthropicProvider(api_key=api_key)


def require_llm_provider(provider: Optional[LLMProvider]) -> LLMProvider:
    """Raise ConfigurationError unless a real provider is available."""
    if provider is None or provider.is_null:
        raise ConfigurationError(
            "ANTHROPIC_API_KEY required. "
            "Set environment variable or use USE_NULL_LLM=true for testing."
        )
    return provider


# =============================================================================
# JSON completions
# =============================================================================

def response_text(response: Any) -> str:
    """Concatenate the text blocks of a Messages API response."""
    parts = []
    for block in getattr(response, "content", None) or []:
        text = getattr(block, "text", None)
        if text:
            parts.append(text)
    return "".join(parts).strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a model answer that should be a single JSON object.

    Tolerates markdown code fences and leading/trailing prose around the
    object. Raises LLMError when no object can be decoded.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise LLMError(f"Model response was not JSON: {text[:200]!r}")
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise LLMError(f"Model response was not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LLMError("Model response JSON was not an object")
    return data


def extract_usage(response: Any) -> Optional[Dict[str, int]]:
    """Token usage in the camelCase shape the client expects, or None."""
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    prompt_tokens = getattr(usage, "input_tokens", 0) or 0
    completion_tokens = getattr(usage, "output_tokens", 0) or 0
    return {
        "promptTokens": prompt_tokens,
        "completionTokens": completion_tokens,
        "totalTokens": prompt_tokens + completion_tokens,
    }


def complete_json(
    provider: LLMProvider,
    model: str,
    prompt: str,
    system: Optional[str] = None,
    max_tokens: int = 2000,
    temperature: float = 0.3,
) -> Tuple[Dict[str, Any], Optional[Dict[str, int]]]:
    """
    Run one completion that must answer with a JSON object.

    Returns:
        (parsed object, usage dict or None)

    Raises:
        LLMError: request failed or the answer was not a JSON object
    """
    try:
        response = provider.create_message(
            model=model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
    except Exception as e:
        logger.error(f"LLM request failed: {e}")
        raise LLMError(f"LLM request failed: {e}") from e

    text = response_text(response)
    if not text:
        raise LLMError("Empty response from model")

    return parse_json_object(text), extract_usage(response)
