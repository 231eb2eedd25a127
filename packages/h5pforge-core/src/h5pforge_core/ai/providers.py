"""Provider adapters for the TextGenerator protocol.

The SDKs are optional (``pip install h5pforge[ai]``) and imported when a
generator is constructed.
"""

from __future__ import annotations

import os

import structlog

from h5pforge_core.ai.service import TextGenerator
from h5pforge_core.config import AIProviderName
from h5pforge_core.errors import AIGenerationFailure

logger = structlog.get_logger(__name__)

ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"
GOOGLE_API_KEY_ENV = "GOOGLE_API_KEY"

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-20250514"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class AnthropicGenerator:
    """Claude via the ``anthropic`` SDK."""

    name = "claude"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_CLAUDE_MODEL,
        max_tokens: int = 2048,
    ) -> None:
        key = api_key or os.environ.get(ANTHROPIC_API_KEY_ENV)
        if not key:
            raise AIGenerationFailure(self.name, f"{ANTHROPIC_API_KEY_ENV} is not set")
        try:
            import anthropic
        except ImportError as e:
            raise AIGenerationFailure(
                self.name, "the 'anthropic' package is not installed (pip install h5pforge[ai])"
            ) from e
        self.model = model
        self.max_tokens = max_tokens
        self._client = anthropic.Anthropic(api_key=key)

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        message = self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(block.text for block in message.content if block.type == "text")


class GeminiGenerator:
    """Gemini via the ``google-generativeai`` SDK."""

    name = "gemini"

    def __init__(self, api_key: str | None = None, *, model: str = DEFAULT_GEMINI_MODEL) -> None:
        key = api_key or os.environ.get(GOOGLE_API_KEY_ENV)
        if not key:
            raise AIGenerationFailure(self.name, f"{GOOGLE_API_KEY_ENV} is not set")
        try:
            import google.generativeai as genai
        except ImportError as e:
            raise AIGenerationFailure(
                self.name,
                "the 'google-generativeai' package is not installed (pip install h5pforge[ai])",
            ) from e
        genai.configure(api_key=key)
        self.model = model
        self._model = genai.GenerativeModel(model)

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        # Single-turn call; the system prompt is prepended
        prompt = f"{system_prompt}\n\n---\n\n{user_prompt}" if system_prompt else user_prompt
        response = self._model.generate_content(prompt)
        if not response.candidates:
            raise AIGenerationFailure(self.name, "response was blocked")
        return response.text


def create_generator(provider: AIProviderName = "auto") -> TextGenerator | None:
    """Build the generator for a provider name.

    ``auto`` prefers Gemini when ``GOOGLE_API_KEY`` is set, then Claude when
    ``ANTHROPIC_API_KEY`` is set, and otherwise returns None. ``none``
    always returns None (AI items compile to fallback text).

    Raises:
        AIGenerationFailure: If an explicitly requested provider cannot be built.
        ValueError: For an unknown provider name.
    """
    if provider == "none":
        return None
    if provider == "claude":
        return AnthropicGenerator()
    if provider == "gemini":
        return GeminiGenerator()
    if provider != "auto":
        raise ValueError(f"Unknown AI provider: {provider!r}")

    if os.environ.get(GOOGLE_API_KEY_ENV):
        return GeminiGenerator()
    if os.environ.get(ANTHROPIC_API_KEY_ENV):
        return AnthropicGenerator()
    logger.info("ai_provider_unavailable", reason="no API key configured")
    return None
