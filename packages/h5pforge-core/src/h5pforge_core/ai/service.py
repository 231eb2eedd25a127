"""AI generation service for h5pforge.

The compiler talks to text generation through one request/response
exchange at a time:

    GenerationRequest -> AIService.generate() -> GenerationResponse

Provider adapters implement the TextGenerator protocol. Any provider
failure surfaces as AIGenerationFailure, which AI-capable handlers
always recover from.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
import structlog

from h5pforge_core.errors import AIGenerationFailure

logger = structlog.get_logger(__name__)


@runtime_checkable
class TextGenerator(Protocol):
    """A text generation backend."""

    name: str

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return the raw generated text for one prompt pair."""
        ...


class GenerationRequest(BaseModel):
    """One generation request.

    Attributes:
        system_prompt: Formatting, reading level and tone instructions.
        user_prompt: The author's content prompt.
        purpose: Short label for logging (e.g. ``ai-text``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    system_prompt: str
    user_prompt: str = Field(..., min_length=1)
    purpose: str = Field(default="text")


class GenerationResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str
    provider: str
    elapsed_ms: float = Field(..., ge=0)


class AIService:
    """Wraps a TextGenerator with failure normalization and logging.

    Example:
        >>> service = AIService(create_generator("auto"))
        >>> response = service.generate(
        ...     GenerationRequest(system_prompt=build_system_prompt(), user_prompt="Explain rain")
        ... )
    """

    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator
        self._log = logger.bind(component="ai_service", provider=generator.name)

    @property
    def provider(self) -> str:
        return self.generator.name

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run one generation.

        Raises:
            AIGenerationFailure: If the provider raises or returns empty text.
        """
        self._log.debug("ai_generation_started", purpose=request.purpose)
        start = time.perf_counter()
        try:
            text = self.generator.generate(request.system_prompt, request.user_prompt)
        except AIGenerationFailure:
            raise
        except Exception as e:
            # Provider SDKs raise their own exception types
            raise AIGenerationFailure(self.provider, str(e) or e.__class__.__name__) from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        if not text or not text.strip():
            raise AIGenerationFailure(self.provider, "empty response")

        self._log.info(
            "ai_generation_completed",
            purpose=request.purpose,
            chars=len(text),
            elapsed_ms=round(elapsed_ms, 1),
        )
        return GenerationResponse(text=text, provider=self.provider, elapsed_ms=elapsed_ms)
