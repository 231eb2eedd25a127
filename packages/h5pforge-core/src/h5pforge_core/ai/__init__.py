"""AI-assisted content generation for h5pforge.

- prompts: reading level / tone presets and the config cascade
- service: TextGenerator protocol, AIService, request/response models
- quiz: question prompts and response parsing
- providers: Anthropic and Gemini adapters, create_generator()
"""

from __future__ import annotations

from h5pforge_core.ai.prompts import (
    ResolvedAIConfig,
    build_complete_prompt,
    build_system_prompt,
    build_user_prompt,
    resolve_config,
)
from h5pforge_core.ai.providers import AnthropicGenerator, GeminiGenerator, create_generator
from h5pforge_core.ai.quiz import (
    Difficulty,
    QuizQuestion,
    TrueFalseStatement,
    parse_quiz_response,
    parse_truefalse_response,
)
from h5pforge_core.ai.service import (
    AIService,
    GenerationRequest,
    GenerationResponse,
    TextGenerator,
)

__all__ = [
    "AIService",
    "AnthropicGenerator",
    "Difficulty",
    "GeminiGenerator",
    "GenerationRequest",
    "GenerationResponse",
    "QuizQuestion",
    "ResolvedAIConfig",
    "TextGenerator",
    "TrueFalseStatement",
    "build_complete_prompt",
    "build_system_prompt",
    "build_user_prompt",
    "create_generator",
    "parse_quiz_response",
    "parse_truefalse_response",
    "resolve_config",
]
