"""Unit tests for AIService and provider selection."""

from __future__ import annotations

from typing import Any

import pytest
from structlog.testing import capture_logs

from h5pforge_core.ai.providers import (
    ANTHROPIC_API_KEY_ENV,
    GOOGLE_API_KEY_ENV,
    AnthropicGenerator,
    GeminiGenerator,
    create_generator,
)
from h5pforge_core.ai.service import AIService, GenerationRequest, TextGenerator
from h5pforge_core.errors import AIGenerationFailure

REQUEST = GenerationRequest(system_prompt="system", user_prompt="Explain rain", purpose="ai-text")


class TestAIService:
    def test_response(self, static_generator: type) -> None:
        generator = static_generator("<p>Rain.</p>")
        service = AIService(generator)

        with capture_logs() as logs:
            response = service.generate(REQUEST)

        assert response.text == "<p>Rain.</p>"
        assert response.provider == "fake"
        assert response.elapsed_ms >= 0
        assert generator.calls == [("system", "Explain rain")]
        assert any(log["event"] == "ai_generation_completed" for log in logs)

    def test_provider_exception_is_wrapped(self, failing_generator: Any) -> None:
        with pytest.raises(AIGenerationFailure, match=r"AI generation failed \(broken\): invalid API key") as exc_info:
            AIService(failing_generator).generate(REQUEST)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_response(self, static_generator: type, text: str) -> None:
        with pytest.raises(AIGenerationFailure, match="empty response"):
            AIService(static_generator(text)).generate(REQUEST)

    def test_static_generator_satisfies_protocol(self, static_generator: type) -> None:
        assert isinstance(static_generator(), TextGenerator)

    def test_request_requires_user_prompt(self) -> None:
        with pytest.raises(ValueError):
            GenerationRequest(system_prompt="s", user_prompt="")


class TestCreateGenerator:
    @pytest.fixture(autouse=True)
    def no_keys(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(ANTHROPIC_API_KEY_ENV, raising=False)
        monkeypatch.delenv(GOOGLE_API_KEY_ENV, raising=False)

    def test_none(self) -> None:
        assert create_generator("none") is None

    def test_auto_without_keys(self) -> None:
        with capture_logs() as logs:
            assert create_generator("auto") is None
        assert logs[0]["event"] == "ai_provider_unavailable"

    @pytest.mark.parametrize(
        ("provider", "env"), [("claude", ANTHROPIC_API_KEY_ENV), ("gemini", GOOGLE_API_KEY_ENV)]
    )
    def test_explicit_provider_without_key(self, provider: str, env: str) -> None:
        with pytest.raises(AIGenerationFailure, match=f"{env} is not set"):
            create_generator(provider)  # type: ignore[arg-type]

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown AI provider"):
            create_generator("openai")  # type: ignore[arg-type]

    def test_auto_prefers_gemini(self, monkeypatch: pytest.MonkeyPatch) -> None:
        built: list[str] = []
        monkeypatch.setenv(GOOGLE_API_KEY_ENV, "g-key")
        monkeypatch.setenv(ANTHROPIC_API_KEY_ENV, "a-key")
        monkeypatch.setattr(GeminiGenerator, "__init__", lambda self: built.append("gemini"))
        monkeypatch.setattr(AnthropicGenerator, "__init__", lambda self: built.append("claude"))

        assert isinstance(create_generator("auto"), GeminiGenerator)
        assert built == ["gemini"]

    def test_auto_falls_back_to_claude(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ANTHROPIC_API_KEY_ENV, "a-key")
        monkeypatch.setattr(AnthropicGenerator, "__init__", lambda self: None)

        assert isinstance(create_generator("auto"), AnthropicGenerator)
