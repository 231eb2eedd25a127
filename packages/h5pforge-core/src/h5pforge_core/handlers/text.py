"""Text handlers: authored text and AI-generated text."""

from __future__ import annotations

from typing import Any

from h5pforge_core.ai.prompts import build_system_prompt, build_user_prompt
from h5pforge_core.ai.service import GenerationRequest
from h5pforge_core.handlers.base import (
    AIContentHandler,
    ContentHandler,
    RawItem,
    ValidationResult,
    check_ai_config,
    check_string,
    first_failure,
)
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.fragments import ADVANCED_TEXT, advanced_text


class TextHandler(ContentHandler):
    """``type: text`` with ``text`` and optional ``title``.

    Paragraphs are separated by blank lines; the text is HTML-escaped.
    """

    content_type = "text"
    libraries = (ADVANCED_TEXT,)

    def validate(self, item: RawItem) -> ValidationResult:
        return first_failure(
            check_string(item, "text", label="Text content"),
            check_string(item, "title", label="Text content", required=False),
        )

    def process(self, context: HandlerContext, item: RawItem) -> None:
        context.add_fragment(advanced_text(item.get("title") or "", item["text"]))


class AITextHandler(AIContentHandler):
    """``type: ai-text`` with ``prompt`` and optional ``title`` / ``aiConfig``."""

    content_type = "ai-text"
    libraries = (ADVANCED_TEXT,)

    def validate(self, item: RawItem) -> ValidationResult:
        return first_failure(
            check_string(item, "prompt", label="AI text content"),
            check_string(item, "title", label="AI text content", required=False),
            check_ai_config(item, label="AI text content"),
        )

    def prompt_of(self, item: RawItem) -> str:
        return item["prompt"]

    def generate(self, context: HandlerContext, item: RawItem) -> list[dict[str, Any]]:
        assert context.ai_service is not None
        config = context.resolve_ai_config(self.item_ai_config(item))
        context.log.info(
            "ai_text_requested",
            reading_level=config.target_audience.value,
            tone=config.tone.value,
        )
        response = context.ai_service.generate(
            GenerationRequest(
                system_prompt=build_system_prompt(config),
                user_prompt=build_user_prompt(item["prompt"], config),
                purpose=self.content_type,
            )
        )
        title = item.get("title") or "AI-Generated Content"
        # Generated text is already HTML
        return [advanced_text(title, response.text, escape=False)]
