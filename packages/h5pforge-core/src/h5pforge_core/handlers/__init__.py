"""Content handlers for h5pforge.

Built-in content types:

| Tag          | Library               | Notes                          |
|--------------|-----------------------|--------------------------------|
| text         | H5P.AdvancedText 1.1  |                                |
| ai-text      | H5P.AdvancedText 1.1  | AI generated                   |
| image        | H5P.Image 1.1         | packaged under images/         |
| audio        | H5P.Audio 1.5         | packaged under audios/         |
| video        | H5P.Video 1.6         | YouTube only                   |
| accordion    | H5P.Accordion 1.0     |                                |
| truefalse    | H5P.TrueFalse 1.8     |                                |
| crossword    | H5P.Crossword 0.5     | standalone only                |
| ai-quiz      | H5P.MultiChoice 1.16  | AI generated, book only        |
| ai-truefalse | H5P.TrueFalse 1.8     | AI generated, book only        |
"""

from __future__ import annotations

from h5pforge_core.handlers.ai_questions import AIQuizHandler, AITrueFalseHandler
from h5pforge_core.handlers.base import (
    AIContentHandler,
    ContentHandler,
    ValidationResult,
)
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.media import AudioHandler, ImageHandler, VideoHandler
from h5pforge_core.handlers.questions import AccordionHandler, CrosswordHandler, TrueFalseHandler
from h5pforge_core.handlers.registry import HandlerRegistry
from h5pforge_core.handlers.text import AITextHandler, TextHandler


def default_registry() -> HandlerRegistry:
    """Build a registry with every built-in handler."""
    return HandlerRegistry(
        [
            TextHandler(),
            AITextHandler(),
            ImageHandler(),
            AudioHandler(),
            VideoHandler(),
            AccordionHandler(),
            TrueFalseHandler(),
            CrosswordHandler(),
            AIQuizHandler(),
            AITrueFalseHandler(),
        ]
    )


__all__ = [
    "AIContentHandler",
    "AIQuizHandler",
    "AITextHandler",
    "AITrueFalseHandler",
    "AccordionHandler",
    "AudioHandler",
    "ContentHandler",
    "CrosswordHandler",
    "HandlerContext",
    "HandlerRegistry",
    "ImageHandler",
    "TextHandler",
    "TrueFalseHandler",
    "ValidationResult",
    "VideoHandler",
    "default_registry",
]
