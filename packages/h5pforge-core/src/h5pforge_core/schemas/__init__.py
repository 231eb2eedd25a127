"""Document schemas for h5pforge.

- BookDocument / ChapterSpec: interactive book documents
- StandaloneDocument: single content item documents
- ContentItem: one declared item (raw fields kept for its handler)
- AIConfig / ReadingLevel / Tone / OutputStyle: AI generation settings
"""

from __future__ import annotations

from h5pforge_core.schemas.document import (
    AIConfig,
    BookDocument,
    ChapterSpec,
    ContentItem,
    Document,
    OutputStyle,
    ReadingLevel,
    StandaloneDocument,
    Tone,
    load_document,
    parse_document,
)

__all__ = [
    "AIConfig",
    "BookDocument",
    "ChapterSpec",
    "ContentItem",
    "Document",
    "OutputStyle",
    "ReadingLevel",
    "StandaloneDocument",
    "Tone",
    "load_document",
    "parse_document",
]
