"""Content document models for h5pforge.

A document is either a book (``chapters``) or a single standalone content
item (``content``). These models only check structure; content-type rules
are checked by the handler registered for each item's ``type``.

Example book document::

    title: Photosynthesis
    language: en
    aiConfig:
      targetAudience: grade-6
    chapters:
      - title: Introduction
        content:
          - type: text
            title: Intro
            text: Plants turn light into food.
          - type: ai-quiz
            sourceText: Plants turn light into food.
            questionCount: 3
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
import yaml

from h5pforge_core.errors import DocumentError


class ReadingLevel(str, Enum):
    """Target audience presets for AI-generated content."""

    elementary = "elementary"
    grade_6 = "grade-6"
    grade_9 = "grade-9"
    high_school = "high-school"
    college = "college"
    professional = "professional"
    esl_beginner = "esl-beginner"
    esl_intermediate = "esl-intermediate"


class Tone(str, Enum):
    """Writing tone presets for AI-generated content."""

    educational = "educational"
    professional = "professional"
    casual = "casual"
    academic = "academic"


class OutputStyle(str, Enum):
    plain_html = "plain-html"
    rich_html = "rich-html"
    markdown = "markdown"


class AIConfig(BaseModel):
    """AI generation settings for one scope (document, chapter or item).

    Every field is optional; unset fields inherit from the enclosing scope.

    Attributes:
        target_audience: Reading level preset.
        tone: Writing tone preset.
        output_style: Output formatting style.
        customization: Free-text instructions appended to the prompt.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    target_audience: ReadingLevel | None = Field(
        default=None,
        alias="targetAudience",
        description="Reading level preset",
    )
    tone: Tone | None = Field(default=None, description="Writing tone preset")
    output_style: OutputStyle | None = Field(
        default=None,
        alias="outputStyle",
        description="Output formatting style",
    )
    customization: str | None = Field(
        default=None,
        max_length=4096,
        description="Additional instructions appended to the prompt",
    )


class ContentItem(BaseModel):
    """One declared content item.

    Only ``type`` is structural; every other key is kept as a raw field
    for the handler registered for that type.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = Field(..., min_length=1, description="Content type tag")

    @property
    def raw_fields(self) -> dict[str, Any]:
        """All fields of the item, including ``type``, as plain data."""
        return self.model_dump()


class ChapterSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    title: str = Field(..., min_length=1, description="Chapter title")
    content: list[ContentItem] = Field(default_factory=list, description="Items in order")
    ai_config: AIConfig | None = Field(default=None, alias="aiConfig")


class BookDocument(BaseModel):
    """Document compiled into an interactive book package.

    Attributes:
        title: Book title (also the package title).
        language: Content language code.
        description: Optional cover description.
        ai_config: Book-wide AI settings.
        chapters: Chapters in order (at least one).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    title: str = Field(..., min_length=1)
    language: str = Field(default="en", min_length=2, max_length=10)
    description: str | None = Field(default=None)
    ai_config: AIConfig | None = Field(default=None, alias="aiConfig")
    chapters: list[ChapterSpec] = Field(..., min_length=1)

    @property
    def kind(self) -> str:
        return "book"


class StandaloneDocument(BaseModel):
    """Document compiled into a package holding a single content item.

    The item's library becomes the package's main library and its params
    become ``content/content.json`` directly.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    title: str = Field(..., min_length=1)
    language: str = Field(default="en", min_length=2, max_length=10)
    description: str | None = Field(default=None)
    content: ContentItem
    ai_config: AIConfig | None = Field(default=None, alias="aiConfig")

    @property
    def kind(self) -> str:
        return "standalone"


Document = Union[BookDocument, StandaloneDocument]


def parse_document(data: Any, *, source: str | None = None) -> Document:
    """Validate already-parsed YAML data as a book or standalone document.

    Raises:
        DocumentError: If the data is not a mapping, has both or neither of
            ``chapters`` and ``content``, or fails schema validation.
    """
    if not isinstance(data, dict):
        raise DocumentError("Document must be a YAML mapping", file_path=source)

    has_chapters = "chapters" in data
    has_content = "content" in data
    if has_chapters and has_content:
        raise DocumentError(
            "Document cannot have both 'chapters' and 'content'. "
            "Use 'chapters' for a book or 'content' for standalone content",
            file_path=source,
        )
    if not has_chapters and not has_content:
        raise DocumentError(
            "Document must have either 'chapters' (book) or 'content' (standalone content)",
            file_path=source,
        )

    model: type[BookDocument] | type[StandaloneDocument] = (
        BookDocument if has_chapters else StandaloneDocument
    )
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise DocumentError(
            f"Document failed schema validation ({e.error_count()} error(s))",
            file_path=source,
        ) from e


def load_document(path: str | Path) -> Document:
    """Load a document from a YAML file.

    Args:
        path: Path to the YAML document.

    Returns:
        BookDocument or StandaloneDocument.

    Raises:
        DocumentError: If the file is missing, is not valid YAML, or is not
            a valid document.

    Example:
        >>> doc = load_document("photosynthesis.yaml")
        >>> doc.kind
        'book'
    """
    path = Path(path)
    if not path.is_file():
        raise DocumentError("Document file not found", file_path=str(path))

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DocumentError(
            f"Invalid YAML: {e}",
            file_path=str(path),
        ) from e

    return parse_document(data, source=str(path))
