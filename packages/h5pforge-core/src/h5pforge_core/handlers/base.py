"""Base classes for content handlers.

Every content type is handled by one ContentHandler exposing the same
capability set:

- validate(item): pure check of the item's raw fields
- process(context, item): emit fragments (and media) into the context
- required_libraries(): libraries the content type needs, static per type

AI-capable handlers derive from AIContentHandler, which turns every
AIGenerationFailure into a labeled fallback fragment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from pydantic import ValidationError as PydanticValidationError

from h5pforge_core.errors import AIGenerationFailure
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.fragments import ADVANCED_TEXT, advanced_text
from h5pforge_core.libraries.models import LibraryIdentifier
from h5pforge_core.schemas.document import AIConfig

RawItem = Mapping[str, Any]

FALLBACK_MARKER = "[AI content unavailable]"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a handler's validate().

    Attributes:
        valid: Whether the item can be processed.
        error: Reason naming the expected shape or range (when invalid).
        field: Offending field (dotted for nested fields, when invalid).
    """

    valid: bool
    error: str | None = None
    field: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def invalid(cls, error: str, field: str | None = None) -> ValidationResult:
        return cls(valid=False, error=error, field=field)


class ContentHandler(ABC):
    """Handler for one content type tag.

    Subclasses set ``content_type`` and ``libraries`` (``"Name M.m"``
    strings, primary library first).

    Attributes:
        content_type: Tag used in documents (``type: text``).
        libraries: Libraries this content type needs.
        embeddable: False for types that can only be a standalone package.
        standalone: False for types that cannot be a standalone package.
    """

    content_type: ClassVar[str]
    libraries: ClassVar[tuple[str, ...]]
    embeddable: ClassVar[bool] = True
    standalone: ClassVar[bool] = True

    @abstractmethod
    def validate(self, item: RawItem) -> ValidationResult:
        """Check an item's raw fields without side effects."""

    @abstractmethod
    def process(self, context: HandlerContext, item: RawItem) -> None:
        """Emit the item's fragment(s) into ``context``.

        Only called after validate() returned valid.
        """

    def required_libraries(self) -> list[LibraryIdentifier]:
        return [LibraryIdentifier.parse(library) for library in self.libraries]

    @property
    def primary_library(self) -> LibraryIdentifier:
        return LibraryIdentifier.parse(self.libraries[0])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(content_type={self.content_type!r})"


class AIContentHandler(ContentHandler):
    """Base for handlers whose content comes from the AI service.

    Subclasses implement generate(), which returns the finished fragments
    and may raise AIGenerationFailure, and prompt_of(), used in the
    fallback text. The fallback is an AdvancedText fragment, so that
    library is always part of required_libraries().
    """

    def required_libraries(self) -> list[LibraryIdentifier]:
        identifiers = super().required_libraries()
        fallback = LibraryIdentifier.parse(ADVANCED_TEXT)
        if all(i.key != fallback.key for i in identifiers):
            identifiers.append(fallback)
        return identifiers

    @abstractmethod
    def generate(self, context: HandlerContext, item: RawItem) -> list[dict[str, Any]]:
        """Produce fragments from AI output.

        Raises:
            AIGenerationFailure: If generation fails or the output is unusable.
        """

    @abstractmethod
    def prompt_of(self, item: RawItem) -> str:
        """The author-provided prompt or source text of an item."""

    def process(self, context: HandlerContext, item: RawItem) -> None:
        if context.ai_service is None:
            self._fall_back(context, item, "no AI provider configured")
            return
        try:
            fragments = self.generate(context, item)
        except AIGenerationFailure as e:
            self._fall_back(context, item, e.reason)
            return
        for fragment in fragments:
            context.add_fragment(fragment)

    def fallback(self, item: RawItem, reason: str) -> dict[str, Any]:
        title = item.get("title") or "AI-Generated Content"
        body = (
            f"{FALLBACK_MARKER} This content could not be generated ({reason}). "
            "Check the AI provider configuration and compile again.\n\n"
            f"Prompt was: {self.prompt_of(item)}"
        )
        return advanced_text(title, body)

    def _fall_back(self, context: HandlerContext, item: RawItem, reason: str) -> None:
        context.record_fallback(reason)
        context.add_fragment(self.fallback(item, reason))

    @staticmethod
    def item_ai_config(item: RawItem) -> AIConfig | None:
        raw = item.get("aiConfig")
        if raw is None:
            return None
        return AIConfig.model_validate(raw)


# Field checks shared by handler validate() implementations


def check_string(item: RawItem, field: str, *, label: str, required: bool = True) -> ValidationResult:
    value = item.get(field)
    if value is None:
        if required:
            return ValidationResult.invalid(
                f"{label} must have a '{field}' field (non-empty string)", field
            )
        return ValidationResult.ok()
    if not isinstance(value, str):
        return ValidationResult.invalid(
            f"{label} '{field}' must be a string, got {type(value).__name__}", field
        )
    if required and not value.strip():
        return ValidationResult.invalid(f"{label} '{field}' cannot be empty", field)
    return ValidationResult.ok()


def check_int_range(
    item: RawItem, field: str, *, label: str, minimum: int, maximum: int
) -> ValidationResult:
    value = item.get(field)
    if value is None:
        return ValidationResult.ok()
    if isinstance(value, bool) or not isinstance(value, int) or not minimum <= value <= maximum:
        return ValidationResult.invalid(
            f"{label} '{field}' must be an integer between {minimum} and {maximum}", field
        )
    return ValidationResult.ok()


def check_ai_config(item: RawItem, *, label: str) -> ValidationResult:
    raw = item.get("aiConfig")
    if raw is None:
        return ValidationResult.ok()
    if not isinstance(raw, Mapping):
        return ValidationResult.invalid(f"{label} 'aiConfig' must be a mapping", "aiConfig")
    try:
        AIConfig.model_validate(raw)
    except PydanticValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        return ValidationResult.invalid(
            f"{label} aiConfig.{location}: {error['msg']}", f"aiConfig.{location}"
        )
    return ValidationResult.ok()


def first_failure(*results: ValidationResult) -> ValidationResult:
    for result in results:
        if not result.valid:
            return result
    return ValidationResult.ok()
