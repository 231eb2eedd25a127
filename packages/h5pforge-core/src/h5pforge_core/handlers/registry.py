"""Content handler registry.

The registry is built once at startup (see ``default_registry()``) and
passed to the Compiler; handlers are not swapped while compiling.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from h5pforge_core.errors import DuplicateHandlerError
from h5pforge_core.handlers.base import ContentHandler

logger = structlog.get_logger(__name__)


class HandlerRegistry:
    """Maps content type tags to handlers.

    Example:
        >>> registry = HandlerRegistry([TextHandler(), ImageHandler()])
        >>> registry.lookup("text")
        TextHandler(content_type='text')
        >>> registry.lookup("quiz") is None
        True
    """

    def __init__(self, handlers: Iterable[ContentHandler] = ()) -> None:
        self._handlers: dict[str, ContentHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: ContentHandler) -> None:
        """Register a handler under its content type.

        Raises:
            DuplicateHandlerError: If the tag is already registered.
        """
        tag = handler.content_type
        if tag in self._handlers:
            raise DuplicateHandlerError(tag)
        self._handlers[tag] = handler
        logger.debug("handler_registered", content_type=tag, handler=type(handler).__name__)

    def lookup(self, tag: str) -> ContentHandler | None:
        return self._handlers.get(tag)

    def tags(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, tag: object) -> bool:
        return tag in self._handlers

    def __iter__(self) -> Iterator[ContentHandler]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)
