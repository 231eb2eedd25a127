"""Book content tree construction.

An interactive book's ``content.json`` nests every fragment three levels
deep: each chapter is an ``H5P.Column`` whose items are ``H5P.Row``
instances holding one full-width ``H5P.RowColumn`` that holds the
fragment itself::

    chapters[i] = Column{content: [{content: Row{columns: [{width: 100,
                  content: RowColumn{content: [fragment]}}]}, useSeparator}]}
"""

from __future__ import annotations

import logging
from typing import Any

from h5pforge_core.handlers.fragments import fragment, stable_id

logger = logging.getLogger(__name__)

COLUMN_LIBRARY = "H5P.Column 1.18"
ROW_LIBRARY = "H5P.Row 1.0"
ROW_COLUMN_LIBRARY = "H5P.RowColumn 1.0"

BOOK_LAYOUT_LIBRARIES = (COLUMN_LIBRARY, ROW_LIBRARY, ROW_COLUMN_LIBRARY)


class ChapterBuilder:
    """Collects the rows of one chapter."""

    def __init__(self, book_title: str, index: int, title: str) -> None:
        self.book_title = book_title
        self.index = index
        self.title = title
        self.rows: list[dict[str, Any]] = []

    def add(self, content: dict[str, Any], *, node_path: str, position: int = 0) -> None:
        """Wrap a fragment in Row / RowColumn and append it to the chapter."""
        ident = (self.book_title, node_path, position)
        if "subContentId" not in content:
            content = {**content, "subContentId": stable_id(*ident, "fragment")}

        row_column = fragment(
            ROW_COLUMN_LIBRARY,
            {"content": [content]},
            content_type="Column",
            title="Untitled Column",
            subcontent_id=stable_id(*ident, "rowcolumn"),
        )
        row = fragment(
            ROW_LIBRARY,
            {"columns": [{"width": 100, "content": row_column}]},
            content_type="Row",
            title="Untitled Row",
            subcontent_id=stable_id(*ident, "row"),
        )
        self.rows.append({"content": row, "useSeparator": "auto"})

    def build(self) -> dict[str, Any]:
        return fragment(
            COLUMN_LIBRARY,
            {"content": self.rows},
            content_type="Column",
            title=self.title,
        )


class BookContentBuilder:
    """Builds the ``content.json`` tree of an interactive book.

    Example:
        >>> builder = BookContentBuilder("Photosynthesis")
        >>> chapter = builder.start_chapter("Introduction")
        >>> chapter.add(advanced_text("Intro", "Hello"), node_path="chapters[0].content[0]")
        >>> tree = builder.build()
        >>> len(tree["chapters"])
        1
    """

    def __init__(self, title: str, *, cover_description: str | None = None) -> None:
        self.title = title
        self.cover_description = cover_description or ""
        self.chapters: list[ChapterBuilder] = []

    def start_chapter(self, title: str) -> ChapterBuilder:
        chapter = ChapterBuilder(self.title, len(self.chapters), title)
        self.chapters.append(chapter)
        logger.debug("Started chapter %d: %s", chapter.index, title)
        return chapter

    def build(self) -> dict[str, Any]:
        return {
            "bookCover": {"coverDescription": self.cover_description},
            "chapters": [chapter.build() for chapter in self.chapters],
        }
