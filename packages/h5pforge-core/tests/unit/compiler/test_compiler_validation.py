"""Unit tests for Compiler.validate: content is checked before anything is processed."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from h5pforge_core.compiler import Compiler
from h5pforge_core.config import CompilerSettings
from h5pforge_core.errors import UnknownContentTypeError, ValidationError
from h5pforge_core.schemas.document import parse_document


@pytest.fixture
def compiler(fake_source: Any, cache_dir: Path) -> Compiler:
    settings = CompilerSettings(cache_dir=cache_dir, ai_provider="none")
    return Compiler.from_settings(settings, source=fake_source)


def book(*chapters: list[dict[str, Any]]) -> Any:
    return parse_document(
        {
            "title": "Photosynthesis",
            "chapters": [
                {"title": f"Chapter {i}", "content": items} for i, items in enumerate(chapters)
            ],
        }
    )


def test_located_items_in_document_order(compiler: Compiler) -> None:
    document = book(
        [{"type": "text", "text": "a"}],
        [{"type": "ai-text", "prompt": "b"}, {"type": "video", "url": "https://youtu.be/x"}],
    )

    items = compiler.validate(document)

    assert [i.path for i in items] == [
        "chapters[0].content[0]",
        "chapters[1].content[0]",
        "chapters[1].content[1]",
    ]
    assert [i.chapter_index for i in items] == [0, 1, 1]
    assert [i.handler.content_type for i in items] == ["text", "ai-text", "video"]


def test_unknown_type(compiler: Compiler) -> None:
    document = book([{"type": "text", "text": "a"}, {"type": "quiz", "questions": []}])

    with pytest.raises(UnknownContentTypeError) as exc_info:
        compiler.validate(document)

    assert exc_info.value.type_tag == "quiz"
    assert exc_info.value.node_path == "chapters[0].content[1]"
    assert "ai-quiz" in str(exc_info.value)


def test_invalid_item_names_path_and_field(compiler: Compiler) -> None:
    document = book(
        [{"type": "text", "text": "a"}],
        [{"type": "truefalse", "question": "Q", "correct": "yes"}],
    )

    with pytest.raises(ValidationError) as exc_info:
        compiler.validate(document)

    assert exc_info.value.node_path == "chapters[1].content[0]"
    assert exc_info.value.field == "correct"


def test_invalid_item_stops_compile_before_any_work(
    compiler: Compiler, fake_source: Any, tmp_path: Path
) -> None:
    document = book(
        [{"type": "image", "path": "leaf.png", "alt": "Leaf"}],
        [{"type": "accordion", "panels": []}],
    )
    destination = tmp_path / "book.h5p"

    with pytest.raises(ValidationError):
        compiler.compile_to_file(document, destination, base_path=tmp_path / "no-media-here")

    assert sum(fake_source.fetches.values()) == 0
    assert not destination.exists()


def test_standalone_only_type_rejected_in_book(compiler: Compiler) -> None:
    document = book(
        [{"type": "crossword", "words": [{"clue": "a", "answer": "abc"}, {"clue": "b", "answer": "def"}]}]
    )
    with pytest.raises(ValidationError, match="only be compiled as standalone") as exc_info:
        compiler.validate(document)
    assert exc_info.value.field == "type"


def test_book_only_type_rejected_as_standalone(compiler: Compiler) -> None:
    document = parse_document(
        {"title": "Quiz", "content": {"type": "ai-quiz", "sourceText": "Plants..."}}
    )
    with pytest.raises(ValidationError, match="cannot be standalone") as exc_info:
        compiler.validate(document)
    assert exc_info.value.node_path == "content"
