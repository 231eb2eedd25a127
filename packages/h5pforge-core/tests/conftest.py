"""Shared pytest fixtures for h5pforge-core tests.

Provides an in-memory library source that serves Hub-style ``.h5p``
archives, builders for library files, and fake AI generators.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
import io
import json
from pathlib import Path
import sys
from typing import Any
import zipfile

import pytest
import structlog

from h5pforge_core.errors import FetchError
from h5pforge_core.libraries.models import LibraryIdentifier

LibraryFiles = dict[str, bytes]


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


def library_files(
    library: str,
    *,
    dependencies: Iterable[str] = (),
    editor_dependencies: Iterable[str] = (),
    js: Iterable[str] = (),
    title: str | None = None,
    patch: int = 0,
) -> LibraryFiles:
    """Return the files of a library directory (``library.json`` plus preloaded JS)."""
    identifier = LibraryIdentifier.parse(library)

    def entries(values: Iterable[str]) -> list[dict[str, Any]]:
        result = []
        for value in values:
            dep = LibraryIdentifier.parse(value)
            result.append(
                {
                    "machineName": dep.machine_name,
                    "majorVersion": dep.major_version,
                    "minorVersion": dep.minor_version,
                }
            )
        return result

    js_paths = list(js)
    manifest = {
        "title": title or identifier.machine_name,
        "machineName": identifier.machine_name,
        "majorVersion": identifier.major_version,
        "minorVersion": identifier.minor_version,
        "patchVersion": patch,
        "runnable": 1,
        "preloadedJs": [{"path": path} for path in js_paths],
        "preloadedDependencies": entries(dependencies),
        "editorDependencies": entries(editor_dependencies),
    }
    files: LibraryFiles = {"library.json": json.dumps(manifest).encode()}
    for path in js_paths:
        files[path] = f"/* {identifier.key} {path} */".encode()
    return files


def h5p_archive(libraries: dict[str, LibraryFiles]) -> bytes:
    """Build a Hub-style ``.h5p`` archive holding the given library directories."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("h5p.json", json.dumps({"title": "hub", "mainLibrary": "x"}))
        zf.writestr("content/content.json", "{}")
        for directory, files in libraries.items():
            for path, data in files.items():
                zf.writestr(f"{directory}/{path}", data)
    return buffer.getvalue()


class FakeLibrarySource:
    """In-memory stand-in for the H5P Hub.

    ``add`` registers a library; fetching it returns an archive holding
    that library plus any ``bundled`` helper libraries.
    """

    def __init__(self) -> None:
        self.archives: dict[str, bytes] = {}
        self.fetches: Counter[str] = Counter()

    def add(
        self,
        library: str,
        *,
        dependencies: Iterable[str] = (),
        editor_dependencies: Iterable[str] = (),
        bundled: dict[str, LibraryFiles] | None = None,
        js: Iterable[str] = ("scripts/main.js",),
    ) -> None:
        identifier = LibraryIdentifier.parse(library)
        directories = {
            identifier.key: library_files(
                library,
                dependencies=dependencies,
                editor_dependencies=editor_dependencies,
                js=js,
            )
        }
        directories.update(bundled or {})
        self.archives[identifier.key] = h5p_archive(directories)

    def add_raw(self, library: str, archive: bytes) -> None:
        self.archives[LibraryIdentifier.parse(library).key] = archive

    def fetch(self, identifier: LibraryIdentifier) -> bytes:
        self.fetches[identifier.key] += 1
        archive = self.archives.get(identifier.key)
        if archive is None:
            raise FetchError(identifier, "not available on the H5P Hub (HTTP 404)")
        return archive


# Every library a book using the built-in handlers can need
STANDARD_LIBRARIES: dict[str, tuple[str, ...]] = {
    "H5P.InteractiveBook 1.11": ("H5P.Column 1.18", "H5P.JoubelUI 1.3", "FontAwesome 4.5"),
    "H5P.Column 1.18": ("H5P.Row 1.0",),
    "H5P.Row 1.0": ("H5P.RowColumn 1.0",),
    "H5P.RowColumn 1.0": (),
    "H5P.JoubelUI 1.3": ("FontAwesome 4.5",),
    "FontAwesome 4.5": (),
    "H5P.AdvancedText 1.1": (),
    "H5P.Image 1.1": (),
    "H5P.Audio 1.5": ("FontAwesome 4.5",),
    "H5P.Video 1.6": (),
    "H5P.Accordion 1.0": ("FontAwesome 4.5",),
    "H5P.TrueFalse 1.8": ("H5P.Question 1.5", "H5P.JoubelUI 1.3", "FontAwesome 4.5"),
    "H5P.MultiChoice 1.16": ("H5P.Question 1.5", "H5P.JoubelUI 1.3", "FontAwesome 4.5"),
    "H5P.Question 1.5": ("H5P.JoubelUI 1.3",),
    "H5P.Crossword 0.5": ("H5P.Question 1.5", "H5P.JoubelUI 1.3"),
}


@pytest.fixture
def fake_source() -> FakeLibrarySource:
    """A FakeLibrarySource serving every standard library."""
    source = FakeLibrarySource()
    for library, dependencies in STANDARD_LIBRARIES.items():
        source.add(library, dependencies=dependencies)
    return source


@pytest.fixture
def empty_source() -> FakeLibrarySource:
    return FakeLibrarySource()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "content-type-cache"


@pytest.fixture
def make_library_files() -> Callable[..., LibraryFiles]:
    return library_files


@pytest.fixture
def make_h5p_archive() -> Callable[[dict[str, LibraryFiles]], bytes]:
    return h5p_archive


class StaticGenerator:
    """TextGenerator returning canned responses in order (the last one repeats)."""

    name = "fake"

    def __init__(self, *responses: str) -> None:
        self.responses = list(responses) or ["<p>Generated text.</p>"]
        self.calls: list[tuple[str, str]] = []

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        index = min(len(self.calls), len(self.responses)) - 1
        return self.responses[index]


class FailingGenerator:
    """TextGenerator that always raises, like an SDK with a bad API key."""

    name = "broken"

    def __init__(self, message: str = "invalid API key") -> None:
        self.message = message
        self.calls = 0

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        raise RuntimeError(self.message)


@pytest.fixture
def static_generator() -> type[StaticGenerator]:
    return StaticGenerator


@pytest.fixture
def failing_generator() -> FailingGenerator:
    return FailingGenerator()


QUIZ_RESPONSE = json.dumps(
    [
        {
            "question": "What gas do plants absorb?",
            "answers": [
                {"text": "Carbon dioxide", "correct": True},
                {"text": "Oxygen", "correct": False},
                {"text": "Nitrogen", "correct": False},
            ],
        },
        {
            "question": "Where does photosynthesis happen?",
            "answers": [
                {"text": "Chloroplasts", "correct": True},
                {"text": "Roots", "correct": False},
            ],
        },
    ]
)

TRUEFALSE_RESPONSE = json.dumps(
    [
        {"question": "<p>Plants produce oxygen.</p>", "correct": True},
        {"question": "Roots perform photosynthesis.", "correct": False},
        {"question": "Chlorophyll is green.", "correct": True},
    ]
)


@pytest.fixture
def quiz_response() -> str:
    return QUIZ_RESPONSE


@pytest.fixture
def truefalse_response() -> str:
    return TRUEFALSE_RESPONSE


# PNG signature plus padding; handlers never decode images
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
MP3_BYTES = b"ID3\x03\x00\x00\x00\x00\x00\x00" + b"\x00" * 16


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """A directory with two images and one audio file."""
    directory = tmp_path / "media"
    directory.mkdir()
    (directory / "leaf.png").write_bytes(PNG_BYTES)
    (directory / "sun.jpg").write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 24)
    (directory / "narration.mp3").write_bytes(MP3_BYTES)
    (directory / "empty.png").write_bytes(b"")
    return directory


@pytest.fixture
def make_context(media_dir: Path) -> Callable[..., Any]:
    """Factory for HandlerContext objects with media resolved from ``media_dir``."""
    from h5pforge_core.ai.service import AIService
    from h5pforge_core.handlers.context import HandlerContext
    from h5pforge_core.media import MediaCollector, MediaLoader

    def factory(
        *,
        generator: Any = None,
        node_path: str = "chapters[0].content[0]",
        ai_scopes: tuple[Any, ...] = (),
        media: MediaCollector | None = None,
    ) -> HandlerContext:
        return HandlerContext(
            node_path=node_path,
            package_title="Photosynthesis",
            media=media or MediaCollector(MediaLoader(media_dir)),
            ai_service=AIService(generator) if generator is not None else None,
            chapter_title="Introduction",
            ai_scopes=ai_scopes,
        )

    return factory
