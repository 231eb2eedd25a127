"""Shared test fixtures for h5pforge-cli tests.

Provides CliRunner fixtures, a pre-populated library cache so compile
commands never touch the network, and a document writer.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
import io
import json
from pathlib import Path
import zipfile

from click.testing import CliRunner
import pytest
import structlog

from h5pforge_core.libraries import LibraryBundle, LibraryIdentifier, LibraryStore

# Libraries needed by a book of text and image items
BOOK_LIBRARIES: dict[str, tuple[str, ...]] = {
    "H5P.InteractiveBook 1.11": ("H5P.Column 1.18", "H5P.JoubelUI 1.3", "FontAwesome 4.5"),
    "H5P.Column 1.18": ("H5P.Row 1.0",),
    "H5P.Row 1.0": ("H5P.RowColumn 1.0",),
    "H5P.RowColumn 1.0": (),
    "H5P.JoubelUI 1.3": ("FontAwesome 4.5",),
    "FontAwesome 4.5": (),
    "H5P.AdvancedText 1.1": (),
    "H5P.Image 1.1": (),
}


def library_files(library: str, dependencies: Iterable[str] = ()) -> dict[str, bytes]:
    identifier = LibraryIdentifier.parse(library)
    manifest = {
        "title": identifier.machine_name,
        "machineName": identifier.machine_name,
        "majorVersion": identifier.major_version,
        "minorVersion": identifier.minor_version,
        "patchVersion": 0,
        "preloadedJs": [{"path": "dist/main.js"}],
        "preloadedDependencies": [
            {
                "machineName": dep.machine_name,
                "majorVersion": dep.major_version,
                "minorVersion": dep.minor_version,
            }
            for dep in map(LibraryIdentifier.parse, dependencies)
        ],
    }
    return {
        "library.json": json.dumps(manifest).encode(),
        "dist/main.js": f"/* {identifier.key} */".encode(),
    }


def h5p_archive(library: str) -> bytes:
    """A Hub-style ``.h5p`` holding one library directory."""
    identifier = LibraryIdentifier.parse(library)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("h5p.json", "{}")
        for path, data in library_files(library).items():
            zf.writestr(f"{identifier.key}/{path}", data)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def isolated_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Run every command in tmp_path with no H5PFORGE_* or AI key variables."""
    for name in ("CACHE_DIR", "HUB_URL", "AI_PROVIDER", "BASE_PATH", "BOOK_LIBRARY"):
        monkeypatch.delenv(f"H5PFORGE_{name}", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "content-type-cache"


@pytest.fixture
def populated_cache(cache_dir: Path) -> Path:
    """A cache directory holding every library in BOOK_LIBRARIES."""
    store = LibraryStore(cache_dir)
    for library, dependencies in BOOK_LIBRARIES.items():
        store.put(
            LibraryIdentifier.parse(library),
            LibraryBundle.from_files(library_files(library, dependencies)),
        )
    return cache_dir


@pytest.fixture
def write_document(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture writing a YAML document under ``tmp_path/docs``."""

    def _write(content: str, filename: str = "book.yaml") -> Path:
        path = tmp_path / "docs" / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def archive_for() -> Callable[[str], bytes]:
    return h5p_archive
