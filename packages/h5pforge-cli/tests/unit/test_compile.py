"""Tests for the h5pforge compile command."""

from __future__ import annotations

from collections.abc import Callable
import json
from pathlib import Path
import zipfile

from click.testing import CliRunner
import pytest

from h5pforge_cli.main import cli
from h5pforge_core.errors import FetchError
from h5pforge_core.libraries import HubLibrarySource, LibraryIdentifier

TEXT_BOOK = """\
title: Greetings
chapters:
  - title: One
    content:
      - type: text
        text: Hello
"""


def compile_args(document: Path, output: Path, cache_dir: Path) -> list[str]:
    return ["compile", str(document), str(output), "--cache-dir", str(cache_dir), "--ai-provider", "none"]


@pytest.fixture
def offline(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Fail any Hub download, recording what was requested."""
    requested: list[str] = []

    def fetch(self: HubLibrarySource, identifier: LibraryIdentifier) -> bytes:
        requested.append(identifier.key)
        raise FetchError(identifier, "HTTP 503")

    monkeypatch.setattr(HubLibrarySource, "fetch", fetch)
    return requested


class TestCompileSuccess:
    def test_book(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
        offline: list[str],
    ) -> None:
        output = tmp_path / "out" / "greetings.h5p"
        result = cli_runner.invoke(cli, compile_args(write_document(TEXT_BOOK), output, populated_cache))

        assert result.exit_code == 0, result.output
        assert f"Compiled {output}" in result.output
        assert "book: 1 item(s), 7 libraries, 0 media file(s)" in result.output
        assert offline == []
        with zipfile.ZipFile(output) as zf:
            assert json.loads(zf.read("h5p.json"))["mainLibrary"] == "H5P.InteractiveBook"

    def test_media_relative_to_document(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
        offline: list[str],
    ) -> None:
        document = write_document(
            "title: Garden\n"
            "chapters:\n"
            "  - title: One\n"
            "    content:\n"
            "      - type: image\n"
            "        path: pictures/leaf.png\n"
            "        alt: A leaf\n"
        )
        (document.parent / "pictures").mkdir()
        (document.parent / "pictures" / "leaf.png").write_bytes(b"\x89PNG\r\n\x1a\nfake")
        output = tmp_path / "garden.h5p"

        result = cli_runner.invoke(cli, compile_args(document, output, populated_cache))

        assert result.exit_code == 0, result.output
        assert "1 media file(s)" in result.output
        with zipfile.ZipFile(output) as zf:
            assert zf.read("content/images/0.png") == b"\x89PNG\r\n\x1a\nfake"

    def test_ai_fallback_warning(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
    ) -> None:
        document = write_document(
            "title: Weather\n"
            "chapters:\n"
            "  - title: Rain\n"
            "    content:\n"
            "      - type: ai-text\n"
            "        prompt: Explain rain\n"
        )
        result = cli_runner.invoke(cli, compile_args(document, tmp_path / "w.h5p", populated_cache))

        assert result.exit_code == 0, result.output
        assert "1 AI item(s) could not be generated" in result.output
        assert "ai_fallback_used" in result.output

    @pytest.mark.parametrize("provider", ["claude", "gemini"])
    def test_unavailable_provider_does_not_stop_compile(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
        offline: list[str],
        provider: str,
    ) -> None:
        """No API key for the requested provider: text-only books still compile."""
        output = tmp_path / "greetings.h5p"
        args = [
            "compile",
            str(write_document(TEXT_BOOK)),
            str(output),
            "--cache-dir",
            str(populated_cache),
            "--ai-provider",
            provider,
        ]
        result = cli_runner.invoke(cli, args)

        assert result.exit_code == 0, result.output
        assert output.is_file()
        assert "ai_provider_unavailable" in result.output
        assert "could not be generated" not in result.output


class TestCompileErrors:
    def test_invalid_content_exits_1(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
    ) -> None:
        document = write_document(
            "title: Quiz\n"
            "chapters:\n"
            "  - title: One\n"
            "    content:\n"
            "      - type: truefalse\n"
            "        question: Leaves are green\n"
            "        correct: maybe\n"
        )
        output = tmp_path / "quiz.h5p"

        result = cli_runner.invoke(cli, compile_args(document, output, populated_cache))

        assert result.exit_code == 1
        assert "ValidationError" in result.output
        assert "chapters[0].content[0]" in result.output
        assert not output.exists()

    def test_unknown_type_exits_1(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
    ) -> None:
        document = write_document(TEXT_BOOK.replace("type: text", "type: quiz"))
        result = cli_runner.invoke(cli, compile_args(document, tmp_path / "q.h5p", populated_cache))
        assert result.exit_code == 1
        assert "UnknownContentTypeError: Unknown content type 'quiz'" in result.output

    def test_schema_errors_are_listed(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
    ) -> None:
        document = write_document("title: Broken\nchapters:\n  - content: []\n")
        result = cli_runner.invoke(cli, compile_args(document, tmp_path / "b.h5p", populated_cache))
        assert result.exit_code == 1
        assert "DocumentError" in result.output
        assert "chapters.0.title: Field required" in result.output

    def test_missing_input_exits_1(
        self, cli_runner: CliRunner, populated_cache: Path, tmp_path: Path
    ) -> None:
        result = cli_runner.invoke(
            cli, compile_args(tmp_path / "nope.yaml", tmp_path / "n.h5p", populated_cache)
        )
        assert result.exit_code == 1
        assert "Document file not found" in result.output

    def test_missing_media_exits_1(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        populated_cache: Path,
        tmp_path: Path,
    ) -> None:
        document = write_document(
            "title: Garden\n"
            "chapters:\n"
            "  - title: One\n"
            "    content:\n"
            "      - type: image\n"
            "        path: gone.png\n"
            "        alt: Gone\n"
        )
        result = cli_runner.invoke(cli, compile_args(document, tmp_path / "g.h5p", populated_cache))
        assert result.exit_code == 1
        assert "MissingAssetError" in result.output

    def test_fetch_failure_exits_2(
        self,
        cli_runner: CliRunner,
        write_document: Callable[..., Path],
        cache_dir: Path,
        tmp_path: Path,
        offline: list[str],
    ) -> None:
        output = tmp_path / "greetings.h5p"
        result = cli_runner.invoke(cli, compile_args(write_document(TEXT_BOOK), output, cache_dir))

        assert result.exit_code == 2
        assert "FetchError" in result.output
        assert "HTTP 503" in result.output
        assert offline == ["H5P.InteractiveBook-1.11"]
        assert not output.exists()
