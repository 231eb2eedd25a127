"""End-to-end CLI flows: validate, pre-fetch the cache, compile offline."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
import zipfile

from click.testing import CliRunner
import pytest

from h5pforge_cli.main import cli
from h5pforge_core.libraries import HubLibrarySource, LibraryIdentifier

pytestmark = pytest.mark.integration

STANDALONE_TEXT = """\
title: Note
description: A short note
content:
  type: text
  title: Note
  text: Plants need light.
"""


def test_validate_fetch_compile(
    cli_runner: CliRunner,
    write_document: Callable[..., Path],
    cache_dir: Path,
    tmp_path: Path,
    archive_for: Callable[[str], bytes],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    document = write_document(STANDALONE_TEXT, "note.yaml")
    fetched: list[str] = []

    def fetch(self: HubLibrarySource, identifier: LibraryIdentifier) -> bytes:
        fetched.append(identifier.key)
        return archive_for(str(identifier))

    monkeypatch.setattr(HubLibrarySource, "fetch", fetch)

    result = cli_runner.invoke(cli, ["validate", str(document)])
    assert result.exit_code == 0, result.output
    assert fetched == []

    result = cli_runner.invoke(
        cli, ["cache", "fetch", "H5P.AdvancedText", "1.1", "--cache-dir", str(cache_dir)]
    )
    assert result.exit_code == 0, result.output

    output = tmp_path / "note.h5p"
    result = cli_runner.invoke(
        cli,
        ["compile", str(document), str(output), "--cache-dir", str(cache_dir), "--ai-provider", "none", "-v"],
    )

    assert result.exit_code == 0, result.output
    assert fetched == ["H5P.AdvancedText-1.1"]
    assert "compile_completed" in result.output
    with zipfile.ZipFile(output) as zf:
        assert sorted(zf.namelist()) == [
            "H5P.AdvancedText-1.1/dist/main.js",
            "H5P.AdvancedText-1.1/library.json",
            "content/content.json",
            "h5p.json",
        ]

    result = cli_runner.invoke(cli, ["cache", "list", "--cache-dir", str(cache_dir)])
    assert "H5P.AdvancedText" in result.output
