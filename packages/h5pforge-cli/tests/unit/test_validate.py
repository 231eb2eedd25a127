"""Tests for the h5pforge validate command."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from click.testing import CliRunner
import pytest

from h5pforge_cli.main import cli
from h5pforge_core.libraries import HubLibrarySource

BOOK = """\
title: Photosynthesis
chapters:
  - title: Introduction
    content:
      - type: text
        text: Plants turn light into food.
      - type: ai-quiz
        sourceText: Plants turn light into food.
  - title: Details
    content:
      - type: text
        text: Chlorophyll is green.
"""


@pytest.fixture(autouse=True)
def no_downloads(monkeypatch: pytest.MonkeyPatch) -> None:
    def fetch(self: HubLibrarySource, identifier: object) -> bytes:
        raise AssertionError("validate must not download libraries")

    monkeypatch.setattr(HubLibrarySource, "fetch", fetch)


def test_valid_book(cli_runner: CliRunner, write_document: Callable[..., Path]) -> None:
    document = write_document(BOOK)
    result = cli_runner.invoke(cli, ["validate", str(document)])

    assert result.exit_code == 0, result.output
    assert f"Document valid: {document}" in result.output
    assert "book: 3 item(s) (text x2, ai-quiz x1)" in result.output


def test_valid_standalone(cli_runner: CliRunner, write_document: Callable[..., Path]) -> None:
    document = write_document(
        "title: Words\n"
        "content:\n"
        "  type: crossword\n"
        "  words:\n"
        "    - {clue: Green pigment, answer: chlorophyll}\n"
        "    - {clue: Our star, answer: sun}\n",
        "words.yaml",
    )
    result = cli_runner.invoke(cli, ["validate", str(document)])
    assert result.exit_code == 0, result.output
    assert "standalone: 1 item(s) (crossword x1)" in result.output


def test_invalid_item(cli_runner: CliRunner, write_document: Callable[..., Path]) -> None:
    document = write_document(BOOK.replace("sourceText: Plants turn light into food.", "questionCount: 3"))
    result = cli_runner.invoke(cli, ["validate", str(document)])

    assert result.exit_code == 1
    assert "ValidationError" in result.output
    assert "sourceText" in result.output


def test_invalid_yaml(cli_runner: CliRunner, write_document: Callable[..., Path]) -> None:
    document = write_document("title: [unclosed\n")
    result = cli_runner.invoke(cli, ["validate", str(document)])
    assert result.exit_code == 1
    assert "Invalid YAML" in result.output
