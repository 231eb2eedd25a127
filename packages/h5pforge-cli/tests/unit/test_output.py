"""Unit tests for h5pforge_cli.output."""

from __future__ import annotations

import pytest

from h5pforge_cli import output


@pytest.fixture
def plain_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Route output helpers through a colorless console."""
    monkeypatch.setattr(output, "console", output.create_console(no_color=True))


class TestCreateConsole:
    """Tests for create_console()."""

    def test_no_color(self) -> None:
        console = output.create_console(no_color=True)
        assert console.no_color is True

    def test_set_no_color_replaces_console(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(output, "console", output.create_console())
        output.set_no_color(True)
        assert output.console.no_color is True


@pytest.mark.usefixtures("plain_console")
class TestMessages:
    """Tests for the message helpers."""

    def test_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.success("Compiled book.h5p")
        captured = capsys.readouterr()
        assert "✓" in captured.out
        assert "Compiled book.h5p" in captured.out

    def test_error_escapes_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Node paths like chapters[0] must not be parsed as rich markup."""
        output.error("ValidationError: Invalid content at [bold]chapters[0][/bold]")
        captured = capsys.readouterr()
        assert "✗" in captured.out
        assert "[bold]chapters[0][/bold]" in captured.out

    def test_warning(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.warning("AI fallback used")
        captured = capsys.readouterr()
        assert "⚠" in captured.out
        assert "AI fallback used" in captured.out

    def test_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.table("Cached libraries", ["Library", "Version"], [["H5P.Image", "1.1"]])
        captured = capsys.readouterr()
        assert "Cached libraries" in captured.out
        assert "H5P.Image" in captured.out
