"""h5pforge schema command - Export the document JSON Schema."""

from __future__ import annotations

from pathlib import Path

import click

from h5pforge_cli.output import error, success


@click.group()
def schema() -> None:
    """Manage JSON Schema for editor support.

    **Commands:**

    - `h5pforge schema export` - Export the book or standalone document schema
    """
    pass


@schema.command("export")
@click.option(
    "-k",
    "--kind",
    type=click.Choice(["book", "standalone"]),
    default="book",
    help="Document kind [default: book]",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output path [default: ./schemas/<kind>-document.schema.json]",
)
def export_schema(kind: str, output_path: Path | None) -> None:
    """Export the content document JSON Schema.

    Examples:

        h5pforge schema export

        h5pforge schema export --kind standalone --output schemas/standalone.json
    """
    # Import here to avoid heavy imports at CLI startup
    from h5pforge_core import export_document_schema

    output = output_path or Path("schemas") / f"{kind}-document.schema.json"
    try:
        export_document_schema(kind, output)  # type: ignore[arg-type]
    except PermissionError:
        error(f"Cannot write to: {output}")
        raise SystemExit(2) from None

    success(f"Schema exported to {output}")
