"""h5pforge validate command - Check a content document without building it."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import click

from h5pforge_cli.output import info, success


@click.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False, path_type=Path))
def validate(input_path: Path) -> None:
    """Validate a content document.

    Checks the document structure and runs every content type's
    validation. No libraries are downloaded and no AI calls are made.

    Examples:

        h5pforge validate book.yaml
    """
    from h5pforge_cli.errors import to_cli_error
    from h5pforge_cli.log_config import configure_logging

    configure_logging()

    # Import here to avoid heavy imports at CLI startup
    from h5pforge_core import Compiler, CompilerSettings, H5PForgeError, load_document

    try:
        document = load_document(input_path)
        compiler = Compiler.from_settings(CompilerSettings(ai_provider="none"))
        items = compiler.validate(document)
    except H5PForgeError as e:
        raise to_cli_error(e) from None

    success(f"Document valid: {input_path}")
    counts = Counter(located.item.type for located in items)
    summary = ", ".join(f"{tag} x{count}" for tag, count in counts.items())
    info(f"  {document.kind}: {len(items)} item(s) ({summary})")
