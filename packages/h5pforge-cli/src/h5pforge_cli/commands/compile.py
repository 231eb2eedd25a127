"""h5pforge compile command - Build an .h5p package from a content document."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from h5pforge_cli.output import info, success, warning

AI_PROVIDERS = ["auto", "claude", "gemini", "none"]


def settings_overrides(**values: Any) -> dict[str, Any]:
    """Drop options the user did not pass so environment settings apply."""
    return {key: value for key, value in values.items() if value is not None}


@click.command("compile")
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("output_path", metavar="OUTPUT", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log progress to stderr.")
@click.option(
    "--ai-provider",
    type=click.Choice(AI_PROVIDERS),
    default=None,
    help="AI provider for ai-* content types [default: auto]",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Library cache directory [default: ./content-type-cache]",
)
def compile_cmd(
    input_path: Path,
    output_path: Path,
    verbose: bool,
    ai_provider: str | None,
    cache_dir: Path | None,
) -> None:
    """Compile a content document into an .h5p package.

    Libraries missing from the cache are downloaded from the H5P Hub.
    Media paths in the document are resolved relative to the document.

    Examples:

        h5pforge compile book.yaml book.h5p

        h5pforge compile quiz.yaml quiz.h5p --ai-provider none

        h5pforge compile book.yaml out/book.h5p --cache-dir ~/.cache/h5p
    """
    from h5pforge_cli.errors import to_cli_error
    from h5pforge_cli.log_config import configure_logging

    configure_logging(verbose)

    # Import here to avoid heavy imports at CLI startup
    from h5pforge_core import Compiler, CompilerSettings, H5PForgeError, load_document

    settings = CompilerSettings(
        **settings_overrides(ai_provider=ai_provider, cache_dir=cache_dir, verbose=verbose or None)
    )

    try:
        document = load_document(input_path)
        compiler = Compiler.from_settings(settings)
        package = compiler.compile_to_file(
            document,
            output_path,
            base_path=settings.base_path or input_path.resolve().parent,
        )
    except H5PForgeError as e:
        raise to_cli_error(e) from None

    success(f"Compiled {output_path}")
    info(
        f"  {package.kind}: {len(package.nodes)} item(s), "
        f"{len(package.dependency_set)} librar{'y' if len(package.dependency_set) == 1 else 'ies'}, "
        f"{len(package.media_assets)} media file(s)"
    )
    if package.ai_fallbacks:
        warning(
            f"{package.ai_fallbacks} AI item(s) could not be generated and contain "
            "placeholder text"
        )
