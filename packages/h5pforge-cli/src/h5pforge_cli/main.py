"""CLI entry point for h5pforge.

This module defines the main CLI group using the LazyGroup pattern so
that ``h5pforge --help`` does not import the compiler and its
dependencies.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from h5pforge_cli import __version__
from h5pforge_cli.output import set_no_color

# Configure rich-click for better help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class LazyGroup(rclick.RichGroup):
    """Click group that loads commands lazily.

    Commands are only imported when actually invoked, not at import time.

    Attributes:
        lazy_subcommands: Mapping of command names to module paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to module path.
                Format: {"validate": "h5pforge_cli.commands.validate.validate"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, loading lazily if needed."""
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_path = self.lazy_subcommands[cmd_name]
        module_name, attr_name = module_path.rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "compile": "h5pforge_cli.commands.compile.compile_cmd",
    "validate": "h5pforge_cli.commands.validate.validate",
    "cache": "h5pforge_cli.commands.cache.cache",
    "schema": "h5pforge_cli.commands.schema.schema",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="h5pforge")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
def cli() -> None:
    """h5pforge - Compile YAML content documents into H5P packages.

    **Getting Started:**

    - `h5pforge validate book.yaml` - Check a document without building it
    - `h5pforge compile book.yaml book.h5p` - Build an .h5p package
    - `h5pforge cache list` - Show cached H5P libraries
    - `h5pforge schema export` - Export JSON Schema for editor support

    Settings can also be given as `H5PFORGE_*` environment variables
    (for example `H5PFORGE_CACHE_DIR`).
    """
    pass


if __name__ == "__main__":
    cli()
