"""h5pforge cache commands - Inspect and manage the library cache."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from h5pforge_cli.output import info, success, table, warning

if TYPE_CHECKING:
    from h5pforge_core import LibraryIdentifier, LibraryStore

cache_dir_option = click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Library cache directory [default: ./content-type-cache]",
)


def _open_store(cache_dir: Path | None, *, with_source: bool = False) -> LibraryStore:
    from h5pforge_core.config import CompilerSettings
    from h5pforge_core.libraries import HubLibrarySource, LibraryStore

    settings = CompilerSettings(**({"cache_dir": cache_dir} if cache_dir is not None else {}))
    source: HubLibrarySource | None = None
    if with_source:
        source = HubLibrarySource(settings.hub_url, timeout_seconds=settings.fetch_timeout_seconds)
    return LibraryStore(settings.cache_dir, source)


def _parse_identifier(name: str, version: str) -> LibraryIdentifier:
    from h5pforge_cli.errors import CLIError
    from h5pforge_core.libraries import LibraryIdentifier

    try:
        return LibraryIdentifier.parse(f"{name} {version}")
    except ValueError as e:
        raise CLIError(f"Invalid library '{name} {version}': {e}") from None


@click.group()
def cache() -> None:
    """Manage the H5P library cache.

    **Commands:**

    - `h5pforge cache list` - List cached libraries
    - `h5pforge cache fetch NAME VERSION` - Download a library into the cache
    - `h5pforge cache evict NAME VERSION` - Remove a library from the cache
    """
    pass


@cache.command("list")
@cache_dir_option
def list_cmd(cache_dir: Path | None) -> None:
    """List cached libraries.

    Examples:

        h5pforge cache list
    """
    from h5pforge_cli.log_config import configure_logging

    configure_logging()
    store = _open_store(cache_dir)
    identifiers = store.list()
    if not identifiers:
        info(f"No libraries cached in {store.cache_dir}")
        return
    table(
        f"Cached libraries ({store.cache_dir})",
        ["Library", "Version"],
        [[i.machine_name, i.version] for i in identifiers],
    )


@cache.command("fetch")
@click.argument("name")
@click.argument("version")
@cache_dir_option
def fetch_cmd(name: str, version: str, cache_dir: Path | None) -> None:
    """Download a library (and its bundled helpers) into the cache.

    Examples:

        h5pforge cache fetch H5P.InteractiveBook 1.11
    """
    from h5pforge_cli.errors import to_cli_error
    from h5pforge_cli.log_config import configure_logging
    from h5pforge_core import H5PForgeError

    configure_logging()
    identifier = _parse_identifier(name, version)
    store = _open_store(cache_dir, with_source=True)
    if store.has(identifier):
        warning(f"{identifier.key} is already cached")
        return

    try:
        bundle = store.get(identifier)
    except H5PForgeError as e:
        raise to_cli_error(e) from None
    success(f"Cached {bundle.identifier.key} ({len(bundle.files)} files)")


@cache.command("evict")
@click.argument("name")
@click.argument("version")
@cache_dir_option
def evict_cmd(name: str, version: str, cache_dir: Path | None) -> None:
    """Remove a library from the cache.

    Examples:

        h5pforge cache evict H5P.Image 1.1
    """
    from h5pforge_cli.log_config import configure_logging

    configure_logging()
    identifier = _parse_identifier(name, version)
    store = _open_store(cache_dir)
    if store.evict(identifier):
        success(f"Evicted {identifier.key}")
    else:
        warning(f"{identifier.key} is not cached")
