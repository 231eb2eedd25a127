"""On-disk library cache for h5pforge.

LibraryStore keeps one zip per library version under the cache
directory, named after the normalized ``name-major.minor`` key:

    content-type-cache/
        H5P.AdvancedText-1.1.zip
        H5P.InteractiveBook-1.11.zip
        FontAwesome-4.5.zip

Entries are written to a temporary file in the same directory and moved
into place with ``os.replace``. Readers never observe a partial entry and
two processes fetching the same library both succeed.
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile
import zipfile

import structlog

from h5pforge_core.errors import FetchError, IntegrityError
from h5pforge_core.libraries.archive import bundle_to_zip, split_library_directories, zip_to_files
from h5pforge_core.libraries.models import LibraryBundle, LibraryIdentifier
from h5pforge_core.libraries.source import LibrarySource

logger = structlog.get_logger(__name__)

CACHE_SUFFIX = ".zip"


class LibraryStore:
    """Cache-first access to library bundles.

    Attributes:
        cache_dir: Directory holding cache entries.
        source: Remote source used on a cache miss (None for offline use).

    Example:
        >>> store = LibraryStore(Path("content-type-cache"), HubLibrarySource())
        >>> bundle = store.get(LibraryIdentifier.parse("H5P.Image 1.1"))
        >>> store.has(bundle.identifier)
        True
    """

    def __init__(self, cache_dir: Path | str, source: LibrarySource | None = None) -> None:
        self.cache_dir = Path(cache_dir)
        self.source = source
        self._memo: dict[str, LibraryBundle] = {}
        self._log = logger.bind(component="library_store", cache_dir=str(self.cache_dir))

    def entry_path(self, identifier: LibraryIdentifier) -> Path:
        return self.cache_dir / f"{identifier.key}{CACHE_SUFFIX}"

    def has(self, identifier: LibraryIdentifier) -> bool:
        """Check whether ``identifier`` is cached (no network access)."""
        return identifier.key in self._memo or self.entry_path(identifier).is_file()

    def get(self, identifier: LibraryIdentifier) -> LibraryBundle:
        """Return the bundle for ``identifier``, fetching it on a cache miss.

        Raises:
            FetchError: If the library is not cached and the download fails,
                or no source is set.
            IntegrityError: If the cached or downloaded bundle does not match
                ``identifier``.
        """
        memo = self._memo.get(identifier.key)
        if memo is not None:
            self._check_identity(identifier, memo)
            return memo

        path = self.entry_path(identifier)
        if path.is_file():
            bundle = self._read_entry(identifier, path)
            self._log.debug("library_cache_hit", library=identifier.key)
            self._memo[identifier.key] = bundle
            return bundle

        if self.source is None:
            raise FetchError(identifier, "not cached and no library source is configured")

        self._log.info("library_cache_miss", library=identifier.key)
        return self._fetch(identifier)

    def put(self, identifier: LibraryIdentifier, bundle: LibraryBundle) -> None:
        """Validate and persist a bundle.

        Raises:
            IntegrityError: If the bundle's manifest does not match ``identifier``.
        """
        self._check_identity(identifier, bundle)
        self._write_entry(self.entry_path(identifier), bundle_to_zip(bundle))
        self._memo[identifier.key] = bundle
        self._log.info("library_cached", library=identifier.key)

    def evict(self, identifier: LibraryIdentifier) -> bool:
        """Remove a cache entry. Returns True if an entry was removed."""
        self._memo.pop(identifier.key, None)
        path = self.entry_path(identifier)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        self._log.info("library_evicted", library=identifier.key)
        return True

    def list(self) -> list[LibraryIdentifier]:
        """List cached libraries by entry name, sorted."""
        if not self.cache_dir.is_dir():
            return []
        identifiers: list[LibraryIdentifier] = []
        for path in sorted(self.cache_dir.glob(f"*{CACHE_SUFFIX}")):
            try:
                identifiers.append(LibraryIdentifier.parse(path.name[: -len(CACHE_SUFFIX)]))
            except ValueError:
                self._log.warning("unrecognized_cache_entry", file=path.name)
        return identifiers

    def _fetch(self, identifier: LibraryIdentifier) -> LibraryBundle:
        assert self.source is not None
        archive = self.source.fetch(identifier)

        try:
            directories = split_library_directories(archive)
        except zipfile.BadZipFile as e:
            raise IntegrityError(
                identifier, "downloaded archive is not a valid zip file", internal_details=repr(e)
            ) from e

        files = directories.get(identifier.key)
        if files is None:
            raise IntegrityError(
                identifier,
                f"downloaded archive does not contain {identifier.key}/library.json",
                internal_details=f"archive libraries: {sorted(directories)}",
            )
        bundle = self._build_bundle(identifier, files)
        self.put(identifier, bundle)

        # Helper libraries shipped inside the same package
        for directory, extra_files in directories.items():
            if directory == identifier.key:
                continue
            self._cache_bundled(directory, extra_files)

        return bundle

    def _cache_bundled(self, directory: str, files: dict[str, bytes]) -> None:
        try:
            expected = LibraryIdentifier.parse(directory)
        except ValueError:
            self._log.warning("bundled_directory_skipped", directory=directory)
            return
        if self.has(expected):
            return
        try:
            bundle = self._build_bundle(expected, files)
            self.put(expected, bundle)
        except IntegrityError:
            self._log.warning("bundled_library_rejected", directory=directory)

    def _build_bundle(self, identifier: LibraryIdentifier, files: dict[str, bytes]) -> LibraryBundle:
        try:
            bundle = LibraryBundle.from_files(files)
        except ValueError as e:
            raise IntegrityError(identifier, str(e)) from e
        self._check_identity(identifier, bundle)
        return bundle

    def _read_entry(self, identifier: LibraryIdentifier, path: Path) -> LibraryBundle:
        try:
            files = zip_to_files(path.read_bytes())
            bundle = LibraryBundle.from_files(files)
        except (zipfile.BadZipFile, ValueError) as e:
            raise IntegrityError(
                identifier,
                f"cache entry {path.name} is corrupt; evict it and retry",
                internal_details=repr(e),
            ) from e
        self._check_identity(identifier, bundle)
        return bundle

    @staticmethod
    def _check_identity(identifier: LibraryIdentifier, bundle: LibraryBundle) -> None:
        actual = bundle.manifest.identifier
        if not identifier.matches(actual):
            raise IntegrityError(
                identifier,
                f"manifest declares {actual} instead",
            )

    def _write_entry(self, path: Path, data: bytes) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=self.cache_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
