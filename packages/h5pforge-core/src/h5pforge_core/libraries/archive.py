"""Zip archive helpers for library bundles.

Hub downloads are ``.h5p`` packages: a zip holding ``h5p.json``, a
``content/`` directory and one ``<name>-<major>.<minor>/`` directory per
bundled library. Cache entries are zips holding a single library
directory's contents at the archive root.
"""

from __future__ import annotations

from collections import defaultdict
import io
import zipfile

from h5pforge_core.libraries.models import LIBRARY_JSON, LibraryBundle

# Top-level entries of an .h5p package that are not library directories
NON_LIBRARY_ROOTS = frozenset({"content", "h5p.json"})


def split_library_directories(archive: bytes) -> dict[str, dict[str, bytes]]:
    """Group the files of an ``.h5p`` archive by top-level library directory.

    Args:
        archive: Raw zip bytes.

    Returns:
        Mapping of directory name (e.g. ``"H5P.Image-1.1"``) to a mapping of
        directory-relative path to file bytes. Only directories that contain
        a ``library.json`` are returned.

    Raises:
        zipfile.BadZipFile: If ``archive`` is not a zip file.
    """
    grouped: dict[str, dict[str, bytes]] = defaultdict(dict)
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = info.filename.replace("\\", "/")
            root, sep, rest = name.partition("/")
            if not sep or not rest or root in NON_LIBRARY_ROOTS:
                continue
            grouped[root][rest] = zf.read(info)
    return {root: files for root, files in grouped.items() if LIBRARY_JSON in files}


def bundle_to_zip(bundle: LibraryBundle) -> bytes:
    """Serialize a bundle's files as a cache-entry zip."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(bundle.files):
            zf.writestr(path, bundle.files[path])
    return buffer.getvalue()


def zip_to_files(data: bytes) -> dict[str, bytes]:
    """Read a cache-entry zip back into a path-to-bytes mapping.

    Raises:
        zipfile.BadZipFile: If ``data`` is not a zip file.
    """
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}
