"""Package assembly: serialize a CompiledPackage as an ``.h5p`` zip.

Archive layout::

    h5p.json
    content/content.json
    content/images/0.png ...
    <Machine.Name>-<major>.<minor>/library.json ...

Entries are DEFLATE-compressed and the archive has no directory entries.
The file is written to a temporary sibling and renamed into place, so the
destination either holds a complete package or is left untouched.
"""

from __future__ import annotations

import io
import json
import os
from pathlib import Path
import tempfile
import zipfile

import structlog

from h5pforge_core.compiler.models import CompiledPackage
from h5pforge_core.errors import MissingAssetError, WriteError
from h5pforge_core.libraries.models import LIBRARY_JSON, LibraryBundle

logger = structlog.get_logger(__name__)

MANIFEST_PATH = "h5p.json"
CONTENT_JSON_PATH = "content/content.json"
CONTENT_DIR = "content"


def _dump_json(value: object) -> bytes:
    return json.dumps(value, ensure_ascii=False, indent=2).encode("utf-8")


class PackageAssembler:
    """Builds and writes ``.h5p`` archives."""

    def check(self, package: CompiledPackage) -> None:
        """Verify every file the package needs is present.

        Raises:
            MissingAssetError: If a library bundle lacks ``library.json`` or a
                file its manifest preloads, or a media asset is empty.
        """
        for bundle in package.dependency_set:
            self._check_bundle(bundle)
        for asset in package.media_assets:
            if not asset.data:
                raise MissingAssetError(
                    f"{CONTENT_DIR}/{asset.destination_path}",
                    reason=f"no data loaded from {asset.source}",
                )

    def assemble(self, package: CompiledPackage) -> bytes:
        """Return the package as zip bytes.

        Raises:
            MissingAssetError: See check().
        """
        self.check(package)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(MANIFEST_PATH, _dump_json(package.manifest.to_json_dict()))
            zf.writestr(CONTENT_JSON_PATH, _dump_json(package.content_tree))
            for asset in package.media_assets:
                zf.writestr(f"{CONTENT_DIR}/{asset.destination_path}", asset.data)
            for bundle in package.dependency_set:
                for path in sorted(bundle.files):
                    zf.writestr(f"{bundle.directory}/{path}", bundle.files[path])
        return buffer.getvalue()

    def write(self, package: CompiledPackage, destination: Path) -> Path:
        """Assemble the package and write it atomically to ``destination``.

        Returns:
            The destination path.

        Raises:
            MissingAssetError: See check().
            WriteError: If the file cannot be written.
        """
        data = self.assemble(package)
        destination = Path(destination)
        directory = destination.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{destination.name}.", suffix=".tmp", dir=directory
            )
        except OSError as e:
            raise WriteError(str(destination), e.strerror or str(e)) from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, destination)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise WriteError(str(destination), e.strerror or str(e)) from e

        logger.info(
            "package_written",
            path=str(destination),
            size_bytes=len(data),
            libraries=len(package.dependency_set),
            media=len(package.media_assets),
        )
        return destination

    def _check_bundle(self, bundle: LibraryBundle) -> None:
        if LIBRARY_JSON not in bundle.files:
            raise MissingAssetError(f"{bundle.directory}/{LIBRARY_JSON}")
        for preloaded in [*bundle.manifest.preloaded_js, *bundle.manifest.preloaded_css]:
            if preloaded.path not in bundle.files:
                raise MissingAssetError(
                    f"{bundle.directory}/{preloaded.path}",
                    reason="listed in library.json but not in the cached library",
                )
