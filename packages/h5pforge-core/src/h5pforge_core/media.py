"""Media assets for compiled packages.

- MediaAsset: one file copied into the package's ``content/`` directory
- MediaLoader: reads local files (relative to the document) or downloads URLs
"""

from __future__ import annotations

import mimetypes
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ConfigDict, Field
import structlog

from h5pforge_core.errors import MissingAssetError

logger = structlog.get_logger(__name__)

# Fallback extensions when neither the source nor its MIME type names one
DEFAULT_EXTENSIONS = {"image": ".jpg", "audio": ".mp3"}
MEDIA_DIRECTORIES = {"image": "images", "audio": "audios"}


class MediaAsset(BaseModel):
    """A media file referenced from the content tree.

    Attributes:
        source: Local path or URL the bytes were loaded from.
        data: File contents.
        destination_path: Path relative to ``content/`` (``images/0.png``).
        mime_type: MIME type recorded in the content params.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: str
    data: bytes = Field(repr=False)
    destination_path: str
    mime_type: str


class LoadedMedia(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    data: bytes = Field(repr=False)
    mime_type: str
    extension: str


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def guess_mime_type(name: str, kind: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    if mime:
        return mime
    return "image/jpeg" if kind == "image" else "audio/mpeg"


def _extension_for(name: str, mime_type: str, kind: str) -> str:
    suffix = PurePosixPath(name).suffix.lower()
    if suffix:
        return suffix
    guessed = mimetypes.guess_extension(mime_type)
    return guessed or DEFAULT_EXTENSIONS.get(kind, "")


class MediaLoader:
    """Loads media bytes for image and audio items.

    Example:
        >>> loader = MediaLoader(Path("docs/"))
        >>> media = loader.load("images/leaf.png", kind="image")
        >>> media.mime_type
        'image/png'
    """

    def __init__(
        self,
        base_path: Path | None = None,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_path = base_path or Path.cwd()
        self.timeout_seconds = timeout_seconds
        self._client = client

    def resolve_path(self, source: str) -> Path:
        path = Path(source).expanduser()
        return path if path.is_absolute() else self.base_path / path

    def load(self, source: str, *, kind: str) -> LoadedMedia:
        """Load a media file.

        Raises:
            MissingAssetError: If the file does not exist, cannot be read,
                cannot be downloaded, or is empty.
        """
        if is_url(source):
            data, mime_type = self._download(source, kind)
            name = urlparse(source).path
        else:
            path = self.resolve_path(source)
            try:
                data = path.read_bytes()
            except FileNotFoundError as e:
                raise MissingAssetError(source, reason=f"file not found: {path}") from e
            except OSError as e:
                raise MissingAssetError(source, reason=e.strerror or str(e)) from e
            mime_type = guess_mime_type(path.name, kind)
            name = path.name

        if not data:
            raise MissingAssetError(source, reason="file is empty")

        logger.debug("media_loaded", source=source, kind=kind, size_bytes=len(data))
        return LoadedMedia(
            data=data,
            mime_type=mime_type,
            extension=_extension_for(name, mime_type, kind),
        )

    def _download(self, url: str, kind: str) -> tuple[bytes, str]:
        client = self._client or httpx.Client(
            timeout=self.timeout_seconds, follow_redirects=True
        )
        try:
            response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise MissingAssetError(
                url, reason=f"download failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise MissingAssetError(url, reason=f"download failed: {e}") from e
        finally:
            if self._client is None:
                client.close()

        header = response.headers.get("content-type", "").split(";")[0].strip()
        mime_type = header if header.startswith(f"{kind}/") else guess_mime_type(url, kind)
        return response.content, mime_type


class MediaCollector:
    """Assigns sequential, package-wide destination paths to media.

    Counters are per media kind and start at 0: ``images/0.png``,
    ``images/1.jpg``, ``audios/0.mp3``.
    """

    def __init__(self, loader: MediaLoader) -> None:
        self.loader = loader
        self.assets: list[MediaAsset] = []
        self._counters: dict[str, int] = {kind: 0 for kind in MEDIA_DIRECTORIES}

    def add(self, source: str, *, kind: str) -> MediaAsset:
        if kind not in MEDIA_DIRECTORIES:
            raise ValueError(f"Unsupported media kind: {kind!r}")
        loaded = self.loader.load(source, kind=kind)
        number = self._counters[kind]
        self._counters[kind] = number + 1
        asset = MediaAsset(
            source=source,
            data=loaded.data,
            destination_path=f"{MEDIA_DIRECTORIES[kind]}/{number}{loaded.extension}",
            mime_type=loaded.mime_type,
        )
        self.assets.append(asset)
        return asset
