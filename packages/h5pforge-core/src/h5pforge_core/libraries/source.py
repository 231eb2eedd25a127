"""Remote library sources.

- LibrarySource: protocol the store fetches through
- HubLibrarySource: H5P Hub API client (one POST per content type)
"""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from h5pforge_core.config import DEFAULT_HUB_URL
from h5pforge_core.errors import FetchError
from h5pforge_core.libraries.models import LibraryIdentifier

logger = structlog.get_logger(__name__)


class LibrarySource(Protocol):
    """Anything that can return the archive bytes for a library."""

    def fetch(self, identifier: LibraryIdentifier) -> bytes:
        """Return ``.h5p`` archive bytes containing ``identifier``.

        Raises:
            FetchError: On any transport or non-success response.
        """
        ...


class HubLibrarySource:
    """Downloads content-type packages from the H5P Hub.

    The Hub serves the latest release of a content type as a complete
    ``.h5p`` package, including the libraries it bundles. It expects a
    POST without a body.

    Example:
        >>> source = HubLibrarySource()
        >>> data = source.fetch(LibraryIdentifier.parse("H5P.Image 1.1"))
    """

    def __init__(
        self,
        hub_url: str = DEFAULT_HUB_URL,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Hub source.

        Args:
            hub_url: Base URL of the Hub API, ending with ``/``.
            timeout_seconds: Request timeout for a single download.
            client: Optional preconfigured httpx client (tests pass one
                with a ``MockTransport``).
        """
        self.hub_url = hub_url if hub_url.endswith("/") else hub_url + "/"
        self.timeout_seconds = timeout_seconds
        self._client = client

    def content_type_url(self, identifier: LibraryIdentifier) -> str:
        return f"{self.hub_url}content-types/{identifier.machine_name}"

    def fetch(self, identifier: LibraryIdentifier) -> bytes:
        url = self.content_type_url(identifier)
        log = logger.bind(library=identifier.key, url=url)
        log.info("library_download_started")

        client = self._client or httpx.Client(timeout=self.timeout_seconds)
        try:
            response = client.post(url)
        except httpx.TimeoutException as e:
            raise FetchError(
                identifier,
                f"request timed out after {self.timeout_seconds}s",
                internal_details=repr(e),
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                identifier,
                f"connection to {self.hub_url} failed",
                internal_details=repr(e),
            ) from e
        finally:
            if self._client is None:
                client.close()

        if response.status_code == 404:
            raise FetchError(identifier, "not available on the H5P Hub (HTTP 404)")
        if response.status_code != 200:
            raise FetchError(identifier, f"H5P Hub returned HTTP {response.status_code}")

        log.info("library_download_completed", size_bytes=len(response.content))
        return response.content
