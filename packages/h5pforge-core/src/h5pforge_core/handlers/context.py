"""Per-node processing context handed to content handlers."""

from __future__ import annotations

from typing import Any

import structlog

from h5pforge_core.ai.prompts import ResolvedAIConfig, resolve_config
from h5pforge_core.ai.service import AIService
from h5pforge_core.handlers.fragments import stable_id
from h5pforge_core.media import MediaAsset, MediaCollector
from h5pforge_core.schemas.document import AIConfig

logger = structlog.get_logger(__name__)


class HandlerContext:
    """Everything a handler may touch while processing one node.

    Handlers emit fragments with ``add_fragment`` and media with
    ``add_media``; they never see the rest of the content tree.

    Attributes:
        node_path: Location of the node (``chapters[1].content[0]``).
        package_title: Title of the package being compiled.
        chapter_title: Title of the enclosing chapter (None for standalone).
        media: Package-wide media collector (sequential paths).
        ai_service: AI service, or None when no provider is configured.
        ai_scopes: Enclosing AI configs, innermost first (chapter, document).
        fragments: Fragments emitted for this node, in order.
        fallbacks: Number of AI fallbacks emitted for this node.
    """

    def __init__(
        self,
        *,
        node_path: str,
        package_title: str,
        media: MediaCollector,
        ai_service: AIService | None = None,
        chapter_title: str | None = None,
        ai_scopes: tuple[AIConfig | None, ...] = (),
    ) -> None:
        self.node_path = node_path
        self.package_title = package_title
        self.chapter_title = chapter_title
        self.media = media
        self.ai_service = ai_service
        self.ai_scopes = ai_scopes
        self.fragments: list[dict[str, Any]] = []
        self.fallbacks = 0
        self._id_counter = 0
        self.log = logger.bind(node_path=node_path)

    def add_fragment(self, fragment: dict[str, Any]) -> None:
        self.fragments.append(fragment)

    def add_media(self, source: str, *, kind: str) -> MediaAsset:
        """Load a media file and reserve its package path.

        Raises:
            MissingAssetError: If the file cannot be loaded.
        """
        asset = self.media.add(source, kind=kind)
        self.log.debug("media_added", source=source, destination=asset.destination_path)
        return asset

    def new_subcontent_id(self) -> str:
        """Return a subContentId that is stable across compiles of the same document."""
        self._id_counter += 1
        return stable_id(self.package_title, self.node_path, self._id_counter)

    def resolve_ai_config(self, item_config: AIConfig | None = None) -> ResolvedAIConfig:
        return resolve_config(item_config, *self.ai_scopes)

    def record_fallback(self, reason: str) -> None:
        self.fallbacks += 1
        self.log.warning("ai_fallback_used", reason=reason)
