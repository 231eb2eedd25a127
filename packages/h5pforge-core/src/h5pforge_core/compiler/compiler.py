"""Compiler class for h5pforge.

This module implements the Compiler that turns a content document into a
CompiledPackage:

1. Look up the handler of every item and validate it (nothing is processed
   unless every item is valid)
2. Process items in document order, collecting fragments and media
3. Resolve the libraries of the handlers actually used, plus the root and
   layout libraries of the package kind
4. Check fragments against the semantics.json of their libraries
5. Return an immutable CompiledPackage; compile_to_file() also assembles
   and writes it

Compilation is all-or-nothing: any error other than a recovered AI
failure aborts before anything is written.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from h5pforge_core.ai.providers import create_generator
from h5pforge_core.ai.service import AIService
from h5pforge_core.compiler.assembler import PackageAssembler
from h5pforge_core.compiler.content import BOOK_LAYOUT_LIBRARIES, BookContentBuilder
from h5pforge_core.compiler.models import CompiledPackage, ContentNode, PackageManifest
from h5pforge_core.compiler.semantics import SemanticsChecker
from h5pforge_core.config import CompilerSettings
from h5pforge_core.errors import AIGenerationFailure, UnknownContentTypeError, ValidationError
from h5pforge_core.handlers import default_registry
from h5pforge_core.handlers.base import ContentHandler
from h5pforge_core.handlers.context import HandlerContext
from h5pforge_core.handlers.fragments import escape_html
from h5pforge_core.handlers.registry import HandlerRegistry
from h5pforge_core.libraries.models import LibraryIdentifier
from h5pforge_core.libraries.resolver import LibraryResolver
from h5pforge_core.libraries.source import HubLibrarySource, LibrarySource
from h5pforge_core.libraries.store import LibraryStore
from h5pforge_core.media import MediaCollector, MediaLoader
from h5pforge_core.schemas.document import (
    AIConfig,
    BookDocument,
    ContentItem,
    Document,
    StandaloneDocument,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DocumentItem:
    """An item located in its document, with its resolved handler."""

    path: str
    item: ContentItem
    handler: ContentHandler
    chapter_index: int | None = None

    @property
    def raw_fields(self) -> dict[str, Any]:
        return self.item.raw_fields


class Compiler:
    """Compile content documents into H5P packages.

    Attributes:
        registry: Handlers by content type.
        resolver: Library resolver (backed by the library store).
        ai_service: AI service for AI-capable handlers (None: fallbacks only).
        settings: Compiler settings (book root library, timeouts).

    Example:
        >>> settings = CompilerSettings()
        >>> store = LibraryStore(settings.cache_dir, HubLibrarySource(settings.hub_url))
        >>> registry = default_registry()
        >>> compiler = Compiler(registry, LibraryResolver(store, registry=registry))
        >>> package = compiler.compile(load_document("book.yaml"))
        >>> package.manifest.main_library
        'H5P.InteractiveBook'
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        resolver: LibraryResolver,
        *,
        ai_service: AIService | None = None,
        settings: CompilerSettings | None = None,
        assembler: PackageAssembler | None = None,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.ai_service = ai_service
        self.settings = settings or CompilerSettings()
        self.assembler = assembler or PackageAssembler()

    @classmethod
    def from_settings(
        cls,
        settings: CompilerSettings | None = None,
        *,
        registry: HandlerRegistry | None = None,
        source: LibrarySource | None = None,
    ) -> Compiler:
        """Wire a compiler from settings: Hub-backed store, default handlers, AI provider.

        Args:
            settings: Compiler settings (defaults to environment).
            registry: Handler registry (defaults to default_registry()).
            source: Library source (defaults to the configured H5P Hub).
        """
        settings = settings or CompilerSettings()
        registry = registry or default_registry()
        if source is None:
            source = HubLibrarySource(
                settings.hub_url, timeout_seconds=settings.fetch_timeout_seconds
            )
        store = LibraryStore(settings.cache_dir, source)
        try:
            generator = create_generator(settings.ai_provider)
        except AIGenerationFailure as e:
            # AI items fall back to placeholder text; the compile goes on
            logger.warning(
                "ai_provider_unavailable", provider=settings.ai_provider, reason=e.reason
            )
            generator = None
        return cls(
            registry,
            LibraryResolver(store, registry=registry),
            ai_service=AIService(generator) if generator is not None else None,
            settings=settings,
        )

    @property
    def book_library(self) -> LibraryIdentifier:
        return LibraryIdentifier.parse(self.settings.book_library)

    def validate(self, document: Document) -> list[DocumentItem]:
        """Look up and validate every item of a document.

        Returns:
            The located items, in document order.

        Raises:
            UnknownContentTypeError: If an item's type has no handler.
            ValidationError: If an item fails its handler's validation, or
                its type cannot be used in this kind of package.
        """
        items = list(self._locate(document))
        for located in items:
            result = located.handler.validate(located.raw_fields)
            if not result.valid:
                raise ValidationError(
                    result.error or "invalid content",
                    node_path=located.path,
                    field=result.field,
                )
        return items

    def compile(self, document: Document, *, base_path: Path | None = None) -> CompiledPackage:
        """Compile a document.

        Args:
            document: Book or standalone document.
            base_path: Directory relative media paths are resolved against
                (defaults to the configured base path, then the cwd).

        Returns:
            Immutable CompiledPackage.

        Raises:
            UnknownContentTypeError / ValidationError: On invalid content.
            MissingAssetError: If a media file cannot be loaded.
            LibraryError: If libraries cannot be fetched or resolved.
        """
        log = logger.bind(title=document.title, kind=document.kind)
        log.info("compile_started")

        items = self.validate(document)
        media = MediaCollector(
            MediaLoader(
                base_path or self.settings.base_path,
                timeout_seconds=self.settings.fetch_timeout_seconds,
            )
        )

        if isinstance(document, BookDocument):
            package = self._compile_book(document, items, media)
        else:
            package = self._compile_standalone(document, items[0], media)

        log.info(
            "compile_completed",
            nodes=len(package.nodes),
            libraries=len(package.dependency_set),
            media=len(package.media_assets),
            ai_fallbacks=package.ai_fallbacks,
        )
        return package

    def compile_to_file(
        self,
        document: Document,
        destination: Path | str,
        *,
        base_path: Path | None = None,
    ) -> CompiledPackage:
        """Compile a document and write the package to ``destination``.

        Raises:
            Everything compile() raises, plus AssemblyError subclasses.
        """
        package = self.compile(document, base_path=base_path)
        self.assembler.write(package, Path(destination))
        return package

    def _locate(self, document: Document) -> Iterator[DocumentItem]:
        if isinstance(document, StandaloneDocument):
            handler = self._lookup(document.content, "content")
            if not handler.standalone:
                raise ValidationError(
                    f"Content type '{handler.content_type}' cannot be standalone content; "
                    "put it in a book chapter instead",
                    node_path="content",
                    field="type",
                )
            yield DocumentItem("content", document.content, handler)
            return

        for chapter_index, chapter in enumerate(document.chapters):
            for item_index, item in enumerate(chapter.content):
                path = f"chapters[{chapter_index}].content[{item_index}]"
                handler = self._lookup(item, path)
                if not handler.embeddable:
                    raise ValidationError(
                        f"Content type '{handler.content_type}' can only be compiled as "
                        "standalone content (use 'content' instead of 'chapters')",
                        node_path=path,
                        field="type",
                    )
                yield DocumentItem(path, item, handler, chapter_index)

    def _lookup(self, item: ContentItem, path: str) -> ContentHandler:
        handler = self.registry.lookup(item.type)
        if handler is None:
            raise UnknownContentTypeError(item.type, node_path=path, available=self.registry.tags())
        return handler

    def _process(
        self,
        located: DocumentItem,
        *,
        package_title: str,
        media: MediaCollector,
        chapter_title: str | None,
        ai_scopes: tuple[AIConfig | None, ...],
    ) -> tuple[ContentNode, HandlerContext]:
        context = HandlerContext(
            node_path=located.path,
            package_title=package_title,
            media=media,
            ai_service=self.ai_service,
            chapter_title=chapter_title,
            ai_scopes=ai_scopes,
        )
        first_media = len(media.assets)
        located.handler.process(context, located.raw_fields)
        if not context.fragments:
            raise ValidationError(
                f"Handler for '{located.item.type}' produced no content",
                node_path=located.path,
            )

        node = ContentNode(
            type_tag=located.item.type,
            raw_fields=located.raw_fields,
            path=located.path,
            resolved_fragments=context.fragments,
            media_refs=[asset.destination_path for asset in media.assets[first_media:]],
            fallback=context.fallbacks > 0,
        )
        logger.debug(
            "node_processed",
            node_path=located.path,
            content_type=located.item.type,
            fragments=len(context.fragments),
        )
        return node, context

    def _compile_book(
        self,
        document: BookDocument,
        items: list[DocumentItem],
        media: MediaCollector,
    ) -> CompiledPackage:
        builder = BookContentBuilder(document.title, cover_description=document.description)
        chapters = [builder.start_chapter(chapter.title) for chapter in document.chapters]

        nodes: list[ContentNode] = []
        fallbacks = 0
        for located in items:
            assert located.chapter_index is not None
            chapter_spec = document.chapters[located.chapter_index]
            node, context = self._process(
                located,
                package_title=document.title,
                media=media,
                chapter_title=chapter_spec.title,
                ai_scopes=(chapter_spec.ai_config, document.ai_config),
            )
            for position, fragment in enumerate(node.resolved_fragments):
                chapters[located.chapter_index].add(
                    fragment, node_path=located.path, position=position
                )
            nodes.append(node)
            fallbacks += context.fallbacks

        root = self.book_library
        dependency_set = self.resolver.resolve_for_document(
            [node.type_tag for node in nodes],
            root,
            extra=[LibraryIdentifier.parse(library) for library in BOOK_LAYOUT_LIBRARIES],
        )
        if self.settings.check_semantics:
            checker = SemanticsChecker(dependency_set)
            for node in nodes:
                for fragment in node.resolved_fragments:
                    checker.check(fragment["library"], fragment["params"], node_path=node.path)
        return CompiledPackage(
            manifest=PackageManifest.for_package(
                title=document.title,
                language=document.language,
                root=root,
                dependency_set=dependency_set,
            ),
            content_tree=builder.build(),
            dependency_set=dependency_set,
            media_assets=list(media.assets),
            nodes=nodes,
            kind="book",
            root_library=root,
            compiled_at=datetime.now(timezone.utc),
            ai_fallbacks=fallbacks,
        )

    def _compile_standalone(
        self,
        document: StandaloneDocument,
        located: DocumentItem,
        media: MediaCollector,
    ) -> CompiledPackage:
        node, context = self._process(
            located,
            package_title=document.title,
            media=media,
            chapter_title=None,
            ai_scopes=(document.ai_config,),
        )
        if len(node.resolved_fragments) != 1:
            raise ValidationError(
                f"Standalone content must produce exactly one fragment, "
                f"got {len(node.resolved_fragments)}",
                node_path=located.path,
            )
        fragment = node.resolved_fragments[0]
        # The emitted library is the root (an AI fallback emits text instead)
        root = LibraryIdentifier.parse(fragment["library"])
        content_tree = dict(fragment["params"])
        if document.description and content_tree.get("taskDescription") == "":
            content_tree["taskDescription"] = f"<p>{escape_html(document.description)}</p>"

        dependency_set = self.resolver.resolve_for_document([node.type_tag], root)
        if self.settings.check_semantics:
            SemanticsChecker(dependency_set).check(
                fragment["library"], content_tree, node_path=located.path
            )
        return CompiledPackage(
            manifest=PackageManifest.for_package(
                title=document.title,
                language=document.language,
                root=root,
                dependency_set=dependency_set,
            ),
            content_tree=content_tree,
            dependency_set=dependency_set,
            media_assets=list(media.assets),
            nodes=[node],
            kind="standalone",
            root_library=root,
            compiled_at=datetime.now(timezone.utc),
            ai_fallbacks=context.fallbacks,
        )
