"""Compiler output models for h5pforge.

This module defines the models produced by the Compiler and consumed by
the PackageAssembler:
- ContentNode: one processed document item and what it produced
- PackageManifest: the package's ``h5p.json``
- CompiledPackage: everything needed to write a package, immutable
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from h5pforge_core.libraries.models import DependencySet, LibraryDependency, LibraryIdentifier
from h5pforge_core.media import MediaAsset

PackageKind = Literal["book", "standalone"]


class ContentNode(BaseModel):
    """One declared content item after processing.

    Attributes:
        type_tag: Content type tag of the item.
        raw_fields: The item's fields as declared.
        path: Location in the document (``chapters[1].content[0]``).
        resolved_fragments: Fragments the handler emitted (usually one).
        media_refs: Package paths of media the handler added.
        fallback: True when an AI fallback fragment was emitted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type_tag: str
    raw_fields: dict[str, Any]
    path: str
    resolved_fragments: list[dict[str, Any]] = Field(default_factory=list)
    media_refs: list[str] = Field(default_factory=list)
    fallback: bool = False


class PackageManifest(BaseModel):
    """The ``h5p.json`` at the package root.

    Example:
        >>> manifest.to_json_dict()["mainLibrary"]
        'H5P.InteractiveBook'
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    title: str = Field(..., min_length=1)
    language: str = Field(default="en")
    main_library: str = Field(..., alias="mainLibrary")
    embed_types: list[str] = Field(default_factory=lambda: ["div"], alias="embedTypes")
    license: str = Field(default="U")
    preloaded_dependencies: list[LibraryDependency] = Field(
        default_factory=list, alias="preloadedDependencies"
    )

    @classmethod
    def for_package(
        cls,
        *,
        title: str,
        language: str,
        root: LibraryIdentifier,
        dependency_set: DependencySet,
    ) -> PackageManifest:
        return cls(
            title=title,
            language=language,
            main_library=root.machine_name,
            preloaded_dependencies=[
                LibraryDependency(
                    machine_name=i.machine_name,
                    major_version=i.major_version,
                    minor_version=i.minor_version,
                )
                for i in dependency_set.identifiers()
            ],
        )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class CompiledPackage(BaseModel):
    """A fully compiled package, ready for assembly.

    Attributes:
        manifest: Package ``h5p.json``.
        content_tree: Serialized as ``content/content.json``.
        dependency_set: Resolved libraries (root included).
        media_assets: Media copied under ``content/``.
        nodes: Processed nodes in document order.
        kind: ``book`` or ``standalone``.
        root_library: Root library of the package.
        compiled_at: Compilation timestamp (UTC).
        ai_fallbacks: Number of AI items that fell back to placeholder text.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    manifest: PackageManifest
    content_tree: dict[str, Any]
    dependency_set: DependencySet
    media_assets: list[MediaAsset] = Field(default_factory=list)
    nodes: list[ContentNode] = Field(default_factory=list)
    kind: PackageKind
    root_library: LibraryIdentifier
    compiled_at: datetime
    ai_fallbacks: int = Field(default=0, ge=0)

    @property
    def used_type_tags(self) -> list[str]:
        return list(dict.fromkeys(node.type_tag for node in self.nodes))
