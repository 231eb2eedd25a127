"""h5pforge-core: Compile content documents into H5P packages.

This package provides:
- Compiler: Turn a BookDocument / StandaloneDocument into a CompiledPackage
- PackageAssembler: Write a CompiledPackage as an .h5p archive
- LibraryStore / LibraryResolver: Cached H5P libraries and their dependencies
- HandlerRegistry / default_registry: Content type handlers
- AIService / create_generator: AI text generation for AI content types
- CompilerSettings: Environment-driven configuration
"""

from __future__ import annotations

__version__ = "0.1.0"

# AI generation
from h5pforge_core.ai import AIService, TextGenerator, create_generator

# Compiler and output models
from h5pforge_core.compiler import (
    CompiledPackage,
    Compiler,
    ContentNode,
    PackageAssembler,
    PackageManifest,
)
from h5pforge_core.config import CompilerSettings

# Error types
from h5pforge_core.errors import (
    AIGenerationFailure,
    AssemblyError,
    CycleError,
    DocumentError,
    DuplicateHandlerError,
    FetchError,
    H5PForgeError,
    IntegrityError,
    LibraryError,
    MissingAssetError,
    UnknownContentTypeError,
    ValidationError,
    VersionConflictError,
    WriteError,
)

# JSON Schema export
from h5pforge_core.export import export_document_schema

# Content handlers
from h5pforge_core.handlers import ContentHandler, HandlerRegistry, default_registry

# Libraries
from h5pforge_core.libraries import (
    DependencySet,
    HubLibrarySource,
    LibraryBundle,
    LibraryIdentifier,
    LibraryResolver,
    LibraryStore,
)

# Document schemas
from h5pforge_core.schemas import (
    AIConfig,
    BookDocument,
    ContentItem,
    Document,
    StandaloneDocument,
    load_document,
    parse_document,
)

__all__ = [
    "__version__",
    # Compiler
    "Compiler",
    "CompiledPackage",
    "ContentNode",
    "PackageAssembler",
    "PackageManifest",
    "CompilerSettings",
    # Libraries
    "DependencySet",
    "HubLibrarySource",
    "LibraryBundle",
    "LibraryIdentifier",
    "LibraryResolver",
    "LibraryStore",
    # Handlers
    "ContentHandler",
    "HandlerRegistry",
    "default_registry",
    # AI
    "AIService",
    "TextGenerator",
    "create_generator",
    # Errors
    "H5PForgeError",
    "DocumentError",
    "UnknownContentTypeError",
    "ValidationError",
    "DuplicateHandlerError",
    "LibraryError",
    "FetchError",
    "IntegrityError",
    "CycleError",
    "VersionConflictError",
    "AssemblyError",
    "MissingAssetError",
    "WriteError",
    "AIGenerationFailure",
    # JSON Schema export
    "export_document_schema",
    # Document schemas
    "AIConfig",
    "BookDocument",
    "ContentItem",
    "Document",
    "StandaloneDocument",
    "load_document",
    "parse_document",
]
