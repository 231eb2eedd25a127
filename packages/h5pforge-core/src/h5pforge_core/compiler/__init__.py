"""Compiler module for h5pforge.

This module exports the Compiler class, the package assembler and output models:
- Compiler: Main compiler class
- PackageAssembler: Serialize a CompiledPackage as an .h5p archive
- BookContentBuilder: Interactive book content tree (Column / Row / RowColumn)
- SemanticsChecker: Check content against library semantics.json files
- CompiledPackage: Output of a compilation
- PackageManifest: The package h5p.json
- ContentNode: One processed document item
"""

from __future__ import annotations

from h5pforge_core.compiler.assembler import PackageAssembler
from h5pforge_core.compiler.compiler import Compiler, DocumentItem
from h5pforge_core.compiler.content import (
    BOOK_LAYOUT_LIBRARIES,
    BookContentBuilder,
    ChapterBuilder,
)
from h5pforge_core.compiler.models import (
    CompiledPackage,
    ContentNode,
    PackageKind,
    PackageManifest,
)
from h5pforge_core.compiler.semantics import (
    SemanticField,
    SemanticIssue,
    SemanticsChecker,
    parse_semantics,
)

__all__: list[str] = [
    # Compiler class
    "Compiler",
    "DocumentItem",
    # Assembly
    "PackageAssembler",
    # Book content tree
    "BookContentBuilder",
    "ChapterBuilder",
    "BOOK_LAYOUT_LIBRARIES",
    # Semantics checks
    "SemanticsChecker",
    "SemanticField",
    "SemanticIssue",
    "parse_semantics",
    # Output models
    "CompiledPackage",
    "ContentNode",
    "PackageKind",
    "PackageManifest",
]
