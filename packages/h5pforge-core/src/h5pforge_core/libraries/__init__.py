"""Library cache and dependency resolution for h5pforge.

This package provides:
- LibraryIdentifier / LibraryManifest / LibraryBundle / DependencySet: value types
- LibrarySource / HubLibrarySource: remote source of library archives
- LibraryStore: on-disk cache keyed by ``name-major.minor``
- LibraryResolver: transitive dependency walk with a pluggable merge policy
"""

from __future__ import annotations

from h5pforge_core.libraries.models import (
    DependencySet,
    LibraryBundle,
    LibraryDependency,
    LibraryIdentifier,
    LibraryManifest,
)
from h5pforge_core.libraries.resolver import (
    LibraryResolver,
    MergePolicy,
    first_seen_wins,
    strict_versions,
)
from h5pforge_core.libraries.source import HubLibrarySource, LibrarySource
from h5pforge_core.libraries.store import LibraryStore

__all__ = [
    "DependencySet",
    "HubLibrarySource",
    "LibraryBundle",
    "LibraryDependency",
    "LibraryIdentifier",
    "LibraryManifest",
    "LibraryResolver",
    "LibrarySource",
    "LibraryStore",
    "MergePolicy",
    "first_seen_wins",
    "strict_versions",
]
