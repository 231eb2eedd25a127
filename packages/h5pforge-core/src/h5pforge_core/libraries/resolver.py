"""Library dependency resolver for h5pforge.

This module computes the flattened set of libraries a package needs:
- LibraryResolver: depth-first walk of manifest dependencies via the store
- first_seen_wins / strict_versions: merge policies for version conflicts

Resolution is deliberately not a constraint solver. The first version of a
library reached by the walk is kept; any later request for a different
version of the same library is handed to the merge policy.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from h5pforge_core.errors import CycleError, UnknownContentTypeError, VersionConflictError
from h5pforge_core.libraries.models import DependencySet, LibraryIdentifier

if TYPE_CHECKING:
    from h5pforge_core.handlers.registry import HandlerRegistry
    from h5pforge_core.libraries.store import LibraryStore

logger = structlog.get_logger(__name__)

MergePolicy = Callable[[Mapping[str, LibraryIdentifier], LibraryIdentifier], bool]


def first_seen_wins(claimed: Mapping[str, LibraryIdentifier], candidate: LibraryIdentifier) -> bool:
    """Accept ``candidate`` only if no version of its library was claimed yet.

    A conflicting version is logged and skipped; the claimed version stays.

    Returns:
        True if the candidate should be fetched and added.
    """
    existing = claimed.get(candidate.machine_name)
    if existing is None:
        return True
    if existing.key != candidate.key:
        logger.warning(
            "library_version_conflict",
            library=candidate.machine_name,
            kept=existing.version,
            rejected=candidate.version,
        )
    return False


def strict_versions(claimed: Mapping[str, LibraryIdentifier], candidate: LibraryIdentifier) -> bool:
    """Like first_seen_wins, but a conflicting version is an error.

    Raises:
        VersionConflictError: If another version of the library was claimed.
    """
    existing = claimed.get(candidate.machine_name)
    if existing is None:
        return True
    if existing.key != candidate.key:
        raise VersionConflictError(candidate.machine_name, existing.key, candidate.key)
    return False


@dataclass
class _Resolution:
    """Mutable state of one resolve call."""

    dependency_set: DependencySet = field(default_factory=DependencySet)
    claimed: dict[str, LibraryIdentifier] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)
    path: list[str] = field(default_factory=list)


class LibraryResolver:
    """Resolves the transitive library dependencies of a package.

    Attributes:
        store: LibraryStore used to load (and on a miss, fetch) bundles.
        registry: HandlerRegistry used to map content types to libraries.
        merge_policy: Decides what happens when two versions of a library meet.
        include_editor_dependencies: Also walk ``editorDependencies``.

    Example:
        >>> resolver = LibraryResolver(store, registry=default_registry())
        >>> deps = resolver.resolve(LibraryIdentifier.parse("H5P.Image 1.1"))
        >>> "H5P.Image" in deps
        True
    """

    def __init__(
        self,
        store: LibraryStore,
        *,
        registry: HandlerRegistry | None = None,
        merge_policy: MergePolicy = first_seen_wins,
        include_editor_dependencies: bool = False,
    ) -> None:
        self.store = store
        self.registry = registry
        self.merge_policy = merge_policy
        self.include_editor_dependencies = include_editor_dependencies

    def resolve(self, root_id: LibraryIdentifier) -> DependencySet:
        """Resolve ``root_id`` and everything it depends on.

        Returns:
            DependencySet ordered leaves first, ``root_id`` last.

        Raises:
            FetchError: If a library is missing from the cache and cannot be fetched.
            IntegrityError: If a fetched bundle does not match its identifier.
            CycleError: If the manifests declare a dependency cycle.
        """
        state = _Resolution()
        self._visit(root_id, state)
        self._log_resolved(state, root=root_id.key)
        return state.dependency_set

    def resolve_for_document(
        self,
        used_type_tags: Iterable[str],
        root_id: LibraryIdentifier,
        extra: Iterable[LibraryIdentifier] = (),
    ) -> DependencySet:
        """Resolve every library a compiled document needs.

        The root library is walked first so its own dependency versions win.
        Then the libraries of each distinct content type, in first-use
        order, then ``extra`` (structural libraries such as layout wrappers).

        Args:
            used_type_tags: Content type tags of the handlers actually invoked.
            root_id: Root library of the package kind.
            extra: Additional libraries to include.

        Raises:
            UnknownContentTypeError: If a tag has no registered handler.
            ValueError: If tags are given but the resolver has no registry.
        """
        state = _Resolution()
        self._visit(root_id, state)

        tags = list(dict.fromkeys(used_type_tags))
        if tags and self.registry is None:
            raise ValueError("resolve_for_document needs a HandlerRegistry to map content types")
        for tag in tags:
            assert self.registry is not None
            handler = self.registry.lookup(tag)
            if handler is None:
                raise UnknownContentTypeError(tag, available=self.registry.tags())
            for identifier in handler.required_libraries():
                self._visit(identifier, state)

        for identifier in extra:
            self._visit(identifier, state)

        self._log_resolved(state, root=root_id.key, content_types=tags)
        return state.dependency_set

    def _visit(self, identifier: LibraryIdentifier, state: _Resolution) -> None:
        key = identifier.key
        if key in state.path:
            start = state.path.index(key)
            raise CycleError([*state.path[start:], key])
        if key in state.visited:
            return
        if not self.merge_policy(state.claimed, identifier):
            return

        state.claimed[identifier.machine_name] = identifier
        state.path.append(key)
        bundle = self.store.get(identifier)

        dependencies = list(bundle.manifest.declared_dependencies)
        if self.include_editor_dependencies:
            dependencies.extend(dep.to_identifier() for dep in bundle.manifest.editor_dependencies)
        for dependency in dependencies:
            self._visit(dependency, state)

        state.path.pop()
        state.visited.add(key)
        state.dependency_set.add(bundle)

    @staticmethod
    def _log_resolved(state: _Resolution, **context: object) -> None:
        logger.info(
            "libraries_resolved",
            count=len(state.dependency_set),
            libraries=[i.key for i in state.dependency_set.identifiers()],
            **context,
        )
