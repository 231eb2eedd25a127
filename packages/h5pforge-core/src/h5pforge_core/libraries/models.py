"""Library models for h5pforge.

This module defines the value types shared by the library store, the
resolver and the package assembler:
- LibraryIdentifier: immutable ``name + major.minor[.patch]`` key
- LibraryManifest: parsed ``library.json``
- LibraryBundle: manifest plus the library's files
- DependencySet: deduplicated, ordered set of bundles for one package
"""

from __future__ import annotations

from collections.abc import Iterator
import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

MACHINE_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_.-]*$"

# "H5P.Image 1.1", "H5P.Image 1.1.27", "H5P.Image-1.1"
_IDENTIFIER_RE = re.compile(
    r"^(?P<name>[A-Za-z][A-Za-z0-9_.-]*?)[ -](?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?$"
)

LIBRARY_JSON = "library.json"


class LibraryIdentifier(BaseModel):
    """Versioned library key.

    The cache and deduplication key is ``name-major.minor``; the patch
    version is informational and only compared when both sides carry one.

    Example:
        >>> lib = LibraryIdentifier.parse("H5P.Image 1.1")
        >>> lib.key
        'H5P.Image-1.1'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    machine_name: str = Field(..., min_length=1, pattern=MACHINE_NAME_PATTERN)
    major_version: int = Field(..., ge=0)
    minor_version: int = Field(..., ge=0)
    patch_version: int | None = Field(default=None, ge=0)

    @classmethod
    def parse(cls, value: str) -> LibraryIdentifier:
        """Parse ``"Name M.m"``, ``"Name M.m.p"`` or ``"Name-M.m"``.

        Raises:
            ValueError: If the string is not a library identifier.
        """
        match = _IDENTIFIER_RE.match(value.strip())
        if match is None:
            raise ValueError(f"Not a library identifier: {value!r} (expected 'Name 1.2')")
        patch = match.group("patch")
        return cls(
            machine_name=match.group("name"),
            major_version=int(match.group("major")),
            minor_version=int(match.group("minor")),
            patch_version=int(patch) if patch is not None else None,
        )

    @property
    def key(self) -> str:
        """Normalized ``name-major.minor`` key (also the package directory name)."""
        return f"{self.machine_name}-{self.major_version}.{self.minor_version}"

    @property
    def version(self) -> str:
        base = f"{self.major_version}.{self.minor_version}"
        return base if self.patch_version is None else f"{base}.{self.patch_version}"

    @property
    def library_string(self) -> str:
        """Library reference as used inside content params (``"H5P.Image 1.1"``)."""
        return f"{self.machine_name} {self.major_version}.{self.minor_version}"

    def matches(self, other: LibraryIdentifier) -> bool:
        """Check whether two identifiers denote the same library version."""
        if self.key != other.key:
            return False
        if self.patch_version is None or other.patch_version is None:
            return True
        return self.patch_version == other.patch_version

    def __str__(self) -> str:
        return f"{self.machine_name} {self.version}"


class LibraryDependency(BaseModel):
    """Dependency entry as it appears in ``library.json`` and ``h5p.json``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    machine_name: str = Field(..., alias="machineName")
    major_version: int = Field(..., alias="majorVersion")
    minor_version: int = Field(..., alias="minorVersion")

    def to_identifier(self) -> LibraryIdentifier:
        return LibraryIdentifier(
            machine_name=self.machine_name,
            major_version=self.major_version,
            minor_version=self.minor_version,
        )


class PreloadedFile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str


class LibraryManifest(BaseModel):
    """Parsed ``library.json``.

    Only the keys the compiler uses are modeled; the original bytes are
    kept in the bundle and copied into packages verbatim.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    machine_name: str = Field(..., alias="machineName")
    title: str = Field(default="")
    major_version: int = Field(..., alias="majorVersion")
    minor_version: int = Field(..., alias="minorVersion")
    patch_version: int = Field(default=0, alias="patchVersion")
    runnable: int = Field(default=0)
    embed_types: list[str] = Field(default_factory=list, alias="embedTypes")
    preloaded_js: list[PreloadedFile] = Field(default_factory=list, alias="preloadedJs")
    preloaded_css: list[PreloadedFile] = Field(default_factory=list, alias="preloadedCss")
    preloaded_dependencies: list[LibraryDependency] = Field(
        default_factory=list, alias="preloadedDependencies"
    )
    editor_dependencies: list[LibraryDependency] = Field(
        default_factory=list, alias="editorDependencies"
    )

    @classmethod
    def from_json_bytes(cls, data: bytes) -> LibraryManifest:
        """Parse ``library.json`` content.

        Raises:
            ValueError: If the content is not valid JSON or lacks required keys.
        """
        try:
            raw: Any = json.loads(data.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"library.json is not valid JSON: {e}") from e
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"library.json is missing required fields: {e}") from e

    @property
    def identifier(self) -> LibraryIdentifier:
        return LibraryIdentifier(
            machine_name=self.machine_name,
            major_version=self.major_version,
            minor_version=self.minor_version,
            patch_version=self.patch_version,
        )

    @property
    def declared_dependencies(self) -> list[LibraryIdentifier]:
        return [dep.to_identifier() for dep in self.preloaded_dependencies]


class LibraryBundle(BaseModel):
    """A library's manifest plus all of its files.

    ``files`` maps paths relative to the library directory to their bytes
    and always contains ``library.json``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    identifier: LibraryIdentifier
    manifest: LibraryManifest
    files: dict[str, bytes] = Field(default_factory=dict)

    @classmethod
    def from_files(cls, files: dict[str, bytes]) -> LibraryBundle:
        """Build a bundle from a library directory's files.

        Raises:
            ValueError: If ``library.json`` is absent or invalid.
        """
        if LIBRARY_JSON not in files:
            raise ValueError("library.json not found in library files")
        manifest = LibraryManifest.from_json_bytes(files[LIBRARY_JSON])
        return cls(identifier=manifest.identifier, manifest=manifest, files=dict(files))

    @property
    def directory(self) -> str:
        return self.identifier.key


class DependencySet:
    """Ordered, deduplicated set of library bundles required by one package.

    At most one bundle per machine name. Insertion order is preserved so
    the package lists dependencies before the libraries that need them.
    """

    def __init__(self, bundles: list[LibraryBundle] | None = None) -> None:
        self._bundles: dict[str, LibraryBundle] = {}
        for bundle in bundles or []:
            self.add(bundle)

    def add(self, bundle: LibraryBundle) -> None:
        """Add a bundle.

        Raises:
            ValueError: If a different version of the same library is present.
        """
        name = bundle.identifier.machine_name
        existing = self._bundles.get(name)
        if existing is not None and existing.identifier.key != bundle.identifier.key:
            raise ValueError(
                f"{name} already present as {existing.identifier.key}, "
                f"cannot add {bundle.identifier.key}"
            )
        self._bundles.setdefault(name, bundle)

    def get(self, machine_name: str) -> LibraryBundle | None:
        return self._bundles.get(machine_name)

    def names(self) -> list[str]:
        return list(self._bundles)

    def identifiers(self) -> list[LibraryIdentifier]:
        return [bundle.identifier for bundle in self._bundles.values()]

    def same_members(self, other: DependencySet) -> bool:
        """Order-independent comparison by ``name-major.minor`` key."""
        return {i.key for i in self.identifiers()} == {i.key for i in other.identifiers()}

    def __contains__(self, item: object) -> bool:
        if isinstance(item, LibraryIdentifier):
            bundle = self._bundles.get(item.machine_name)
            return bundle is not None and bundle.identifier.key == item.key
        if isinstance(item, str):
            return item in self._bundles
        return False

    def __iter__(self) -> Iterator[LibraryBundle]:
        return iter(list(self._bundles.values()))

    def __len__(self) -> int:
        return len(self._bundles)

    def __repr__(self) -> str:
        return f"DependencySet({[i.key for i in self.identifiers()]})"
