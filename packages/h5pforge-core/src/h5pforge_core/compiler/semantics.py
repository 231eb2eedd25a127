"""Content checks against library ``semantics.json`` files.

H5P libraries describe their content parameters in ``semantics.json``: a
list of field definitions (text, number, boolean, group, list, library and
media fields). Before a package is assembled, every fragment whose library
ships a ``semantics.json`` is checked against it:

- required fields are present (fields that are optional, have a default,
  are boolean, or are ``common`` may be omitted)
- values have the type the field declares
- numbers and list lengths respect ``min`` / ``max``
- library fields hold ``{"library": ..., "params": ...}`` objects, whose
  params are checked against that library in turn

Libraries without a ``semantics.json`` are not checked.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
import structlog

from h5pforge_core.errors import IntegrityError, ValidationError
from h5pforge_core.libraries.models import DependencySet, LibraryIdentifier

logger = structlog.get_logger(__name__)

SEMANTICS_JSON = "semantics.json"

# semantics field type -> JSON value type
EXPECTED_TYPES: dict[str, str] = {
    "text": "string",
    "number": "number",
    "boolean": "boolean",
    "list": "array",
    "group": "object",
    "library": "object",
    "image": "object",
    "video": "object",
    "audio": "object",
    "file": "object",
}


class SemanticField(BaseModel):
    """One field definition from ``semantics.json``.

    Keys the checker does not use (``widget``, ``importance``, ...) are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    type: str
    label: str | None = None
    optional: bool = False
    default: Any = None
    common: bool = False
    min: float | None = None
    max: float | None = None
    options: list[Any] = Field(default_factory=list)
    fields: list[SemanticField] = Field(default_factory=list)
    field: SemanticField | None = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    @property
    def may_be_omitted(self) -> bool:
        if self.optional or self.has_default or self.common or self.type == "boolean":
            return True
        return self.type == "group" and bool(self.fields) and all(
            child.may_be_omitted for child in self.fields
        )


SemanticField.model_rebuild()


@dataclass(frozen=True)
class SemanticIssue:
    """A mismatch between content and a field definition."""

    field_path: str
    message: str

    def __str__(self) -> str:
        return f"{self.field_path}: {self.message}" if self.field_path else self.message


def parse_semantics(raw: Any) -> list[SemanticField]:
    """Parse the decoded contents of a ``semantics.json`` file.

    Raises:
        ValueError: If ``raw`` is not a list of field definitions.
    """
    if not isinstance(raw, list):
        raise ValueError("semantics must be a list of field definitions")
    return [SemanticField.model_validate(item) for item in raw]


def field_definition(path: str, fields: list[SemanticField]) -> SemanticField | None:
    """Find a field by dotted path, stepping into groups and list items.

    Example:
        >>> field_definition("panels.title", accordion_fields).type
        'text'
    """
    current: SemanticField | None = None
    candidates = fields
    parts = path.split(".")
    for index, part in enumerate(parts):
        current = next((f for f in candidates if f.name == part), None)
        if current is None:
            return None
        if index == len(parts) - 1:
            break
        container = current.field if current.type == "list" else current
        if container is None or container.type != "group":
            return None
        candidates = container.fields
    return current


def _value_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


class SemanticsChecker:
    """Checks fragments against the semantics of the libraries in a package.

    Parsed semantics are kept per library, so each ``semantics.json`` is
    read at most once per package.

    Example:
        >>> checker = SemanticsChecker(package.dependency_set)
        >>> checker.issues("H5P.TrueFalse 1.8", {"question": "<p>Sky is blue</p>"})
        []
    """

    def __init__(self, dependency_set: DependencySet) -> None:
        self.dependency_set = dependency_set
        self._semantics: dict[str, list[SemanticField] | None] = {}

    def semantics_for(self, library: str) -> list[SemanticField] | None:
        """Field definitions of a packaged library (None: nothing to check).

        Raises:
            IntegrityError: If the library's ``semantics.json`` cannot be parsed.
        """
        try:
            identifier = LibraryIdentifier.parse(library)
        except ValueError:
            return None
        bundle = self.dependency_set.get(identifier.machine_name)
        if bundle is None:
            return None

        key = bundle.identifier.key
        if key not in self._semantics:
            raw = bundle.files.get(SEMANTICS_JSON)
            if raw is None:
                self._semantics[key] = None
            else:
                try:
                    self._semantics[key] = parse_semantics(json.loads(raw))
                except ValueError as e:
                    raise IntegrityError(
                        bundle.identifier, f"unreadable {SEMANTICS_JSON}: {e}"
                    ) from e
        return self._semantics[key]

    def issues(self, library: str, params: Any, path: str = "") -> list[SemanticIssue]:
        """Return every mismatch between ``params`` and ``library``'s semantics."""
        fields = self.semantics_for(library)
        if fields is None:
            return []
        if not isinstance(params, Mapping):
            return [SemanticIssue(path, f"params of {library} must be an object")]
        found: list[SemanticIssue] = []
        for field in fields:
            self._check_field(params, field, _join(path, field.name), found)
        return found

    def check(self, library: str, params: Any, *, node_path: str) -> None:
        """Raise on the first mismatch.

        Raises:
            ValidationError: Naming ``node_path`` and the offending field.
        """
        found = self.issues(library, params)
        if not found:
            return
        first = found[0]
        more = f" ({len(found) - 1} more)" if len(found) > 1 else ""
        logger.debug(
            "semantics_mismatch",
            library=library,
            node_path=node_path,
            issues=[str(issue) for issue in found],
        )
        raise ValidationError(
            f"content does not match {library} semantics: {first.message}{more}",
            node_path=node_path,
            field=first.field_path or None,
        )

    def _check_field(
        self,
        container: Mapping[str, Any],
        field: SemanticField,
        path: str,
        found: list[SemanticIssue],
    ) -> None:
        value = container.get(field.name)
        if value is None:
            if not field.may_be_omitted:
                found.append(SemanticIssue(path, f"required field '{field.name}' is missing"))
            return
        self._check_value(value, field, path, found)

    def _check_value(
        self,
        value: Any,
        field: SemanticField,
        path: str,
        found: list[SemanticIssue],
    ) -> None:
        # H5P stores a group with a single field as that field's value
        if field.type == "group" and len(field.fields) == 1:
            self._check_value(value, field.fields[0], path, found)
            return

        expected = EXPECTED_TYPES.get(field.type)
        if expected is None:
            return
        actual = _value_type(value)
        if actual != expected:
            found.append(SemanticIssue(path, f"expected {expected}, got {actual}"))
            return

        if field.type == "number":
            if field.min is not None and value < field.min:
                found.append(SemanticIssue(path, f"must be at least {field.min:g}"))
            if field.max is not None and value > field.max:
                found.append(SemanticIssue(path, f"must be at most {field.max:g}"))
        elif field.type == "list":
            if field.min is not None and len(value) < field.min:
                found.append(SemanticIssue(path, f"needs at least {field.min:g} item(s)"))
            if field.max is not None and len(value) > field.max:
                found.append(SemanticIssue(path, f"allows at most {field.max:g} item(s)"))
            if field.field is not None:
                for index, item in enumerate(value):
                    self._check_value(item, field.field, f"{path}[{index}]", found)
        elif field.type == "group":
            for child in field.fields:
                self._check_field(value, child, _join(path, child.name), found)
        elif field.type == "library":
            library = value.get("library")
            if not isinstance(library, str):
                if field.options:
                    found.append(SemanticIssue(path, "library object needs a 'library' name"))
                return
            found.extend(self.issues(library, value.get("params", {}), _join(path, "params")))
