"""Unit tests for checking content against library semantics.json."""

from __future__ import annotations

from collections.abc import Callable
import json
from typing import Any

import pytest

from h5pforge_core.compiler.semantics import (
    SemanticsChecker,
    field_definition,
    parse_semantics,
)
from h5pforge_core.errors import IntegrityError, ValidationError
from h5pforge_core.libraries.models import DependencySet, LibraryBundle

TEXT_SEMANTICS = [{"name": "text", "type": "text", "widget": "html", "label": "Text"}]

ACCORDION_SEMANTICS = [
    {
        "name": "panels",
        "type": "list",
        "min": 1,
        "max": 3,
        "field": {
            "name": "panel",
            "type": "group",
            "fields": [
                {"name": "title", "type": "text"},
                {
                    "name": "content",
                    "type": "library",
                    "options": ["H5P.AdvancedText 1.1"],
                },
            ],
        },
    },
    {"name": "hTag", "type": "select", "default": "h2", "options": [{"value": "h2"}]},
]

SCALE_SEMANTICS = [
    {"name": "steps", "type": "number", "min": 2, "max": 10},
    {"name": "shuffle", "type": "boolean"},
    {"name": "caption", "type": "text", "optional": True},
    {"name": "l10n", "type": "group", "common": True, "fields": [{"name": "a", "type": "text"}]},
    {
        "name": "behaviour",
        "type": "group",
        "fields": [
            {"name": "retry", "type": "boolean", "default": True},
            {"name": "label", "type": "text", "default": "Go"},
        ],
    },
    {"name": "intro", "type": "group", "fields": [{"name": "heading", "type": "text"}]},
]


def text_panel(title: str, text: Any) -> dict[str, Any]:
    return {
        "title": title,
        "content": {"library": "H5P.AdvancedText 1.1", "params": {"text": text}},
    }


@pytest.fixture
def make_dependency_set(
    make_library_files: Callable[..., dict[str, bytes]],
) -> Callable[..., DependencySet]:
    """Build a DependencySet from ``{library: semantics}`` (None: no semantics.json)."""

    def factory(libraries: dict[str, Any]) -> DependencySet:
        bundles = []
        for library, semantics in libraries.items():
            files = make_library_files(library)
            if isinstance(semantics, bytes):
                files["semantics.json"] = semantics
            elif semantics is not None:
                files["semantics.json"] = json.dumps(semantics).encode()
            bundles.append(LibraryBundle.from_files(files))
        return DependencySet(bundles)

    return factory


@pytest.fixture
def checker(make_dependency_set: Callable[..., DependencySet]) -> SemanticsChecker:
    return SemanticsChecker(
        make_dependency_set(
            {
                "H5P.AdvancedText 1.1": TEXT_SEMANTICS,
                "H5P.Accordion 1.0": ACCORDION_SEMANTICS,
                "H5P.Scale 1.0": SCALE_SEMANTICS,
                "H5P.Image 1.1": None,
            }
        )
    )


class TestParseSemantics:
    def test_nested_definitions(self) -> None:
        fields = parse_semantics(ACCORDION_SEMANTICS)
        panel = fields[0].field
        assert panel is not None
        assert [f.name for f in panel.fields] == ["title", "content"]
        assert fields[1].has_default

    def test_not_a_list(self) -> None:
        with pytest.raises(ValueError, match="list of field definitions"):
            parse_semantics({"name": "text", "type": "text"})

    def test_field_definition_steps_into_list_items(self) -> None:
        fields = parse_semantics(ACCORDION_SEMANTICS)
        found = field_definition("panels.content", fields)
        assert found is not None
        assert found.type == "library"
        assert field_definition("panels.missing", fields) is None
        assert field_definition("hTag.value", fields) is None


class TestIssues:
    def test_matching_content(self, checker: SemanticsChecker) -> None:
        params = {"panels": [text_panel("One", "<p>Hi</p>")], "hTag": "h2"}
        assert checker.issues("H5P.Accordion 1.0", params) == []

    def test_library_without_semantics_is_not_checked(self, checker: SemanticsChecker) -> None:
        assert checker.issues("H5P.Image 1.1", {"anything": 1}) == []

    def test_unpackaged_library_is_not_checked(self, checker: SemanticsChecker) -> None:
        assert checker.issues("H5P.Video 1.6", {}) == []

    def test_missing_required_field(self, checker: SemanticsChecker) -> None:
        [issue] = checker.issues("H5P.AdvancedText 1.1", {})
        assert issue.field_path == "text"
        assert "required field 'text' is missing" in issue.message

    def test_wrong_type(self, checker: SemanticsChecker) -> None:
        [issue] = checker.issues("H5P.AdvancedText 1.1", {"text": 5})
        assert str(issue) == "text: expected string, got number"

    def test_list_bounds(self, checker: SemanticsChecker) -> None:
        [empty] = checker.issues("H5P.Accordion 1.0", {"panels": []})
        assert "at least 1" in empty.message
        panels = [text_panel(str(i), "x") for i in range(4)]
        [full] = checker.issues("H5P.Accordion 1.0", {"panels": panels})
        assert "at most 3" in full.message

    def test_nested_library_params_are_checked(self, checker: SemanticsChecker) -> None:
        params = {"panels": [text_panel("One", "ok"), text_panel("Two", ["not", "text"])]}
        [issue] = checker.issues("H5P.Accordion 1.0", params)
        assert issue.field_path == "panels[1].content.params.text"

    def test_list_item_of_wrong_type(self, checker: SemanticsChecker) -> None:
        [issue] = checker.issues("H5P.Accordion 1.0", {"panels": ["One"]})
        assert issue.field_path == "panels[0]"
        assert "expected object" in issue.message

    def test_omittable_fields(self, checker: SemanticsChecker) -> None:
        """Optional, defaulted, boolean and common fields may be left out."""
        params = {"steps": 5, "intro": "Welcome"}
        assert checker.issues("H5P.Scale 1.0", params) == []

    def test_single_field_group_holds_the_value(self, checker: SemanticsChecker) -> None:
        [issue] = checker.issues("H5P.Scale 1.0", {"steps": 5, "intro": {"heading": "Hi"}})
        assert issue.field_path == "intro"
        assert "expected string, got object" in issue.message

    @pytest.mark.parametrize(
        ("steps", "message"),
        [(1, "at least 2"), (11, "at most 10"), (True, "expected number, got boolean")],
    )
    def test_number_rules(self, checker: SemanticsChecker, steps: Any, message: str) -> None:
        [issue] = checker.issues("H5P.Scale 1.0", {"steps": steps, "intro": "x"})
        assert issue.field_path == "steps"
        assert message in issue.message


class TestCheck:
    def test_raises_validation_error_naming_node_and_field(
        self, checker: SemanticsChecker
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            checker.check("H5P.AdvancedText 1.1", {"text": None}, node_path="chapters[1].content[2]")

        err = exc_info.value
        assert err.node_path == "chapters[1].content[2]"
        assert err.field == "text"
        assert "H5P.AdvancedText 1.1 semantics" in str(err)

    def test_counts_further_issues(self, checker: SemanticsChecker) -> None:
        with pytest.raises(ValidationError, match=r"\(1 more\)"):
            checker.check("H5P.Scale 1.0", {"steps": "five"}, node_path="content")

    def test_valid_content_passes(self, checker: SemanticsChecker) -> None:
        checker.check("H5P.AdvancedText 1.1", {"text": "<p>Hi</p>"}, node_path="content")

    def test_unreadable_semantics(self, make_dependency_set: Callable[..., DependencySet]) -> None:
        broken = SemanticsChecker(make_dependency_set({"H5P.AdvancedText 1.1": b"{not json"}))
        with pytest.raises(IntegrityError, match="unreadable semantics.json"):
            broken.check("H5P.AdvancedText 1.1", {"text": "x"}, node_path="content")
