"""JSON Schema export for h5pforge documents.

The exported schemas (JSON Schema Draft 2020-12) let YAML-aware editors
autocomplete and check content documents.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from h5pforge_core.schemas.document import BookDocument, StandaloneDocument

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"
SCHEMA_ID_BASE = "https://h5pforge.dev/schemas"

DocumentKind = Literal["book", "standalone"]


def export_document_schema(
    kind: DocumentKind = "book",
    output_path: Path | str | None = None,
) -> dict[str, Any]:
    """Export the JSON Schema of a content document.

    Args:
        kind: ``book`` (chapters) or ``standalone`` (single content item).
        output_path: Optional path to write the schema to. Parent
            directories are created as needed.

    Returns:
        Dictionary containing the JSON Schema.

    Example:
        >>> schema = export_document_schema("book")
        >>> schema["title"]
        'BookDocument'
    """
    model = BookDocument if kind == "book" else StandaloneDocument
    schema = model.model_json_schema(by_alias=True)

    schema["$schema"] = SCHEMA_DIALECT
    schema["$id"] = f"{SCHEMA_ID_BASE}/{kind}-document.schema.json"

    if output_path is not None:
        _write_schema_file(schema, output_path)

    return schema


def _write_schema_file(schema: dict[str, Any], path: Path | str) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(schema, indent=2))
