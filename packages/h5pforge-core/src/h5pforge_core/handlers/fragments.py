"""Builders for content fragments shared by several handlers.

A fragment is one library instance in ``content.json``::

    {"library": "H5P.AdvancedText 1.1", "params": {...}, "metadata": {...}}
"""

from __future__ import annotations

import html
from typing import Any
import uuid

ADVANCED_TEXT = "H5P.AdvancedText 1.1"
UNKNOWN_LICENSE = "U"

# Namespace for deterministic subContentId values
SUBCONTENT_NAMESPACE = uuid.UUID("6f1c2b1e-5d0a-4a57-9d0e-2b7f3c5e8a41")


def escape_html(text: str) -> str:
    # html.escape uses &#x27; for quotes; the viewer's own editor writes &#039;
    return html.escape(text, quote=True).replace("&#x27;", "&#039;")


def stable_id(*parts: object) -> str:
    """Return a UUID derived from ``parts`` (same parts, same id)."""
    return str(uuid.uuid5(SUBCONTENT_NAMESPACE, "/".join(str(p) for p in parts)))


def metadata(content_type: str, title: str) -> dict[str, str]:
    return {"contentType": content_type, "license": UNKNOWN_LICENSE, "title": title}


def fragment(
    library: str,
    params: dict[str, Any],
    *,
    content_type: str,
    title: str,
    subcontent_id: str | None = None,
) -> dict[str, Any]:
    result: dict[str, Any] = {
        "library": library,
        "params": params,
        "metadata": metadata(content_type, title),
    }
    if subcontent_id:
        result["subContentId"] = subcontent_id
    return result


def text_html(title: str, text: str, *, escape: bool = True) -> str:
    """Render a title and body as AdvancedText HTML.

    With ``escape`` the body is split into ``<p>`` paragraphs on blank
    lines. Without it the body is trusted HTML (AI output) and kept as is.
    """
    parts: list[str] = []
    if title:
        parts.append(f"<h2>{escape_html(title)}</h2>\n")
    if not escape:
        parts.append(text)
        return "".join(parts)
    for paragraph in text.split("\n\n"):
        if paragraph.strip():
            parts.append(f"<p>{escape_html(paragraph.strip())}</p>\n")
    return "".join(parts)


def advanced_text(title: str, text: str, *, escape: bool = True) -> dict[str, Any]:
    return fragment(
        ADVANCED_TEXT,
        {"text": text_html(title, text, escape=escape)},
        content_type="Text",
        title=title or "Untitled Text",
    )


def file_reference(path: str, mime_type: str) -> dict[str, Any]:
    return {"path": path, "mime": mime_type, "copyright": {"license": UNKNOWN_LICENSE}}
