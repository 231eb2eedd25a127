"""h5pforge-cli: Command line interface for h5pforge.

Commands:
- h5pforge compile: Compile a content document into an .h5p package
- h5pforge validate: Check a content document without building it
- h5pforge cache: Inspect and manage the library cache
- h5pforge schema: Export the document JSON Schema
"""

from __future__ import annotations

__version__ = "0.1.0"
