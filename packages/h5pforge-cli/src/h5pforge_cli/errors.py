"""CLI error handling for h5pforge-cli.

This module provides CLI-specific error handling that wraps
h5pforge-core exceptions and provides user-friendly messages
with appropriate exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from pydantic import ValidationError as PydanticValidationError

from h5pforge_cli.output import error
from h5pforge_core.errors import (
    DocumentError,
    DuplicateHandlerError,
    H5PForgeError,
    MissingAssetError,
    UnknownContentTypeError,
    ValidationError,
)

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


# Exit codes following sysexits.h convention
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Content error (document, unknown type, validation, missing media)
EXIT_SYSTEM_ERROR = 2  # System error (library fetch, cache, write failure)

USER_ERRORS: tuple[type[H5PForgeError], ...] = (
    DocumentError,
    UnknownContentTypeError,
    ValidationError,
    DuplicateHandlerError,
    MissingAssetError,
)


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format Pydantic validation error into user-friendly message.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - chapters.0.title: Field required"
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]

    for e in errors:
        loc = ".".join(str(x) for x in e["loc"])
        msg = e["msg"]
        lines.append(f"  - {loc}: {msg}")

    return "\n".join(lines)


def exit_code_for(err: H5PForgeError) -> int:
    """Map a core error to the CLI exit code.

    Content errors (including a missing media file) exit 1; library,
    cache and write failures exit 2.
    """
    if isinstance(err, USER_ERRORS):
        return EXIT_USER_ERROR
    return EXIT_SYSTEM_ERROR


def to_cli_error(err: H5PForgeError) -> CLIError:
    """Convert a core error into a CLIError naming the error class.

    Schema validation details carried by a DocumentError are appended as
    ``  - field.path: message`` lines.
    """
    message = f"{type(err).__name__}: {err}"
    cause = err.__cause__
    if isinstance(err, DocumentError) and isinstance(cause, PydanticValidationError):
        message = f"{message}\n{format_pydantic_error(cause)}"
    return CLIError(message, exit_code=exit_code_for(err))
