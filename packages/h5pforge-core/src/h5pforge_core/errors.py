"""Custom exception hierarchy for h5pforge-core.

This module defines the exception classes used throughout h5pforge:
- H5PForgeError: Base exception for all h5pforge errors
- UnknownContentTypeError / ValidationError: Document content errors
- FetchError / IntegrityError / CycleError: Library resolution errors
- MissingAssetError / WriteError: Package assembly errors
- AIGenerationFailure: Recoverable AI errors (never fatal to a compile)

Design:
- User-facing messages are safe to display and name the node path and field
- Technical details are logged internally via structlog
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from h5pforge_core.libraries.models import LibraryIdentifier

logger = structlog.get_logger(__name__)


class H5PForgeError(Exception):
    """Base exception for h5pforge.

    All h5pforge exceptions inherit from this class. User-facing messages
    are safe to display; technical details are logged internally.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. This is
            logged internally but never part of the message.

    Example:
        >>> raise H5PForgeError(
        ...     "Package could not be built",
        ...     internal_details="zipfile.BadZipFile at content-type-cache/H5P.Image-1.1.zip",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize H5PForgeError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "h5pforge_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class DocumentError(H5PForgeError):
    """Raised when a content document cannot be loaded.

    Use this exception when:
    - The YAML file cannot be parsed
    - The document is neither a book (``chapters``) nor standalone (``content``)
    - Structural schema validation fails

    Attributes:
        file_path: Path to the document file (if known).
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        full_message = f"{user_message} (in {file_path})" if file_path else user_message
        super().__init__(full_message, internal_details=internal_details)
        self.file_path = file_path


class UnknownContentTypeError(H5PForgeError):
    """Raised when no handler is registered for a node's content type.

    Attributes:
        type_tag: The unregistered content type tag.
        node_path: Location of the node in the document (e.g. ``chapters[0].content[2]``).

    Example:
        >>> raise UnknownContentTypeError("quiz", node_path="chapters[0].content[1]")
        # User sees: "Unknown content type 'quiz' at chapters[0].content[1]"
    """

    def __init__(
        self,
        type_tag: str,
        *,
        node_path: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        message = f"Unknown content type '{type_tag}'"
        if node_path:
            message += f" at {node_path}"
        if available:
            message += f". Registered types: {', '.join(sorted(available))}"
        super().__init__(message)
        self.type_tag = type_tag
        self.node_path = node_path


class ValidationError(H5PForgeError):
    """Raised when a content node fails its handler's business-rule validation.

    Attributes:
        reason: Handler-provided reason (names the expected shape or range).
        node_path: Location of the node in the document.
        field: Name of the offending field, when known.

    Example:
        >>> raise ValidationError(
        ...     "'text' must be a non-empty string",
        ...     node_path="chapters[0].content[0]",
        ...     field="text",
        ... )
        # User sees: "Invalid content at chapters[0].content[0] (field 'text'):
        #             'text' must be a non-empty string"
    """

    def __init__(
        self,
        reason: str,
        *,
        node_path: str | None = None,
        field: str | None = None,
    ) -> None:
        location = f" at {node_path}" if node_path else ""
        field_part = f" (field '{field}')" if field else ""
        super().__init__(f"Invalid content{location}{field_part}: {reason}")
        self.reason = reason
        self.node_path = node_path
        self.field = field


class DuplicateHandlerError(H5PForgeError):
    """Raised when two handlers are registered for the same content type."""

    def __init__(self, type_tag: str) -> None:
        super().__init__(f"Handler for content type '{type_tag}' is already registered")
        self.type_tag = type_tag


class LibraryError(H5PForgeError):
    """Base class for library fetch and dependency resolution errors."""

    pass


class FetchError(LibraryError):
    """Raised when a library cannot be downloaded from the remote source.

    The message always carries remediation hints because network failures
    are usually environmental.

    Attributes:
        identifier: The library that was being fetched.
        reason: Short description of the failure (status code, connection error).
    """

    def __init__(
        self,
        identifier: LibraryIdentifier,
        reason: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        user_message = (
            f"Could not fetch library {identifier}: {reason}. "
            "Check your network connection and that the H5P Hub is reachable, "
            "or pre-populate the library cache with 'h5pforge cache fetch'."
        )
        super().__init__(user_message, internal_details=internal_details)
        self.identifier = identifier
        self.reason = reason


class IntegrityError(LibraryError):
    """Raised when a fetched or cached library does not match what was requested.

    A bundle that fails this check is never persisted to the cache.
    """

    def __init__(
        self,
        identifier: LibraryIdentifier,
        reason: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(
            f"Library {identifier} failed integrity check: {reason}",
            internal_details=internal_details,
        )
        self.identifier = identifier
        self.reason = reason


class CycleError(LibraryError):
    """Raised when library manifests declare a dependency cycle.

    Attributes:
        cycle: Library keys forming the cycle, first element repeated last.
    """

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")
        self.cycle = cycle


class VersionConflictError(LibraryError):
    """Raised by the strict merge policy when two versions of a library are required."""

    def __init__(self, machine_name: str, kept: str, rejected: str) -> None:
        super().__init__(
            f"Conflicting versions of {machine_name}: {kept} already resolved, {rejected} requested"
        )
        self.machine_name = machine_name
        self.kept = kept
        self.rejected = rejected


class AssemblyError(H5PForgeError):
    """Base class for package assembly errors."""

    pass


class MissingAssetError(AssemblyError):
    """Raised when a file that must go into the package is absent.

    Attributes:
        path: Package-relative path (or media source) of the missing asset.
    """

    def __init__(self, path: str, *, reason: str | None = None) -> None:
        message = f"Missing asset: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path


class WriteError(AssemblyError):
    """Raised when the finished package cannot be written to its destination."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot write package to {path}: {reason}")
        self.path = path
        self.reason = reason


class AIGenerationFailure(H5PForgeError):
    """Raised when the AI generation service fails or returns unusable output.

    Always caught by the handler that made the call and converted into a
    labeled fallback fragment.

    Attributes:
        provider: Name of the generation provider.
        reason: Short failure description.
    """

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"AI generation failed ({provider}): {reason}")
        self.provider = provider
        self.reason = reason
