"""
Error taxonomy for the package engine.

Every fatal condition raised by the engine is a :class:`PrismError`. Filesystem
failures are not wrapped: they propagate as the builtin ``OSError`` family.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prism.dependencies import Conflict


class PrismError(Exception):
    """Base class for all package engine errors."""

    def __init__(self, message: str, code: str = "PRISM_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(PrismError):
    """A manifest is malformed or violates a structural rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "VALIDATION_ERROR")


class NoFilesError(PrismError):
    """Archive collection produced zero entries."""

    def __init__(self, message: str = "No files found to package") -> None:
        super().__init__(message, "NO_FILES_ERROR")


class ArchiveError(PrismError):
    """An archive could not be written or read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "ARCHIVE_ERROR")


class DependencyError(PrismError):
    """A required dependency is missing or out of range."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "DEPENDENCY_ERROR")


class ConflictError(PrismError):
    """The requested package version is already installed."""

    def __init__(self, message: str, conflict: Conflict | None = None) -> None:
        super().__init__(message, "CONFLICT_ERROR")
        self.conflict = conflict


class HookError(PrismError):
    """A lifecycle hook exited non-zero or timed out."""

    def __init__(self, message: str, hook: str = "", exit_code: int | None = None) -> None:
        super().__init__(message, "HOOK_ERROR")
        self.hook = hook
        self.exit_code = exit_code
