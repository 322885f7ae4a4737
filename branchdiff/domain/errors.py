"""Typed error hierarchy for the sync and diff engine.

Every failure surfaced to callers is one of these kinds so the CLI can pick
its message and exit code without inspecting error text.
"""

from __future__ import annotations


class BranchDiffError(Exception):
    """Base class for all engine errors.

    Attributes:
        operation: Name of the operation that failed (e.g. "clone")
        target: URL, path or branch the operation was working on
    """

    title = "branchdiff error"
    exit_code = 1

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        target: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.target = target

    def __str__(self) -> str:
        if self.operation and self.target:
            return f"{self.operation} [{self.target}]: {self.message}"
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class ConfigurationError(BranchDiffError):
    """Raised for unresolvable paths, users or invalid settings."""

    title = "configuration"
    exit_code = 2


class AuthError(BranchDiffError):
    """Raised when SSH key material is missing or unreadable."""

    title = "authentication"
    exit_code = 3


class SyncError(BranchDiffError):
    """Raised when clone, pull or fetch fails and was not recovered."""

    title = "repository sync"
    exit_code = 4


class UpdateFailedError(SyncError):
    """Raised when updating an existing mirror fails.

    The repository store recovers from this by recloning exactly once.
    """


class TransportCancelledError(SyncError):
    """Raised when a transport operation is aborted by a cancellation signal."""

    title = "cancelled"


class RefNotFoundError(BranchDiffError):
    """Raised when a branch is absent from the remote-tracking namespace."""

    title = "branch not found"
    exit_code = 5


class NoCommonAncestorError(BranchDiffError):
    """Raised when two branches share no history."""

    title = "unrelated histories"
    exit_code = 6


class DiffComputationError(BranchDiffError):
    """Raised when tree comparison or patch rendering fails."""

    title = "diff computation"
    exit_code = 7
