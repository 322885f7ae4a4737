"""Domain models for branchdiff (parse-once pattern)."""

from .errors import (
    AuthError,
    BranchDiffError,
    ConfigurationError,
    DiffComputationError,
    NoCommonAncestorError,
    RefNotFoundError,
    SyncError,
    TransportCancelledError,
    UpdateFailedError,
)
from .config import MirrorConfig
from .mirror import (
    BranchRef,
    ChangeType,
    DiffResult,
    FileChange,
    MirrorState,
    RepositoryMirror,
    SyncOutcome,
)

__all__ = [
    # Errors
    "AuthError",
    "BranchDiffError",
    "ConfigurationError",
    "DiffComputationError",
    "NoCommonAncestorError",
    "RefNotFoundError",
    "SyncError",
    "TransportCancelledError",
    "UpdateFailedError",
    # Config
    "MirrorConfig",
    # Mirror and diff models
    "BranchRef",
    "ChangeType",
    "DiffResult",
    "FileChange",
    "MirrorState",
    "RepositoryMirror",
    "SyncOutcome",
]
