"""branchdiff: repository mirror synchronization and triple-dot diff extraction.

Keeps a local mirror of a remote Git repository consistent (cloning,
pulling, and recloning when an update cannot be trusted) and extracts the
changes a feature branch introduced since it diverged from its base branch.

Usage:
    python -m branchdiff <command> [options]
    branchdiff <command> [options]

    from branchdiff import sync_and_diff
    diff_text = sync_and_diff(url, "/tmp/mirror", "main", "feature/x")

Structure:
    branchdiff/
    ├── __main__.py          # Entry point dispatcher
    ├── domain/              # Config, mirror/diff models, typed errors
    ├── infrastructure/      # Paths, SSH credentials, git transport runner
    ├── services/            # RepositoryStore, RefResolver, DiffEngine, ...
    └── commands/            # Thin command orchestrators
"""

from branchdiff.domain.config import MirrorConfig
from branchdiff.domain.errors import (
    AuthError,
    BranchDiffError,
    ConfigurationError,
    DiffComputationError,
    NoCommonAncestorError,
    RefNotFoundError,
    SyncError,
)
from branchdiff.services.sync_and_diff import SyncAndDiffService, sync_and_diff

__all__ = [
    "AuthError",
    "BranchDiffError",
    "ConfigurationError",
    "DiffComputationError",
    "MirrorConfig",
    "NoCommonAncestorError",
    "RefNotFoundError",
    "SyncAndDiffService",
    "SyncError",
    "sync_and_diff",
]
