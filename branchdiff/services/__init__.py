"""Services for branchdiff.

Services encapsulate the sync and diff logic and orchestrate domain models.
They receive dependencies via constructor injection.
"""

from branchdiff.services.diff_engine import DiffEngine
from branchdiff.services.ref_resolver import RefResolver
from branchdiff.services.repository_store import RepositoryStore
from branchdiff.services.sync_and_diff import SyncAndDiffService, sync_and_diff
from branchdiff.services.workspace_reset import WorkspaceReset

__all__ = [
    "DiffEngine",
    "RefResolver",
    "RepositoryStore",
    "SyncAndDiffService",
    "WorkspaceReset",
    "sync_and_diff",
]
