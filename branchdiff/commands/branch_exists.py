"""Branch-exists command - check the feature branch on the remote."""

from __future__ import annotations

import sys

from branchdiff.commands.diff import report_error
from branchdiff.domain.config import MirrorConfig
from branchdiff.domain.errors import BranchDiffError
from branchdiff.services.sync_and_diff import SyncAndDiffService


def cmd_branch_exists(config: MirrorConfig) -> int:
    """Exit 0 if origin/<feature_branch> exists after fetch, 1 if not."""
    service = SyncAndDiffService.create(config)
    try:
        exists = service.branch_exists()
    except BranchDiffError as e:
        return report_error(e)

    state = "exists" if exists else "does not exist"
    print(f"Branch '{config.feature_branch}' {state} on {config.remote_url}")
    return 0 if exists else 1
