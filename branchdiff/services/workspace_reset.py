"""Restores the mirror's working tree after each run."""

from __future__ import annotations

import logging

from git import GitCommandError

from branchdiff.domain.mirror import RepositoryMirror

logger = logging.getLogger(__name__)


class WorkspaceReset:
    """Puts the mirror back on the base branch with a clean working tree.

    Failures are logged as warnings and never raised, so a failed cleanup
    cannot mask the result of the operation it follows.
    """

    def reset(self, mirror: RepositoryMirror, base_branch: str) -> None:
        logger.info("Resetting %s to %s", mirror.local_path, base_branch)
        try:
            mirror.repo.git.checkout("--force", base_branch)
            mirror.repo.git.clean("-fd")
        except (GitCommandError, OSError) as e:
            logger.warning(
                "Failed to reset mirror %s to %s: %s", mirror.local_path, base_branch, e
            )
            return
        logger.debug("Mirror %s is clean on %s", mirror.local_path, base_branch)
