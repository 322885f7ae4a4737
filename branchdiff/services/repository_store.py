"""Repository store service.

Owns the on-disk mirror of one remote repository: decides whether an
existing mirror can be reused, clones, pulls, fetches, and falls back to a
single forced re-clone when an update cannot be trusted.
"""

from __future__ import annotations

import configparser
import logging
import shutil
from pathlib import Path

from git import Git, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from branchdiff.domain.errors import SyncError, TransportCancelledError, UpdateFailedError
from branchdiff.domain.mirror import REMOTE_NAME, MirrorState, RepositoryMirror, SyncOutcome
from branchdiff.infrastructure.auth import AuthProvider, git_environment
from branchdiff.infrastructure.git.runner import GitTransportRunner, git_error_detail

logger = logging.getLogger(__name__)

FETCH_REFSPEC = f"+refs/heads/*:refs/remotes/{REMOTE_NAME}/*"


class RepositoryStore:
    """Keeps a local mirror of a remote repository consistent.

    Sync policy, evaluated in order:
    1. No .git metadata at the local path: clone fresh.
    2. Mirror unreadable, no ``origin`` remote, or ``origin`` URL differs
       from the requested URL: delete and clone fresh.
    3. Otherwise pull the base branch. If the pull fails for any reason
       other than cancellation, delete and clone fresh exactly once.
    """

    def __init__(
        self,
        local_path: str | Path,
        auth_provider: AuthProvider,
        runner: GitTransportRunner | None = None,
    ):
        """Initialize with mirror location and collaborators.

        Args:
            local_path: Directory that holds (or will hold) the mirror
            auth_provider: Derives credentials per remote URL
            runner: Transport runner (default: one without cancellation)
        """
        self.local_path = Path(local_path)
        self.auth_provider = auth_provider
        self.runner = runner or GitTransportRunner()

    # ============================================================
    # Public API
    # ============================================================

    def sync_to(self, remote_url: str, base_branch: str) -> RepositoryMirror:
        """Bring the mirror in line with ``remote_url`` and return it opened.

        Args:
            remote_url: Remote repository URL
            base_branch: Branch used as the clone reference and pull target

        Returns:
            RepositoryMirror whose ``origin`` URL equals ``remote_url``

        Raises:
            AuthError: If SSH key material is unusable
            SyncError: If clone fails, or the reclone after a failed pull fails
        """
        env = git_environment(self.auth_provider.auth_for(remote_url))
        state, repo = self._inspect(remote_url)

        if state == MirrorState.MISSING:
            logger.info("No mirror at %s, cloning %s", self.local_path, remote_url)
            return self._clone(remote_url, base_branch, env, SyncOutcome.CLONED)

        if state == MirrorState.STALE or repo is None:
            logger.warning("Mirror at %s is stale, recloning %s", self.local_path, remote_url)
            return self._reclone(remote_url, base_branch, env)

        try:
            self._update(repo, remote_url, base_branch, env)
        except UpdateFailedError as e:
            logger.warning("Update of %s failed, recloning for recovery: %s", self.local_path, e)
            repo.close()
            return self._reclone(remote_url, base_branch, env)

        logger.info("Mirror at %s is up to date with %s", self.local_path, remote_url)
        return RepositoryMirror(self.local_path, remote_url, repo, SyncOutcome.UPDATED)

    def inspect(self, remote_url: str) -> MirrorState:
        """Classify the local path without modifying it."""
        state, repo = self._inspect(remote_url)
        if repo is not None:
            repo.close()
        return state

    def clone(self, remote_url: str, base_branch: str) -> RepositoryMirror:
        """Clone ``remote_url`` into the local path (which must be free)."""
        env = git_environment(self.auth_provider.auth_for(remote_url))
        return self._clone(remote_url, base_branch, env, SyncOutcome.CLONED)

    def reclone(self, remote_url: str, base_branch: str) -> RepositoryMirror:
        """Delete whatever is at the local path and clone fresh."""
        env = git_environment(self.auth_provider.auth_for(remote_url))
        return self._reclone(remote_url, base_branch, env)

    def fetch(self, mirror: RepositoryMirror) -> None:
        """Refresh every remote-tracking branch of the mirror.

        Uses a wildcard refspec so branches other than the one cloned are
        resolvable afterwards; ``--prune`` drops branches deleted upstream.

        Raises:
            SyncError: If the fetch fails
        """
        env = git_environment(self.auth_provider.auth_for(mirror.remote_url))
        logger.info("Fetching all branches of %s", mirror.remote_url)
        try:
            self.runner.run(
                mirror.repo.git,
                "fetch", "--prune", REMOTE_NAME, FETCH_REFSPEC,
                env=env,
                operation="fetch",
                target=mirror.remote_url,
            )
        except GitCommandError as e:
            raise SyncError(
                f"fetch failed: {git_error_detail(e)}",
                operation="fetch",
                target=mirror.remote_url,
            ) from e

    # ============================================================
    # Decision Table
    # ============================================================

    def _inspect(self, remote_url: str) -> tuple[MirrorState, Repo | None]:
        if not (self.local_path / ".git").exists():
            return MirrorState.MISSING, None

        try:
            repo = Repo(self.local_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            logger.warning("Cannot open mirror at %s: %s", self.local_path, e)
            return MirrorState.STALE, None

        try:
            urls = list(repo.remote(REMOTE_NAME).urls)
        except (ValueError, GitCommandError, configparser.Error) as e:
            logger.warning("Mirror at %s has no usable '%s' remote: %s", self.local_path, REMOTE_NAME, e)
            repo.close()
            return MirrorState.STALE, None

        if not urls or urls[0] != remote_url:
            logger.warning(
                "Mirror at %s tracks %s, requested %s",
                self.local_path,
                urls[0] if urls else None,
                remote_url,
            )
            repo.close()
            return MirrorState.STALE, None

        return MirrorState.REUSABLE, repo

    # ============================================================
    # Operations
    # ============================================================

    def _update(self, repo: Repo, remote_url: str, base_branch: str, env: dict[str, str]) -> None:
        """Fast-forward the base branch; any failure is UpdateFailedError."""
        logger.info("Pulling %s into existing mirror at %s", base_branch, self.local_path)
        try:
            repo.git.checkout("--force", base_branch)
            self.runner.run(
                repo.git,
                "pull", "--ff-only", REMOTE_NAME, base_branch,
                env=env,
                operation="pull",
                target=remote_url,
            )
        except GitCommandError as e:
            raise UpdateFailedError(
                f"pull of {base_branch} failed: {git_error_detail(e)}",
                operation="pull",
                target=remote_url,
            ) from e

    def _reclone(self, remote_url: str, base_branch: str, env: dict[str, str]) -> RepositoryMirror:
        self._remove_local_path()
        return self._clone(remote_url, base_branch, env, SyncOutcome.RECLONED)

    def _clone(
        self,
        remote_url: str,
        base_branch: str,
        env: dict[str, str],
        outcome: SyncOutcome,
    ) -> RepositoryMirror:
        if self.local_path.exists():
            logger.warning("Removing non-repository content at %s before cloning", self.local_path)
            self._remove_local_path()

        try:
            self.local_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SyncError(
                f"cannot create parent directory {self.local_path.parent}: {e}",
                operation="clone",
                target=remote_url,
            ) from e

        logger.info("Cloning %s (branch %s) into %s", remote_url, base_branch, self.local_path)
        try:
            self.runner.run(
                Git(str(self.local_path.parent)),
                "clone", "--branch", base_branch, "--", remote_url, str(self.local_path),
                env=env,
                operation="clone",
                target=remote_url,
            )
        except GitCommandError as e:
            self._discard_partial_clone()
            raise SyncError(
                f"clone into {self.local_path} failed: {git_error_detail(e)}",
                operation="clone",
                target=remote_url,
            ) from e
        except TransportCancelledError:
            self._discard_partial_clone()
            raise

        try:
            repo = Repo(self.local_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise SyncError(
                f"cloned mirror at {self.local_path} cannot be opened: {e}",
                operation="clone",
                target=remote_url,
            ) from e

        logger.info("Clone of %s completed", remote_url)
        return RepositoryMirror(self.local_path, remote_url, repo, outcome)

    def _remove_local_path(self) -> None:
        if not self.local_path.exists() and not self.local_path.is_symlink():
            return
        try:
            if self.local_path.is_dir() and not self.local_path.is_symlink():
                shutil.rmtree(self.local_path)
            elif self.local_path.exists() or self.local_path.is_symlink():
                self.local_path.unlink()
        except OSError as e:
            raise SyncError(
                f"cannot remove {self.local_path}: {e}",
                operation="remove mirror",
                target=str(self.local_path),
            ) from e
        logger.info("Removed mirror directory %s", self.local_path)

    def _discard_partial_clone(self) -> None:
        try:
            self._remove_local_path()
        except SyncError as e:
            logger.warning("Could not discard partial clone: %s", e)
