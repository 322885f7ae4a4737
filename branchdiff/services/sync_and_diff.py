"""Sync-and-diff orchestration service.

Single entry point for the review pipeline: sync the mirror, fetch every
branch, compute the triple-dot diff, and always reset the working tree
afterwards.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from branchdiff.domain.config import MirrorConfig
from branchdiff.domain.errors import RefNotFoundError
from branchdiff.domain.mirror import BranchRef, DiffResult, RepositoryMirror
from branchdiff.infrastructure.auth import AuthProvider
from branchdiff.infrastructure.git.runner import GitTransportRunner
from branchdiff.services.diff_engine import DiffEngine
from branchdiff.services.ref_resolver import RefResolver
from branchdiff.services.repository_store import RepositoryStore
from branchdiff.services.workspace_reset import WorkspaceReset

logger = logging.getLogger(__name__)


@dataclass
class SyncAndDiffService:
    """Runs sync -> fetch -> diff -> reset for one configuration.

    Attributes:
        config: Immutable run configuration
        store: Owns the on-disk mirror
        resolver: Branch lookups against origin/*
        engine: Triple-dot diff computation
        workspace: Post-run working tree cleanup
        runner: Transport runner carrying the cancellation signal
    """

    config: MirrorConfig
    store: RepositoryStore
    resolver: RefResolver
    engine: DiffEngine
    workspace: WorkspaceReset
    runner: GitTransportRunner

    # ============================================================
    # Factory Methods
    # ============================================================

    @classmethod
    def create(
        cls, config: MirrorConfig, cancel_event: threading.Event | None = None
    ) -> SyncAndDiffService:
        """Wire the default collaborators for ``config``."""
        runner = GitTransportRunner(cancel_event=cancel_event)
        auth = AuthProvider(
            ssh_key_path=config.ssh_key_path,
            skip_host_key_check=config.skip_host_key_check,
        )
        resolver = RefResolver()
        return cls(
            config=config,
            store=RepositoryStore(config.mirror_path, auth, runner),
            resolver=resolver,
            engine=DiffEngine(resolver),
            workspace=WorkspaceReset(),
            runner=runner,
        )

    # ============================================================
    # Public API
    # ============================================================

    def run(self) -> str:
        """Return the unified diff of the feature branch, "" if unchanged."""
        return self.compute().text

    def compute(self) -> DiffResult:
        """Run the full sequence and return the structured result."""
        cfg = self.config
        mirror = self.prepare()
        try:
            self._require_feature_branch(mirror)
            self.runner.raise_if_cancelled("diff", cfg.remote_url)
            result = self.engine.compute(mirror, cfg.base_branch, cfg.feature_branch)
        finally:
            self._release(mirror)

        if result.is_empty:
            logger.info(
                "No differences between %s and %s, nothing to review",
                cfg.base_branch,
                cfg.feature_branch,
            )
        return result

    def branch_exists(self) -> bool:
        """Sync, fetch and report whether the feature branch exists."""
        mirror = self.prepare()
        try:
            return self.resolver.branch_exists(mirror, self.config.feature_branch)
        finally:
            self._release(mirror)

    def prepare(self) -> RepositoryMirror:
        """Sync the mirror and refresh every remote-tracking branch.

        If the fetch fails the mirror is reset and its handle closed before
        the error propagates; otherwise the caller releases it when done.
        """
        cfg = self.config
        mirror = self.store.sync_to(cfg.remote_url, cfg.base_branch)
        try:
            self.runner.raise_if_cancelled("fetch", cfg.remote_url)
            self.store.fetch(mirror)
        except BaseException:
            self._release(mirror)
            raise
        return mirror

    def _release(self, mirror: RepositoryMirror) -> None:
        """Reset the working tree, then close the repository handle."""
        self.workspace.reset(mirror, self.config.base_branch)
        mirror.repo.close()

    def _require_feature_branch(self, mirror: RepositoryMirror) -> None:
        name = self.config.feature_branch
        if not self.resolver.branch_exists(mirror, name):
            raise RefNotFoundError(
                f"feature branch '{name}' was not found on the remote after fetch",
                operation="sync and diff",
                target=f"{self.config.remote_url} {BranchRef.tracking_ref(name)}",
            )


def sync_and_diff(
    remote_url: str,
    local_path: str | None,
    base_branch: str,
    feature_branch: str,
    *,
    ssh_key_path: str | None = None,
    skip_host_key_check: bool = False,
    cancel_event: threading.Event | None = None,
) -> str:
    """Sync the mirror at ``local_path`` and return the triple-dot diff.

    Args:
        remote_url: Remote repository URL
        local_path: Mirror directory (None derives one from the URL)
        base_branch: Branch the feature is compared against
        feature_branch: Branch whose changes are returned
        ssh_key_path: Private key for SSH URLs (default ~/.ssh/id_rsa)
        skip_host_key_check: Accept any SSH host key (insecure)
        cancel_event: Set to abort in-flight transport operations

    Returns:
        Unified diff text; "" when there is nothing to review

    Raises:
        BranchDiffError: One of the typed error kinds on failure
    """
    config = MirrorConfig.from_mapping(
        {
            "remote_url": remote_url,
            "local_path": local_path,
            "base_branch": base_branch,
            "feature_branch": feature_branch,
            "ssh_key_path": ssh_key_path,
            "skip_host_key_check": skip_host_key_check,
        }
    )
    return SyncAndDiffService.create(config, cancel_event=cancel_event).run()
