"""Diff engine service.

Computes a triple-dot diff: the feature branch's tree compared against the
merge base of the two branches, so only what the feature branch introduced
since diverging is reported. Changes made on the base branch in the meantime
are excluded.
"""

from __future__ import annotations

import logging

from git import GitCommandError

from branchdiff.domain.errors import DiffComputationError, NoCommonAncestorError
from branchdiff.domain.mirror import BranchRef, DiffResult, FileChange, RepositoryMirror
from branchdiff.infrastructure.git.runner import git_error_detail
from branchdiff.services.ref_resolver import RefResolver

logger = logging.getLogger(__name__)

# Pin the output format regardless of the user's git configuration.
DIFF_OPTIONS = (
    "--no-color",
    "--no-ext-diff",
    "--no-textconv",
    "--find-renames",
    "--src-prefix=a/",
    "--dst-prefix=b/",
)


class DiffEngine:
    """Produces unified diffs between a merge base and a feature branch."""

    def __init__(self, ref_resolver: RefResolver | None = None):
        self.ref_resolver = ref_resolver or RefResolver()

    # ============================================================
    # Public API
    # ============================================================

    def diff(self, mirror: RepositoryMirror, base_branch: str, feature_branch: str) -> str:
        """Return the triple-dot unified diff, or "" when nothing changed.

        Raises:
            RefNotFoundError: If either branch is missing after fetch
            NoCommonAncestorError: If the branches share no history
            DiffComputationError: If git fails while diffing
        """
        return self.compute(mirror, base_branch, feature_branch).text

    def compute(
        self, mirror: RepositoryMirror, base_branch: str, feature_branch: str
    ) -> DiffResult:
        """Compute the full DiffResult, including the tree-level change set."""
        logger.info(
            "Computing diff %s...%s in %s", base_branch, feature_branch, mirror.local_path
        )
        base = self.ref_resolver.resolve_branch(mirror, base_branch)
        feature = self.ref_resolver.resolve_branch(mirror, feature_branch)

        merge_base = self.merge_base(mirror, base, feature)
        changes = self.change_set(mirror, merge_base, feature.commit)
        text = self.render(mirror, merge_base, feature.commit) if changes else ""

        logger.info(
            "Diff of %s against merge base %s: %d file(s), %d bytes",
            feature.ref_name,
            merge_base[:12],
            len(changes),
            len(text),
        )
        return DiffResult(
            text=text, merge_base=merge_base, base=base, feature=feature, changes=changes
        )

    def merge_base(self, mirror: RepositoryMirror, base: BranchRef, feature: BranchRef) -> str:
        """Find the nearest common ancestor of two resolved branches.

        Raises:
            NoCommonAncestorError: If the histories are unrelated
            DiffComputationError: If git cannot compute the merge base
        """
        try:
            candidates = mirror.repo.merge_base(base.commit, feature.commit)
        except GitCommandError as e:
            raise DiffComputationError(
                f"merge-base failed: {git_error_detail(e)}",
                operation="merge base",
                target=f"{base.ref_name}...{feature.ref_name}",
            ) from e

        if not candidates:
            raise NoCommonAncestorError(
                f"branches '{base.name}' and '{feature.name}' have no common ancestor; "
                "a triple-dot diff cannot be computed",
                operation="merge base",
                target=f"{base.ref_name}...{feature.ref_name}",
            )
        return candidates[0].hexsha

    def change_set(
        self, mirror: RepositoryMirror, before: str, after: str
    ) -> tuple[FileChange, ...]:
        """List file-level changes between two commits' trees."""
        try:
            output = mirror.repo.git.diff(
                "--name-status", "-z", "--no-ext-diff", "--find-renames", before, after, "--"
            )
        except GitCommandError as e:
            raise DiffComputationError(
                f"tree comparison failed: {git_error_detail(e)}",
                operation="change set",
                target=f"{before}..{after}",
            ) from e

        try:
            return FileChange.parse_name_status(output)
        except ValueError as e:
            raise DiffComputationError(
                str(e), operation="change set", target=f"{before}..{after}"
            ) from e

    def render(self, mirror: RepositoryMirror, before: str, after: str) -> str:
        """Render the tree diff as a unified-diff string.

        The trailing newline is kept so the patch applies byte-for-byte.
        Binary files appear as hunk-less "Binary files ... differ" entries.
        """
        try:
            return mirror.repo.git.diff(
                *DIFF_OPTIONS, before, after, "--", strip_newline_in_stdout=False
            )
        except GitCommandError as e:
            raise DiffComputationError(
                f"patch generation failed: {git_error_detail(e)}",
                operation="render diff",
                target=f"{before}..{after}",
            ) from e
