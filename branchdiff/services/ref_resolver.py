"""Resolves branch names against the mirror's remote-tracking namespace."""

from __future__ import annotations

from git import GitCommandError

from branchdiff.domain.config import validate_branch_name
from branchdiff.domain.errors import RefNotFoundError, SyncError
from branchdiff.domain.mirror import BranchRef, RepositoryMirror
from branchdiff.infrastructure.git.runner import git_error_detail

# ``rev-parse --verify --quiet`` exits 1 when the ref does not exist; other
# failures (corrupt repository, missing objects) exit with 128.
_REF_ABSENT_STATUS = 1


class RefResolver:
    """Looks up ``origin/<name>`` refs in a fetched mirror."""

    def resolve_branch(self, mirror: RepositoryMirror, name: str) -> BranchRef:
        """Resolve a branch to the commit its remote-tracking ref points at.

        Raises:
            RefNotFoundError: If ``origin/<name>`` does not exist
            SyncError: If the lookup fails for any other reason
        """
        commit = self._lookup(mirror, name)
        if commit is None:
            raise RefNotFoundError(
                f"branch '{name}' does not exist on the remote",
                operation="resolve branch",
                target=f"{mirror.remote_url} {BranchRef.tracking_ref(name)}",
            )
        return BranchRef(name=name, commit=commit)

    def branch_exists(self, mirror: RepositoryMirror, name: str) -> bool:
        """Check for ``origin/<name>``.

        Returns False only when the ref is confirmed absent; every other
        lookup failure propagates.
        """
        return self._lookup(mirror, name) is not None

    def _lookup(self, mirror: RepositoryMirror, name: str) -> str | None:
        validate_branch_name(name)
        ref = BranchRef.tracking_ref(name)
        try:
            return mirror.repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}").strip()
        except GitCommandError as e:
            if e.status == _REF_ABSENT_STATUS:
                return None
            raise SyncError(
                f"cannot read ref {ref}: {git_error_detail(e)}",
                operation="resolve branch",
                target=mirror.remote_url,
            ) from e
