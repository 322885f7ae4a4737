"""Domain models for the local mirror, resolved branches and diff results.

Parse-once pattern: raw git output (name-status records) is parsed into
type-safe models at the boundary and never re-parsed downstream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from git import Repo

REMOTE_NAME = "origin"


# ============================================================
# Mirror State
# ============================================================


class MirrorState(Enum):
    """What the repository store found at the local path before syncing."""

    MISSING = "missing"
    STALE = "stale"
    REUSABLE = "reusable"


class SyncOutcome(Enum):
    """How a mirror was brought up to date."""

    CLONED = "cloned"
    UPDATED = "updated"
    RECLONED = "recloned"


@dataclass
class RepositoryMirror:
    """An opened local copy of a single remote repository.

    Attributes:
        local_path: Directory holding the working tree and .git metadata
        remote_url: URL recorded for the ``origin`` remote
        repo: Opened GitPython repository handle
        outcome: How the last sync produced this mirror
    """

    local_path: Path
    remote_url: str
    repo: Repo = field(repr=False, compare=False)
    outcome: SyncOutcome = SyncOutcome.UPDATED


@dataclass(frozen=True)
class BranchRef:
    """A remote-tracking branch resolved to a commit id."""

    name: str
    commit: str

    @property
    def ref_name(self) -> str:
        return f"{REMOTE_NAME}/{self.name}"

    @staticmethod
    def tracking_ref(name: str) -> str:
        """Full ref path of the remote-tracking branch for ``name``."""
        return f"refs/remotes/{REMOTE_NAME}/{name}"


# ============================================================
# Change Set
# ============================================================


class ChangeType(Enum):
    """Kind of tree-level change, keyed by git's name-status letter."""

    ADDED = "A"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"
    COPIED = "C"
    TYPE_CHANGED = "T"

    @classmethod
    def from_status(cls, status: str) -> ChangeType:
        """Parse a name-status field such as ``M`` or ``R087``.

        Raises:
            ValueError: If the status letter is not a known change type
        """
        letter = status[:1]
        for member in cls:
            if member.value == letter:
                return member
        raise ValueError(f"Unknown change status: {status!r}")


@dataclass(frozen=True)
class FileChange:
    """A single file-level change between two trees.

    Attributes:
        change_type: Added, deleted, modified, renamed, copied or type change
        old_path: Path in the "before" tree (None for additions)
        new_path: Path in the "after" tree (None for deletions)
        similarity: Content similarity percentage for renames and copies
    """

    change_type: ChangeType
    old_path: str | None
    new_path: str | None
    similarity: int | None = None

    @property
    def path(self) -> str:
        """Most relevant path: the new one unless the file was deleted."""
        return self.new_path or self.old_path or ""

    @classmethod
    def parse_name_status(cls, output: str) -> tuple[FileChange, ...]:
        """Parse NUL-separated ``git diff --name-status -z`` output.

        Records are ``STATUS\\0PATH\\0`` or, for renames and copies,
        ``STATUS\\0OLD\\0NEW\\0``.

        Raises:
            ValueError: If the output is truncated or has an unknown status
        """
        fields = output.split("\0")
        if fields and fields[-1] == "":
            fields.pop()

        changes: list[FileChange] = []
        i = 0
        while i < len(fields):
            status = fields[i]
            change_type = ChangeType.from_status(status)
            if change_type in (ChangeType.RENAMED, ChangeType.COPIED):
                if i + 2 >= len(fields):
                    raise ValueError(f"Truncated {status} record in name-status output")
                similarity = int(status[1:]) if status[1:].isdigit() else None
                changes.append(
                    cls(change_type, fields[i + 1], fields[i + 2], similarity)
                )
                i += 3
                continue

            if i + 1 >= len(fields):
                raise ValueError(f"Truncated {status} record in name-status output")
            path = fields[i + 1]
            if change_type == ChangeType.ADDED:
                changes.append(cls(change_type, None, path))
            elif change_type == ChangeType.DELETED:
                changes.append(cls(change_type, path, None))
            else:
                changes.append(cls(change_type, path, path))
            i += 2

        return tuple(changes)


@dataclass(frozen=True)
class DiffResult:
    """Immutable result of a triple-dot comparison.

    Attributes:
        text: Unified diff of merge-base tree against feature tree
        merge_base: Commit id of the nearest common ancestor
        base: Resolved base branch
        feature: Resolved feature branch
        changes: Tree-level change set the text was rendered from
    """

    text: str
    merge_base: str
    base: BranchRef
    feature: BranchRef
    changes: tuple[FileChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.text
