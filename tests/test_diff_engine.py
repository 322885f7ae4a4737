"""Tests for DiffEngine with a mocked repository.

Tests cover:
- Triple-dot semantics (diff from merge base, not from base tip)
- Empty change set returns "" without rendering
- Unrelated histories and git failures
"""

import unittest
from pathlib import Path
from unittest.mock import MagicMock

from git import GitCommandError

from branchdiff.domain.errors import DiffComputationError, NoCommonAncestorError, RefNotFoundError
from branchdiff.domain.mirror import BranchRef, ChangeType, RepositoryMirror
from branchdiff.services.diff_engine import DIFF_OPTIONS, DiffEngine
from branchdiff.services.ref_resolver import RefResolver

BASE_TIP = "b" * 40
FEATURE_TIP = "f" * 40
MERGE_BASE = "0" * 40
PATCH = "diff --git a/a.txt b/a.txt\n--- a/a.txt\n+++ b/a.txt\n@@ -1 +1 @@\n-1\n+2\n"


def make_commit(hexsha):
    commit = MagicMock()
    commit.hexsha = hexsha
    return commit


class TestDiffEngine(unittest.TestCase):
    """Tests for DiffEngine.compute and diff."""

    def setUp(self):
        self.repo = MagicMock()
        self.repo.merge_base.return_value = [make_commit(MERGE_BASE)]
        self.mirror = RepositoryMirror(Path("/tmp/mirror"), "https://example.com/r.git", self.repo)

        self.resolver = MagicMock(spec=RefResolver)
        self.resolver.resolve_branch.side_effect = lambda mirror, name: BranchRef(
            name=name, commit=BASE_TIP if name == "main" else FEATURE_TIP
        )
        self.engine = DiffEngine(self.resolver)

    def _set_diff_outputs(self, name_status, patch=PATCH):
        def diff(*args, **kwargs):
            if "--name-status" in args:
                return name_status
            return patch

        self.repo.git.diff.side_effect = diff

    def test_diffs_feature_against_merge_base(self):
        self._set_diff_outputs("M\0a.txt\0A\0b.txt\0")

        result = self.engine.compute(self.mirror, "main", "feature")

        self.repo.merge_base.assert_called_once_with(BASE_TIP, FEATURE_TIP)
        self.assertEqual(result.merge_base, MERGE_BASE)
        self.assertEqual(result.text, PATCH)
        self.assertEqual(
            [c.change_type for c in result.changes], [ChangeType.MODIFIED, ChangeType.ADDED]
        )
        render_args, render_kwargs = self.repo.git.diff.call_args
        self.assertEqual(render_args, (*DIFF_OPTIONS, MERGE_BASE, FEATURE_TIP, "--"))
        self.assertNotIn(BASE_TIP, render_args)
        self.assertFalse(render_kwargs["strip_newline_in_stdout"])

    def test_diff_returns_text(self):
        self._set_diff_outputs("M\0a.txt\0")
        self.assertEqual(self.engine.diff(self.mirror, "main", "feature"), PATCH)

    def test_empty_change_set_is_empty_string(self):
        """Test that identical trees produce "" and skip patch rendering."""
        self._set_diff_outputs("")

        result = self.engine.compute(self.mirror, "main", "feature")

        self.assertEqual(result.text, "")
        self.assertTrue(result.is_empty)
        self.assertEqual(self.repo.git.diff.call_count, 1)

    def test_no_common_ancestor_raises(self):
        self.repo.merge_base.return_value = []

        with self.assertRaises(NoCommonAncestorError) as ctx:
            self.engine.compute(self.mirror, "main", "orphan")

        self.assertIn("no common ancestor", str(ctx.exception))
        self.repo.git.diff.assert_not_called()

    def test_merge_base_failure_raises_diff_computation_error(self):
        self.repo.merge_base.side_effect = GitCommandError(["git", "merge-base"], 128, "fatal: bad object")

        with self.assertRaises(DiffComputationError):
            self.engine.compute(self.mirror, "main", "feature")

    def test_render_failure_raises_diff_computation_error(self):
        def diff(*args, **kwargs):
            if "--name-status" in args:
                return "M\0a.txt\0"
            raise GitCommandError(["git", "diff"], 128, "fatal: out of memory")

        self.repo.git.diff.side_effect = diff

        with self.assertRaises(DiffComputationError) as ctx:
            self.engine.compute(self.mirror, "main", "feature")

        self.assertIn("out of memory", str(ctx.exception))

    def test_malformed_name_status_raises_diff_computation_error(self):
        self._set_diff_outputs("R100\0only-old.txt\0")

        with self.assertRaises(DiffComputationError):
            self.engine.compute(self.mirror, "main", "feature")

    def test_missing_branch_propagates(self):
        self.resolver.resolve_branch.side_effect = RefNotFoundError("branch 'x' does not exist")

        with self.assertRaises(RefNotFoundError):
            self.engine.compute(self.mirror, "main", "x")


if __name__ == "__main__":
    unittest.main()
