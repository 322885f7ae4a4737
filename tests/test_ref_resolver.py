"""Tests for RefResolver."""

import unittest
from pathlib import Path
from unittest.mock import MagicMock

from git import GitCommandError

from branchdiff.domain.errors import ConfigurationError, RefNotFoundError, SyncError
from branchdiff.domain.mirror import RepositoryMirror
from branchdiff.services.ref_resolver import RefResolver

REMOTE_URL = "https://example.com/org/repo.git"


def make_mirror(rev_parse):
    repo = MagicMock()
    repo.git.rev_parse.side_effect = rev_parse
    return RepositoryMirror(Path("/tmp/mirror"), REMOTE_URL, repo)


class TestRefResolver(unittest.TestCase):
    """Tests for resolve_branch and branch_exists."""

    def setUp(self):
        self.resolver = RefResolver()

    def test_resolves_remote_tracking_ref(self):
        mirror = make_mirror(lambda *args: "0123abcd\n")

        ref = self.resolver.resolve_branch(mirror, "feature/x")

        self.assertEqual(ref.name, "feature/x")
        self.assertEqual(ref.commit, "0123abcd")
        mirror.repo.git.rev_parse.assert_called_once_with(
            "--verify", "--quiet", "refs/remotes/origin/feature/x^{commit}"
        )

    def test_absent_ref_raises_ref_not_found(self):
        mirror = make_mirror(GitCommandError(["git", "rev-parse"], 1, ""))

        with self.assertRaises(RefNotFoundError) as ctx:
            self.resolver.resolve_branch(mirror, "gone")

        self.assertIn("gone", str(ctx.exception))
        self.assertIn("refs/remotes/origin/gone", ctx.exception.target)

    def test_branch_exists_false_only_when_absent(self):
        mirror = make_mirror(GitCommandError(["git", "rev-parse"], 1, ""))
        self.assertFalse(self.resolver.branch_exists(mirror, "gone"))

    def test_branch_exists_true(self):
        mirror = make_mirror(lambda *args: "0123abcd")
        self.assertTrue(self.resolver.branch_exists(mirror, "main"))

    def test_other_lookup_failures_raise_sync_error(self):
        """Test that a broken repository is not reported as a missing branch."""
        mirror = make_mirror(
            GitCommandError(["git", "rev-parse"], 128, "fatal: not a git repository")
        )

        with self.assertRaises(SyncError) as ctx:
            self.resolver.branch_exists(mirror, "main")

        self.assertIn("not a git repository", str(ctx.exception))

    def test_invalid_branch_name_is_rejected_before_lookup(self):
        mirror = make_mirror(lambda *args: "0123abcd")

        with self.assertRaises(ConfigurationError):
            self.resolver.resolve_branch(mirror, "--all")

        mirror.repo.git.rev_parse.assert_not_called()


if __name__ == "__main__":
    unittest.main()
