"""Tests for GitTransportRunner.

Tests cover:
- Command construction and environment passing
- stdout decoding and GitCommandError on failure
- Cancellation before start and while the process is running
"""

import subprocess
import threading
import unittest
from unittest.mock import MagicMock

from git import Git, GitCommandError

from branchdiff.domain.errors import SyncError, TransportCancelledError
from branchdiff.infrastructure.git.runner import GitTransportRunner, git_error_detail


def make_git(communicate_effects, returncode=0):
    """Create a mock Git whose execute() yields a fake running process."""
    process = MagicMock(spec=subprocess.Popen)
    process.communicate.side_effect = communicate_effects
    process.returncode = returncode
    handle = MagicMock()
    handle.proc = process
    git = MagicMock(spec=Git)
    git.execute.return_value = handle
    return git, process


class TestGitTransportRunner(unittest.TestCase):
    """Tests for GitTransportRunner.run."""

    def test_runs_git_with_arguments_and_env(self):
        git, _ = make_git([(b"done\n", b"")])
        runner = GitTransportRunner()

        runner.run(git, "fetch", "origin", env={"GIT_TERMINAL_PROMPT": "0"})

        args, kwargs = git.execute.call_args
        self.assertEqual(args[0], [Git.GIT_PYTHON_GIT_EXECUTABLE, "fetch", "origin"])
        self.assertTrue(kwargs["as_process"])
        self.assertEqual(kwargs["env"], {"GIT_TERMINAL_PROMPT": "0"})

    def test_returns_decoded_stdout(self):
        git, _ = make_git([(b"Already up to date.\n", b"")])

        output = GitTransportRunner().run(git, "pull")

        self.assertEqual(output, "Already up to date.\n")

    def test_keeps_waiting_until_process_finishes(self):
        """Test that poll timeouts without cancellation just keep waiting."""
        git, process = make_git(
            [
                subprocess.TimeoutExpired("git", 0.01),
                subprocess.TimeoutExpired("git", 0.01),
                (b"ok", b""),
            ]
        )

        output = GitTransportRunner(cancel_event=threading.Event()).run(git, "clone")

        self.assertEqual(output, "ok")
        self.assertEqual(process.communicate.call_count, 3)
        process.kill.assert_not_called()

    def test_non_zero_exit_raises_git_command_error(self):
        git, _ = make_git([(b"", b"fatal: repository not found\n")], returncode=128)

        with self.assertRaises(GitCommandError) as ctx:
            GitTransportRunner().run(git, "clone", "https://example.com/x.git")

        self.assertEqual(ctx.exception.status, 128)
        self.assertIn("repository not found", git_error_detail(ctx.exception))

    def test_cancel_before_start_does_not_spawn(self):
        event = threading.Event()
        event.set()
        git, _ = make_git([(b"", b"")])

        with self.assertRaises(TransportCancelledError) as ctx:
            GitTransportRunner(cancel_event=event).run(
                git, "fetch", operation="fetch", target="https://example.com/x.git"
            )

        git.execute.assert_not_called()
        self.assertEqual(ctx.exception.operation, "fetch")

    def test_cancel_while_running_kills_process(self):
        """Test that setting the event aborts the in-flight command."""
        event = threading.Event()

        def communicate(timeout=None):
            if timeout is None:
                return (b"", b"")
            event.set()
            raise subprocess.TimeoutExpired("git", timeout)

        git, process = make_git(None)
        process.communicate.side_effect = communicate

        with self.assertRaises(TransportCancelledError):
            GitTransportRunner(cancel_event=event).run(git, "clone")

        process.kill.assert_called_once()

    def test_cancellation_is_a_sync_error(self):
        self.assertTrue(issubclass(TransportCancelledError, SyncError))


class TestGitErrorDetail(unittest.TestCase):
    """Tests for git_error_detail."""

    def test_extracts_stderr_text(self):
        error = GitCommandError(["git", "pull"], 1, "fatal: Not possible to fast-forward, aborting.")
        self.assertEqual(git_error_detail(error), "fatal: Not possible to fast-forward, aborting.")

    def test_falls_back_to_status(self):
        error = GitCommandError(["git", "pull"], 1, "")
        self.assertEqual(git_error_detail(error), "git exited with status 1")


if __name__ == "__main__":
    unittest.main()
