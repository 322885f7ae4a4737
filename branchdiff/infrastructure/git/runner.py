"""Cancellable runner for git transport commands.

Clone, pull and fetch can block on the network indefinitely. This runner
starts them through GitPython as a child process and polls an optional
cancellation event, killing the process as soon as the event is set.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass

from git import Git, GitCommandError

from branchdiff.domain.errors import TransportCancelledError

logger = logging.getLogger(__name__)


@dataclass
class GitTransportRunner:
    """Runs blocking git transport commands with cooperative cancellation.

    Attributes:
        cancel_event: Set by the caller to abort the in-flight command
        poll_interval: Seconds between cancellation checks
    """

    cancel_event: threading.Event | None = None
    poll_interval: float = 0.2

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def raise_if_cancelled(self, operation: str, target: str | None = None) -> None:
        """Raise TransportCancelledError if cancellation was requested."""
        if self.cancelled:
            raise TransportCancelledError(
                "operation cancelled by caller", operation=operation, target=target
            )

    def run(
        self,
        git: Git,
        *args: str,
        env: dict[str, str] | None = None,
        operation: str = "git",
        target: str | None = None,
    ) -> str:
        """Run ``git <args>`` and return its stdout.

        Args:
            git: GitPython command wrapper; its working dir is the cwd
            args: Git subcommand and arguments, e.g. ("fetch", "origin")
            env: Extra environment variables (credentials, prompts)
            operation: Operation name for error context
            target: URL or path for error context

        Raises:
            GitCommandError: If git exits non-zero
            TransportCancelledError: If the cancel event was set
        """
        self.raise_if_cancelled(operation, target)

        command = [Git.GIT_PYTHON_GIT_EXECUTABLE, *args]
        logger.debug("Running %s", " ".join(command))
        handle = git.execute(command, as_process=True, env=env)
        process = handle.proc

        while True:
            try:
                stdout, stderr = process.communicate(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                if self.cancelled:
                    logger.info("Cancelling %s for %s", operation, target)
                    process.kill()
                    process.communicate()
                    raise TransportCancelledError(
                        "operation cancelled by caller", operation=operation, target=target
                    )

        out = _decode(stdout)
        err = _decode(stderr)
        if process.returncode != 0:
            raise GitCommandError(command, process.returncode, err, out)
        return out


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def git_error_detail(error: GitCommandError) -> str:
    """Extract git's own message from a GitCommandError for error context."""
    detail = (error.stderr or "").strip()
    if detail.startswith("stderr:"):
        detail = detail[len("stderr:"):].strip().strip("'").strip()
    return detail or f"git exited with status {error.status}"
