"""SSH credential derivation for git transport.

SSH URLs get a key-based Credential rendered into ``GIT_SSH_COMMAND``;
HTTP(S) and local URLs are accessed anonymously.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from branchdiff.domain.errors import AuthError
from branchdiff.infrastructure.paths import resolve_path

logger = logging.getLogger(__name__)

DEFAULT_SSH_USER = "git"

# user@host:path, but not a Windows drive path or a scheme URL
_SCP_LIKE_URL = re.compile(r"^(?P<user>[^@/:\s]+)@(?P<host>[^:/\s]+):(?!//)")
_PRIVATE_KEY_MARKER = b"PRIVATE KEY-----"


class HostKeyPolicy(Enum):
    """How the SSH client verifies the server's host key."""

    KNOWN_HOSTS = "known_hosts"
    ACCEPT_ANY = "accept_any"


@dataclass(frozen=True)
class Credential:
    """Key-based SSH credential for a single remote URL.

    Held in memory for one top-level operation only; never persisted.

    Attributes:
        username: Login user on the SSH server
        key_path: Absolute path of the private key file
        host_key_policy: Host-key verification policy
        passphrase: Always empty, passphrase-protected keys are unsupported
    """

    username: str
    key_path: str
    host_key_policy: HostKeyPolicy = HostKeyPolicy.KNOWN_HOSTS
    passphrase: str = ""

    @property
    def accepts_any_host_key(self) -> bool:
        return self.host_key_policy == HostKeyPolicy.ACCEPT_ANY

    def ssh_command(self) -> str:
        """Render the ssh invocation git should use for this credential."""
        parts = [
            "ssh",
            "-i", self.key_path,
            "-l", self.username,
            "-o", "IdentitiesOnly=yes",
            "-o", "BatchMode=yes",
        ]
        if self.accepts_any_host_key:
            parts += [
                "-o", "StrictHostKeyChecking=no",
                "-o", f"UserKnownHostsFile={os.devnull}",
            ]
        return " ".join(shlex.quote(part) for part in parts)


def is_ssh_url(remote_url: str) -> bool:
    """Check whether a remote URL needs SSH key authentication."""
    if remote_url.startswith("ssh://") or remote_url.startswith("git+ssh://"):
        return True
    return _SCP_LIKE_URL.match(remote_url) is not None


def ssh_username(remote_url: str) -> str:
    """Extract the login user from an SSH URL, falling back to "git"."""
    match = _SCP_LIKE_URL.match(remote_url)
    if match:
        return match.group("user")
    try:
        username = urlparse(remote_url).username
    except ValueError:
        return DEFAULT_SSH_USER
    return username or DEFAULT_SSH_USER


def git_environment(credential: Credential | None) -> dict[str, str]:
    """Environment overrides for git subprocesses using ``credential``.

    Interactive prompts are always disabled so a missing credential fails
    fast instead of hanging.
    """
    env = {"GIT_TERMINAL_PROMPT": "0"}
    if credential is not None:
        env["GIT_SSH_COMMAND"] = credential.ssh_command()
    return env


@dataclass(frozen=True)
class AuthProvider:
    """Builds a transport Credential for a remote URL.

    Attributes:
        ssh_key_path: Configured private key path ("~/" allowed)
        skip_host_key_check: Install an accept-any host-key policy
    """

    ssh_key_path: str
    skip_host_key_check: bool = False

    def auth_for(self, remote_url: str) -> Credential | None:
        """Derive the credential for ``remote_url``.

        Returns:
            A key-based Credential for SSH URLs, None for anonymous access

        Raises:
            AuthError: If the key file is missing, unreadable or not a
                private key
            ConfigurationError: If the key path cannot be resolved
        """
        if not is_ssh_url(remote_url):
            logger.debug("Using anonymous access for %s", remote_url)
            return None

        username = ssh_username(remote_url)
        key_path = self._load_key_path(remote_url)

        if self.skip_host_key_check:
            logger.warning(
                "SECURITY WARNING: SSH host key checking is disabled for %s. "
                "Connections are open to man-in-the-middle attacks; "
                "never use this in production.",
                remote_url,
            )
            policy = HostKeyPolicy.ACCEPT_ANY
        else:
            policy = HostKeyPolicy.KNOWN_HOSTS

        logger.debug("Using SSH key %s as user %s for %s", key_path, username, remote_url)
        return Credential(username=username, key_path=key_path, host_key_policy=policy)

    def _load_key_path(self, remote_url: str) -> str:
        resolved = resolve_path(self.ssh_key_path)
        key_file = Path(resolved)
        if not key_file.is_file():
            raise AuthError(
                f"SSH key file not found: {resolved}", operation="auth", target=remote_url
            )
        try:
            key_material = key_file.read_bytes()
        except OSError as e:
            raise AuthError(
                f"cannot read SSH key file {resolved}: {e}", operation="auth", target=remote_url
            ) from e

        if _PRIVATE_KEY_MARKER not in key_material:
            raise AuthError(
                f"SSH key file does not contain a private key: {resolved}",
                operation="auth",
                target=remote_url,
            )
        return str(key_file.resolve())
