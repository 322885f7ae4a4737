"""Infrastructure components for branchdiff.

This layer handles external system interactions:
- Filesystem paths (home expansion, default mirror locations)
- SSH credentials rendered for git subprocesses
- Cancellable git transport commands

Organized into subdirectories:
- git/ - Git transport runner
"""

from .auth import AuthProvider, Credential, HostKeyPolicy, git_environment, is_ssh_url
from .git import GitTransportRunner
from .paths import default_local_path, resolve_path

__all__ = [
    # Auth
    "AuthProvider",
    "Credential",
    "HostKeyPolicy",
    "git_environment",
    "is_ssh_url",
    # Git transport
    "GitTransportRunner",
    # Paths
    "default_local_path",
    "resolve_path",
]
