"""Filesystem path helpers: home-directory expansion and mirror locations."""

from __future__ import annotations

import hashlib
import re
import tempfile
from pathlib import Path

from branchdiff.domain.errors import ConfigurationError

HOME_PREFIX = "~/"
MIRRORS_DIRNAME = "branchdiff-mirrors"

_UNSAFE_CHARS = re.compile(r"[^\w\-.]+")
_REPEATED_HYPHENS = re.compile(r"-+")
_URL_PREFIXES = ("https://", "http://", "ssh://", "file://", "git@")


def resolve_path(path: str) -> str:
    """Expand a leading "~/" into the current user's home directory.

    Args:
        path: User-supplied path, e.g. "~/.ssh/id_rsa"

    Returns:
        The path unchanged if it does not start with "~/", otherwise the
        absolute path under the home directory

    Raises:
        ConfigurationError: If the home directory cannot be determined
    """
    if not path.startswith(HOME_PREFIX):
        return path

    try:
        home = Path.home()
    except (RuntimeError, KeyError) as e:
        raise ConfigurationError(
            f"cannot determine home directory of the current user: {e}",
            operation="resolve path",
            target=path,
        ) from e

    return str(home / path[len(HOME_PREFIX):])


def default_local_path(remote_url: str) -> str:
    """Derive a unique, filesystem-safe mirror directory for a remote URL.

    The readable part is built from the URL without scheme and ".git"
    suffix; the first 8 hex digits of the URL's SHA-256 keep different URLs
    from ever sharing a mirror.

    Examples:
        >>> default_local_path("git@github.com:org/repo.git")  # doctest: +SKIP
        '/tmp/branchdiff-mirrors/github.com-org-repo-1b2c3d4e'
    """
    name = remote_url.strip()
    if name.endswith(".git"):
        name = name[: -len(".git")]
    for prefix in _URL_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
            break

    name = _UNSAFE_CHARS.sub("-", name)
    name = _REPEATED_HYPHENS.sub("-", name).strip("-.") or "repo"

    digest = hashlib.sha256(remote_url.encode("utf-8")).hexdigest()[:8]
    return str(Path(tempfile.gettempdir()) / MIRRORS_DIRNAME / f"{name}-{digest}")
