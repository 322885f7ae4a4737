"""Immutable run configuration.

A single MirrorConfig value is built once (from CLI flags, optionally layered
over a YAML file) and passed explicitly into every top-level operation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from branchdiff.domain.errors import ConfigurationError
from branchdiff.infrastructure.paths import default_local_path, resolve_path

DEFAULT_BASE_BRANCH = "main"
DEFAULT_SSH_KEY_PATH = "~/.ssh/id_rsa"

# Config-file spellings that match the CLI option names
_KEY_ALIASES = {"git_clone_url": "remote_url"}


def validate_branch_name(name: str, label: str = "branch") -> str:
    """Reject branch names that git would misread as options or that are empty.

    Raises:
        ConfigurationError: If the name is empty, contains whitespace or
            starts with "-"
    """
    if not name or not name.strip():
        raise ConfigurationError(f"{label} name is empty")
    if name.startswith("-"):
        raise ConfigurationError(f"{label} name may not start with '-': {name!r}")
    if any(ch.isspace() for ch in name):
        raise ConfigurationError(f"{label} name may not contain whitespace: {name!r}")
    return name


@dataclass(frozen=True)
class MirrorConfig:
    """Everything the engine needs for one sync-and-diff invocation.

    Attributes:
        remote_url: URL of the remote repository (SSH, HTTPS or local path)
        feature_branch: Branch whose changes are extracted
        base_branch: Branch the feature is compared against
        local_path: Mirror directory; derived from remote_url when unset
        ssh_key_path: Private key for SSH URLs, "~/" is expanded
        skip_host_key_check: Accept any SSH host key (insecure)
    """

    remote_url: str
    feature_branch: str
    base_branch: str = DEFAULT_BASE_BRANCH
    local_path: str | None = None
    ssh_key_path: str = DEFAULT_SSH_KEY_PATH
    skip_host_key_check: bool = False

    def __post_init__(self) -> None:
        if not self.remote_url or not self.remote_url.strip():
            raise ConfigurationError("remote URL is required")
        validate_branch_name(self.base_branch, "base branch")
        validate_branch_name(self.feature_branch, "feature branch")
        if not isinstance(self.skip_host_key_check, bool):
            raise ConfigurationError(
                f"skip_host_key_check must be a boolean, got {self.skip_host_key_check!r}"
            )

    # ============================================================
    # Factory Methods
    # ============================================================

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> MirrorConfig:
        """Build a config from a plain mapping, e.g. parsed YAML.

        Raises:
            ConfigurationError: On unknown keys or missing required values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")
        for required in ("remote_url", "feature_branch"):
            if not data.get(required):
                raise ConfigurationError(f"missing required setting: {required}")
        values = {key: value for key, value in data.items() if value is not None}
        return cls(**values)

    @classmethod
    def load_file(cls, path: str | Path) -> dict[str, Any]:
        """Read a YAML config file into a mapping of MirrorConfig fields.

        Raises:
            ConfigurationError: If the file is unreadable or not a YAML mapping
        """
        config_path = Path(path)
        try:
            text = config_path.read_text()
        except OSError as e:
            raise ConfigurationError(
                f"cannot read config file: {e}", operation="load config", target=str(path)
            ) from e

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"invalid YAML: {e}", operation="load config", target=str(path)
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "config file must contain a mapping", operation="load config", target=str(path)
            )
        normalized = {}
        for key, value in data.items():
            name = str(key).replace("-", "_")
            normalized[_KEY_ALIASES.get(name, name)] = value
        return normalized

    @classmethod
    def from_sources(
        cls, config_file: str | Path | None = None, **overrides: Any
    ) -> MirrorConfig:
        """Layer non-None overrides (CLI flags) over an optional YAML file."""
        data = cls.load_file(config_file) if config_file else {}
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls.from_mapping(data)

    # ============================================================
    # Derived Values
    # ============================================================

    @property
    def mirror_path(self) -> Path:
        """Local mirror directory, derived from the URL when not configured."""
        if self.local_path:
            return Path(resolve_path(self.local_path))
        return Path(default_local_path(self.remote_url))
