"""CLI command implementations."""

from branchdiff.commands.branch_exists import cmd_branch_exists
from branchdiff.commands.diff import cmd_diff

__all__ = ["cmd_branch_exists", "cmd_diff"]
