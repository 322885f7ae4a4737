#!/usr/bin/env python3
"""CLI entry point for branchdiff.

Usage:
    python -m branchdiff <command> [options]

Commands:
    diff            Sync the mirror and print the triple-dot diff
    branch-exists   Sync the mirror and check the feature branch exists
"""

import argparse
import sys

from branchdiff.commands import cmd_branch_exists, cmd_diff
from branchdiff.commands.diff import report_error
from branchdiff.domain.config import MirrorConfig
from branchdiff.domain.errors import ConfigurationError
from branchdiff.logging_config import setup_logging


def _add_repository_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        help="YAML file with settings (keys match the long option names)",
    )
    parser.add_argument(
        "--git-clone-url",
        dest="remote_url",
        help="URL of the Git repository to review (SSH, HTTPS or local path)",
    )
    parser.add_argument(
        "--base-branch",
        help="Base branch for diff comparison (default: main)",
    )
    parser.add_argument(
        "--feature-branch",
        help="Feature branch to review",
    )
    parser.add_argument(
        "--local-path",
        help="Local mirror directory (default: derived from the URL under the temp dir)",
    )
    parser.add_argument(
        "--ssh-key-path",
        help="SSH private key for Git authentication (default: ~/.ssh/id_rsa)",
    )
    parser.add_argument(
        "--skip-host-key-check",
        action="store_true",
        default=None,
        help=(
            "WARNING: disables SSH host key verification and exposes the "
            "connection to man-in-the-middle attacks. Never use in production."
        ),
    )


def build_config(args: argparse.Namespace) -> MirrorConfig:
    """Layer CLI flags over the optional YAML config file."""
    return MirrorConfig.from_sources(
        args.config,
        remote_url=args.remote_url,
        base_branch=args.base_branch,
        feature_branch=args.feature_branch,
        local_path=args.local_path,
        ssh_key_path=args.ssh_key_path,
        skip_host_key_check=args.skip_host_key_check,
    )


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Keep a local mirror of a repository in sync and extract branch diffs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  diff            Sync the mirror and print the triple-dot diff
  branch-exists   Sync the mirror and check the feature branch exists

Examples:
  python -m branchdiff diff --git-clone-url git@github.com:org/repo.git --feature-branch feature/x
  python -m branchdiff diff --config review.yaml --output changes.diff
  python -m branchdiff branch-exists --git-clone-url https://github.com/org/repo.git --feature-branch fix
        """,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: $BRANCHDIFF_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # diff command
    parser_diff = subparsers.add_parser(
        "diff",
        help="Sync the mirror and print the triple-dot diff",
    )
    _add_repository_arguments(parser_diff)
    parser_diff.add_argument(
        "--output",
        help="Write the diff to this file instead of stdout",
    )

    # branch-exists command
    parser_exists = subparsers.add_parser(
        "branch-exists",
        help="Check that the feature branch exists on the remote",
    )
    _add_repository_arguments(parser_exists)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    try:
        setup_logging(args.log_level)
    except ValueError as e:
        parser.error(str(e))

    try:
        config = build_config(args)
    except ConfigurationError as e:
        return report_error(e)

    if args.command == "diff":
        return cmd_diff(config, output_file=args.output)
    elif args.command == "branch-exists":
        return cmd_branch_exists(config)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
