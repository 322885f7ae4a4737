"""Diff command - sync the mirror and emit the triple-dot diff.

Thin command that builds the configuration, runs the sync-and-diff service
and maps typed errors to exit codes. No business logic.
"""

from __future__ import annotations

import sys
from pathlib import Path

from branchdiff.domain.config import MirrorConfig
from branchdiff.domain.errors import BranchDiffError
from branchdiff.services.sync_and_diff import SyncAndDiffService


def report_error(error: BranchDiffError) -> int:
    """Print a message derived from the error kind and return its exit code."""
    print(f"Error ({error.title}): {error}", file=sys.stderr)
    return error.exit_code


def patch_bytes(text: str) -> bytes:
    """Recover git's original bytes from a diff decoded by GitPython.

    GitPython decodes output as UTF-8 with ``surrogateescape``, so files in
    other encodings survive as lone surrogates until re-encoded here.
    """
    return text.encode("utf-8", "surrogateescape")


def cmd_diff(config: MirrorConfig, output_file: str | None = None) -> int:
    """Execute the diff command.

    Args:
        config: Run configuration
        output_file: Write the diff here instead of stdout

    Returns:
        Exit code (0 for success, including "nothing to review")
    """
    service = SyncAndDiffService.create(config)
    try:
        result = service.compute()
    except BranchDiffError as e:
        return report_error(e)

    if result.is_empty:
        print(
            f"No differences between {config.base_branch} and {config.feature_branch}; "
            "nothing to review.",
            file=sys.stderr,
        )
        return 0

    patch = patch_bytes(result.text)
    if output_file:
        try:
            Path(output_file).write_bytes(patch)
        except OSError as e:
            print(f"Error (output): cannot write {output_file}: {e}", file=sys.stderr)
            return 1
        print(f"Wrote {output_file}", file=sys.stderr)
    else:
        sys.stdout.flush()
        sys.stdout.buffer.write(patch)
        sys.stdout.buffer.flush()

    print(
        f"{len(result.changes)} file(s) changed on {result.feature.ref_name} "
        f"since {result.merge_base[:12]}",
        file=sys.stderr,
    )
    return 0
