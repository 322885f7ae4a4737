"""Git transport primitives."""

from .runner import GitTransportRunner, git_error_detail

__all__ = [
    "GitTransportRunner",
    "git_error_detail",
]
