"""Repository discovery functionality.

Resolves the repository containing a path before a context is available.
"""

from dataclasses import dataclass
from pathlib import Path

from specstack.core.git.abc import Git


@dataclass(frozen=True)
class RepoContext:
    """A git repository root and its short name."""

    root: Path
    repo_name: str


@dataclass(frozen=True)
class NoRepoSentinel:
    """Sentinel value indicating execution outside a git repository.

    Commands that require a repository check for this sentinel and fail fast.
    """

    message: str = "Not inside a git repository"


def discover_repo_or_sentinel(cwd: Path, git: Git) -> RepoContext | NoRepoSentinel:
    """Find the repository containing cwd.

    Returns:
        RepoContext if inside a git repository, NoRepoSentinel otherwise
    """
    if not cwd.exists():
        return NoRepoSentinel(message=f"Start path '{cwd}' does not exist")

    root = git.get_repository_root(cwd)
    if root is None:
        return NoRepoSentinel()

    return RepoContext(root=root, repo_name=root.name)
