"""High-level git operations interface.

This module provides a clean abstraction over the git subprocess calls the
branch tracker needs, making the codebase more testable.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit: In-memory implementation for tests
"""

from abc import ABC, abstractmethod
from pathlib import Path


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    Every method is scoped to a single repository; nothing here reads or
    writes another repository's refs.
    """

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd.

        Returns:
            Repository root, or None if cwd is not inside a git repository
        """
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch (None on detached HEAD)."""
        ...

    @abstractmethod
    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        ...

    @abstractmethod
    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        """Check whether a ref resolves inside this repository."""
        ...

    @abstractmethod
    def commit_subjects(self, repo_root: Path, from_ref: str, to_ref: str) -> list[str]:
        """Get subjects of commits reachable from to_ref but not from from_ref.

        Args:
            repo_root: Path to the repository root
            from_ref: Exclusive lower bound (usually the base branch)
            to_ref: Inclusive upper bound (usually the branch tip)

        Returns:
            Commit subject lines, oldest first. Empty when either ref is missing.
        """
        ...

    @abstractmethod
    def has_remote(self, repo_root: Path) -> bool:
        """Check whether the repository has at least one configured remote."""
        ...

    @abstractmethod
    def remote_add_hint(self, repo_root: Path) -> str:
        """Get the command a user should run to configure a remote."""
        ...

    @abstractmethod
    def get_branch_upstream(self, repo_root: Path, branch: str) -> str | None:
        """Get the upstream ref a local branch tracks (e.g. 'origin/main').

        Returns:
            Upstream short name, or None when the branch tracks nothing
        """
        ...

    @abstractmethod
    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check whether ancestor is reachable from descendant.

        Used to detect branches that have already been merged into their base.
        """
        ...

    @abstractmethod
    def is_valid_branch_name(self, repo_root: Path, name: str) -> bool:
        """Check whether name is an acceptable git branch name."""
        ...

    @abstractmethod
    def create_branch(self, repo_root: Path, branch_name: str, start_point: str) -> None:
        """Create a new branch without checking it out.

        Args:
            repo_root: Path to the repository root
            branch_name: Name of the branch to create
            start_point: Commit/branch to base the new branch on
        """
        ...

    @abstractmethod
    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        """Checkout a branch in the given repository."""
        ...
