"""Fake git operations for testing.

FakeGit is an in-memory implementation that accepts pre-configured state
per repository in its constructor. Construct instances directly with keyword
arguments.
"""

import re
from pathlib import Path

from specstack.core.git.abc import Git

_INVALID_BRANCH_CHARS = re.compile(r"[\s~^:?*\[\\]|\.\.|@\{|//")


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments keyed by repository root.
    """

    def __init__(
        self,
        *,
        local_branches: dict[Path, list[str]] | None = None,
        current_branches: dict[Path, str | None] | None = None,
        commit_ranges: dict[Path, dict[tuple[str, str], list[str]]] | None = None,
        remotes: dict[Path, list[str]] | None = None,
        upstreams: dict[Path, dict[str, str]] | None = None,
        merged: dict[Path, set[tuple[str, str]]] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            local_branches: Mapping of repo_root -> local branch names
            current_branches: Mapping of repo_root -> checked-out branch
            commit_ranges: Mapping of repo_root -> {(from_ref, to_ref): subjects oldest first}
            remotes: Mapping of repo_root -> remote names
            upstreams: Mapping of repo_root -> {branch: upstream ref}
            merged: Mapping of repo_root -> {(ancestor, descendant)} reachability pairs
        """
        self._local_branches = {root: list(names) for root, names in (local_branches or {}).items()}
        self._current_branches = dict(current_branches or {})
        self._commit_ranges = commit_ranges or {}
        self._remotes = remotes or {}
        self._upstreams = upstreams or {}
        self._merged = merged or {}
        self._created_branches: list[tuple[Path, str, str]] = []
        self._checked_out_branches: list[tuple[Path, str]] = []

    @property
    def created_branches(self) -> list[tuple[Path, str, str]]:
        """Read-only access to create_branch() calls for test assertions.

        Returns list of (repo_root, branch_name, start_point) tuples.
        """
        return self._created_branches

    @property
    def checked_out_branches(self) -> list[tuple[Path, str]]:
        """Read-only access to checkout_branch() calls for test assertions."""
        return self._checked_out_branches

    def get_repository_root(self, cwd: Path) -> Path | None:
        candidates = [root for root in self._local_branches if cwd == root or root in cwd.parents]
        if not candidates:
            return None
        return max(candidates, key=lambda root: len(root.parts))

    def get_current_branch(self, cwd: Path) -> str | None:
        root = self.get_repository_root(cwd)
        if root is None:
            return None
        return self._current_branches.get(root)

    def list_local_branches(self, repo_root: Path) -> list[str]:
        return list(self._local_branches.get(repo_root, []))

    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        return ref in self._local_branches.get(repo_root, [])

    def commit_subjects(self, repo_root: Path, from_ref: str, to_ref: str) -> list[str]:
        return list(self._commit_ranges.get(repo_root, {}).get((from_ref, to_ref), []))

    def has_remote(self, repo_root: Path) -> bool:
        return bool(self._remotes.get(repo_root))

    def remote_add_hint(self, repo_root: Path) -> str:
        return "git remote add origin <url>"

    def get_branch_upstream(self, repo_root: Path, branch: str) -> str | None:
        return self._upstreams.get(repo_root, {}).get(branch)

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        return (ancestor, descendant) in self._merged.get(repo_root, set())

    def is_valid_branch_name(self, repo_root: Path, name: str) -> bool:
        if not name or name.startswith(("-", "/")) or name.endswith(("/", ".", ".lock")):
            return False
        return _INVALID_BRANCH_CHARS.search(name) is None

    def create_branch(self, repo_root: Path, branch_name: str, start_point: str) -> None:
        branches = self._local_branches.setdefault(repo_root, [])
        if branch_name in branches:
            msg = f"Failed to create branch '{branch_name}' from '{start_point}'"
            raise RuntimeError(msg)
        branches.append(branch_name)
        self._created_branches.append((repo_root, branch_name, start_point))

    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        self._current_branches[repo_root] = branch
        self._checked_out_branches.append((repo_root, branch))
