"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import logging
import subprocess
from pathlib import Path

from specstack.core.git.abc import Git
from specstack.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd."""
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip()).resolve()

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if branch == "HEAD":
            return None

        return branch

    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        result = run_subprocess_with_context(
            ["git", "branch", "--format=%(refname:short)"],
            operation_context="list local branches",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.strip().split("\n") if line.strip()]

    def ref_exists(self, repo_root: Path, ref: str) -> bool:
        """Check whether a ref resolves inside this repository."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0

    def commit_subjects(self, repo_root: Path, from_ref: str, to_ref: str) -> list[str]:
        """Get commit subjects in from_ref..to_ref, oldest first."""
        if not self.ref_exists(repo_root, from_ref) or not self.ref_exists(repo_root, to_ref):
            logger.debug("Skipping commit listing, missing ref: %s..%s", from_ref, to_ref)
            return []

        result = run_subprocess_with_context(
            ["git", "log", "--reverse", "--format=%s", f"{from_ref}..{to_ref}"],
            operation_context=f"list commits between '{from_ref}' and '{to_ref}'",
            cwd=repo_root,
        )
        return [line for line in result.stdout.splitlines() if line.strip()]

    def has_remote(self, repo_root: Path) -> bool:
        """Check whether the repository has at least one configured remote."""
        result = run_subprocess_with_context(
            ["git", "remote"],
            operation_context="list remotes",
            cwd=repo_root,
        )
        return bool(result.stdout.strip())

    def remote_add_hint(self, repo_root: Path) -> str:
        """Get the command a user should run to configure a remote."""
        return "git remote add origin <url>"

    def get_branch_upstream(self, repo_root: Path, branch: str) -> str | None:
        """Get the upstream ref a local branch tracks."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        upstream = result.stdout.strip()
        return upstream or None

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check whether ancestor is reachable from descendant."""
        result = subprocess.run(
            ["git", "merge-base", "--is-ancestor", ancestor, descendant],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0

    def is_valid_branch_name(self, repo_root: Path, name: str) -> bool:
        """Check whether name is an acceptable git branch name."""
        result = subprocess.run(
            ["git", "check-ref-format", "--branch", name],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        return result.returncode == 0

    def create_branch(self, repo_root: Path, branch_name: str, start_point: str) -> None:
        """Create a new branch without checking it out."""
        run_subprocess_with_context(
            ["git", "branch", branch_name, start_point],
            operation_context=f"create branch '{branch_name}' from '{start_point}'",
            cwd=repo_root,
        )

    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        """Checkout a branch in the given repository."""
        run_subprocess_with_context(
            ["git", "checkout", branch],
            operation_context=f"checkout branch '{branch}'",
            cwd=repo_root,
        )
