"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from specstack.core.branches.store import (
    DependencyStore,
    FilesystemDependencyStore,
    InMemoryDependencyStore,
)
from specstack.core.git.abc import Git
from specstack.core.git.fake import FakeGit
from specstack.core.git.real import RealGit
from specstack.core.repo_discovery import NoRepoSentinel, RepoContext, discover_repo_or_sentinel
from specstack.core.time.abc import Time
from specstack.core.time.fake import FakeTime
from specstack.core.time.real import RealTime


@dataclass(frozen=True)
class SpecstackContext:
    """Immutable context holding all dependencies for specstack operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    git: Git
    time: Time
    store: DependencyStore
    cwd: Path  # Current working directory at CLI invocation
    repo: RepoContext | NoRepoSentinel

    @staticmethod
    def for_test(
        git: Git | None = None,
        time: Time | None = None,
        store: DependencyStore | None = None,
        cwd: Path | None = None,
        repo: RepoContext | NoRepoSentinel | None = None,
    ) -> "SpecstackContext":
        """Create test context with optional pre-configured dependencies.

        Args:
            git: Optional Git implementation. If None, creates empty FakeGit.
            time: Optional Time implementation. If None, creates a frozen FakeTime.
            store: Optional DependencyStore. If None, creates empty InMemoryDependencyStore.
            cwd: Optional current working directory. If None, uses Path("/test/default/cwd").
            repo: Optional RepoContext or NoRepoSentinel. If None, uses NoRepoSentinel().

        Example:
            >>> git = FakeGit(local_branches={Path("/repo"): ["main"]})
            >>> ctx = SpecstackContext.for_test(git=git, cwd=Path("/repo"))
        """
        return SpecstackContext(
            git=git if git is not None else FakeGit(),
            time=time if time is not None else FakeTime(),
            store=store if store is not None else InMemoryDependencyStore(),
            cwd=cwd if cwd is not None else Path("/test/default/cwd"),
            repo=repo if repo is not None else NoRepoSentinel(),
        )


def create_context() -> SpecstackContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.
    """
    cwd = Path.cwd()
    git: Git = RealGit()
    repo = discover_repo_or_sentinel(cwd, git)

    return SpecstackContext(
        git=git,
        time=RealTime(),
        store=FilesystemDependencyStore(),
        cwd=cwd,
        repo=repo,
    )
