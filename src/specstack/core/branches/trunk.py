"""Trunk branch detection."""

import logging
from pathlib import Path

from specstack.core.branches.errors import EmptyRepositoryError
from specstack.core.git.abc import Git

logger = logging.getLogger(__name__)

TRUNK_CANDIDATES = ("main", "master", "develop")


def detect_default_branch(git: Git, repo_root: Path, configured: str | None = None) -> str:
    """Pick the branch new stacks start from.

    Order of preference: the configured trunk when it exists locally, then
    main, master and develop, then the lexically first local branch.

    Raises:
        EmptyRepositoryError: If the repository has no local branches
    """
    branches = git.list_local_branches(repo_root)
    if not branches:
        raise EmptyRepositoryError(repo_root)

    if configured is not None:
        if configured in branches:
            return configured
        logger.debug("Configured trunk '%s' not found in %s, falling back", configured, repo_root)

    for candidate in TRUNK_CANDIDATES:
        if candidate in branches:
            return candidate

    return sorted(branches)[0]
