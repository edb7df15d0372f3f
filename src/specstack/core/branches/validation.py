"""Same-repository base branch validation."""

from collections.abc import Collection
from pathlib import Path

from specstack.core.branches.errors import InvalidBaseError


def validate_base_branch(
    repo_root: Path,
    proposed_base: str,
    local_branch_names: Collection[str],
    trunk: str,
) -> None:
    """Reject base branches that do not exist in this repository.

    A base is acceptable when it is the trunk or one of the repository's own
    local branches. Names that only exist in a sibling repository are not
    visible here and are therefore rejected, which is how cross-repository
    dependencies are prevented.

    Args:
        repo_root: Repository the new branch will live in
        proposed_base: Requested base branch name
        local_branch_names: Local branches of repo_root
        trunk: Detected trunk branch of repo_root

    Raises:
        InvalidBaseError: If proposed_base is neither trunk nor a local branch
    """
    if proposed_base == trunk:
        return
    if proposed_base in local_branch_names:
        return
    raise InvalidBaseError(proposed_base, repo_root)
