"""Pure functions building and querying branch stacks.

Every mutating function returns a new DependencyDocument; the input document
is never modified.
"""

from dataclasses import replace
from datetime import datetime

from specstack.core.branches.errors import (
    BranchNotFoundError,
    BranchValidationError,
    CircularDependencyError,
    DuplicateBranchNameError,
    InvalidSpecIdError,
    InvalidStatusTransitionError,
)
from specstack.core.branches.models import (
    BranchEntry,
    BranchStatus,
    DependencyDocument,
    is_valid_spec_id,
    truncate_to_millis,
)

ALLOWED_TRANSITIONS: dict[BranchStatus, tuple[BranchStatus, ...]] = {
    BranchStatus.ACTIVE: (BranchStatus.SUBMITTED, BranchStatus.MERGED, BranchStatus.ABANDONED),
    BranchStatus.SUBMITTED: (BranchStatus.ACTIVE, BranchStatus.MERGED, BranchStatus.ABANDONED),
    BranchStatus.ABANDONED: (BranchStatus.ACTIVE,),
    BranchStatus.MERGED: (),
}


def find_entry(doc: DependencyDocument, name: str) -> BranchEntry | None:
    for entry in doc.branches:
        if entry.name == name:
            return entry
    return None


def children_of(doc: DependencyDocument, name: str) -> list[BranchEntry]:
    """Get entries stacked directly on name, in creation order."""
    return [entry for entry in doc.branches if entry.base_branch == name]


def rebuild_spec_index(branches: list[BranchEntry]) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for entry in branches:
        names = index.setdefault(entry.spec_id, [])
        if entry.name not in names:
            names.append(entry.name)
    return index


def detect_cycle(doc: DependencyDocument) -> list[str] | None:
    """Find a cycle in base pointers.

    Returns:
        Branch names along the cycle with the first name repeated at the end,
        or None when base pointers form a forest
    """
    by_name = {entry.name: entry for entry in doc.branches}
    cleared: set[str] = set()

    for start in doc.branches:
        path: list[str] = []
        on_path: set[str] = set()
        current: BranchEntry | None = start
        while current is not None and current.name not in cleared:
            if current.name in on_path:
                cycle_start = path.index(current.name)
                return path[cycle_start:] + [current.name]
            path.append(current.name)
            on_path.add(current.name)
            current = by_name.get(current.base_branch)
        cleared.update(path)

    return None


def create_entry(
    doc: DependencyDocument,
    *,
    name: str,
    spec_id: str,
    base_branch: str,
    now: datetime,
    parent_spec_id: str | None = None,
) -> DependencyDocument:
    """Append a new active entry.

    Raises:
        InvalidSpecIdError: If spec_id or parent_spec_id is malformed
        DuplicateBranchNameError: If name is already tracked
        CircularDependencyError: If the branch would be its own base
    """
    if not is_valid_spec_id(spec_id):
        raise InvalidSpecIdError(spec_id)
    if parent_spec_id is not None and not is_valid_spec_id(parent_spec_id):
        raise InvalidSpecIdError(parent_spec_id)
    if find_entry(doc, name) is not None:
        raise DuplicateBranchNameError(name)
    if base_branch == name:
        raise CircularDependencyError([name, name])

    timestamp = truncate_to_millis(now)
    entry = BranchEntry(
        name=name,
        spec_id=spec_id,
        base_branch=base_branch,
        status=BranchStatus.ACTIVE,
        pr=None,
        created_at=timestamp,
        updated_at=timestamp,
        parent_spec_id=parent_spec_id,
    )
    branches = [*doc.branches, entry]
    return replace(doc, branches=branches, spec_index=rebuild_spec_index(branches))


def resolve_stack(doc: DependencyDocument, name: str) -> list[BranchEntry]:
    """Walk base pointers from name down to the untracked root.

    Returns:
        Entries root-first, ending with name. The trunk (or any untracked
        base) is not included.

    Raises:
        BranchNotFoundError: If name is not tracked
        CircularDependencyError: If base pointers loop back on themselves
    """
    entry = find_entry(doc, name)
    if entry is None:
        raise BranchNotFoundError(name)

    chain = [entry]
    seen = {entry.name}
    current = entry
    for _ in range(len(doc.branches)):
        parent = find_entry(doc, current.base_branch)
        if parent is None:
            break
        if parent.name in seen:
            names = [item.name for item in reversed(chain)]
            raise CircularDependencyError([parent.name, *names])
        chain.append(parent)
        seen.add(parent.name)
        current = parent

    chain.reverse()
    return chain


def update_entry(
    doc: DependencyDocument,
    name: str,
    *,
    now: datetime,
    status: BranchStatus | None = None,
    pr: int | None = None,
) -> DependencyDocument:
    """Change status and/or PR number of a tracked entry.

    Raises:
        BranchNotFoundError: If name is not tracked
        InvalidStatusTransitionError: If the status change is not allowed
        BranchValidationError: If pr is not a positive number
    """
    entry = find_entry(doc, name)
    if entry is None:
        raise BranchNotFoundError(name)

    if status is not None and status != entry.status:
        allowed = ALLOWED_TRANSITIONS[entry.status]
        if status not in allowed:
            raise InvalidStatusTransitionError(
                name,
                entry.status.value,
                status.value,
                [item.value for item in allowed],
            )

    if pr is not None and pr <= 0:
        raise BranchValidationError(f"Invalid PR number {pr}", remedy="PR numbers are positive.")

    updated = replace(
        entry,
        status=status if status is not None else entry.status,
        pr=pr if pr is not None else entry.pr,
        updated_at=max(truncate_to_millis(now), entry.created_at),
    )
    branches = [updated if item.name == name else item for item in doc.branches]
    return replace(doc, branches=branches)
