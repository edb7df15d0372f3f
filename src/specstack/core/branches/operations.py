"""Branch tracking operations: create, import, update, health check, reports.

Each operation loads the repository's document through ctx.store, validates
the request completely, then performs side effects (git, then storage) and
returns a structured result. Nothing here prints; the command layer decides
how results are shown.
"""

import fnmatch
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from specstack.core.branches.errors import (
    BranchNotFoundError,
    BranchValidationError,
    CircularDependencyError,
    DuplicateBranchNameError,
    InvalidBranchNameError,
    MissingSpecIdError,
)
from specstack.core.branches.models import (
    BASE_NOT_TRACKED,
    CHECKOUT_FAILED,
    NO_REMOTE,
    BranchEntry,
    BranchStatus,
    DependencyDocument,
    OperationWarning,
)
from specstack.core.branches.pr_suggestion import (
    PRSuggestion,
    build_pr_suggestion,
    should_suggest_pr,
)
from specstack.core.branches.stack import (
    children_of,
    create_entry,
    detect_cycle,
    find_entry,
    resolve_stack,
    update_entry,
)
from specstack.core.branches.status_report import render_repository, render_workspace
from specstack.core.branches.trunk import detect_default_branch
from specstack.core.branches.validation import validate_base_branch
from specstack.core.config import load_repo_config
from specstack.core.context import SpecstackContext
from specstack.core.workspace import (
    WorkspaceInfo,
    WorkspaceMode,
    detect_workspace,
    discover_spec_ids,
)

logger = logging.getLogger(__name__)

NO_REMOTE_MESSAGE = "No remote configured. Branch created locally. PR creation unavailable."

IMPORT_PROMPT_EXIT_CODE = 3


def resolve_trunk(ctx: SpecstackContext, repo_root: Path) -> str:
    config = load_repo_config(repo_root)
    return detect_default_branch(ctx.git, repo_root, config.trunk_branch)


# ============================================================================
# Create
# ============================================================================


class CreateOutcome(Enum):
    """Result signal of a successful create; the value is the process exit code."""

    CREATED = 0
    SUGGESTION_AVAILABLE = 2

    @property
    def exit_code(self) -> int:
        return self.value


@dataclass(frozen=True)
class CreateResult:
    """Outcome of creating a tracked branch.

    Fields:
        entry: The new entry
        stack: Stack the new branch sits on, root-first, ending with entry
        outcome: CREATED, or SUGGESTION_AVAILABLE when suggestion is set
        suggestion: PR suggestion for the branch the new one stacks on
        warnings: Non-fatal conditions (no remote, untracked base)
        trunk: Detected trunk branch of the repository
    """

    entry: BranchEntry
    stack: list[BranchEntry]
    outcome: CreateOutcome
    suggestion: PRSuggestion | None
    warnings: list[OperationWarning]
    trunk: str


def _default_base(
    ctx: SpecstackContext,
    repo_root: Path,
    doc: DependencyDocument,
    trunk: str,
) -> str:
    current = ctx.git.get_current_branch(repo_root)
    if current is not None and find_entry(doc, current) is not None:
        logger.debug("Defaulting base to current tracked branch %s", current)
        return current
    return trunk


def _check_new_branch_name(
    ctx: SpecstackContext,
    repo_root: Path,
    doc: DependencyDocument,
    name: str,
    local_branches: list[str],
) -> None:
    if not ctx.git.is_valid_branch_name(repo_root, name):
        raise InvalidBranchNameError(name, "not a valid git branch name")
    if find_entry(doc, name) is not None:
        raise DuplicateBranchNameError(name)
    if name in local_branches:
        raise InvalidBranchNameError(
            name,
            "a git branch with this name already exists",
            remedy=f"Use 'specstack branch import --batch {name}:<spec-id>' to track it.",
        )


def _resolve_parent_spec(
    workspace: WorkspaceInfo,
    base_entry: BranchEntry | None,
    spec_id: str,
    parent_spec_id: str | None,
) -> str | None:
    if not workspace.is_child:
        if parent_spec_id is not None:
            raise BranchValidationError(
                "--parent-spec is only valid in a child repository of a multi-repo workspace",
                remedy="Drop --parent-spec, or link this repository to a workspace root first.",
            )
        return None
    if parent_spec_id is not None:
        return parent_spec_id
    if base_entry is not None and base_entry.parent_spec_id is not None:
        return base_entry.parent_spec_id
    return spec_id


def create_branch(
    ctx: SpecstackContext,
    repo_root: Path,
    *,
    name: str,
    base_branch: str | None = None,
    spec_id: str | None = None,
    parent_spec_id: str | None = None,
    checkout: bool = True,
) -> CreateResult:
    """Create a git branch and start tracking it.

    All validation happens before the git branch is created. When the new
    branch stacks on an active tracked branch that has commits but no PR, a
    PR suggestion for that branch is returned as well.

    Args:
        ctx: Specstack context
        repo_root: Repository to create the branch in
        name: New branch name
        base_branch: Branch to stack on (None = current tracked branch, else trunk)
        spec_id: Spec id (None = inherit from the tracked base)
        parent_spec_id: Orchestrating root spec (child repositories only)
        checkout: Whether to check the new branch out

    Raises:
        BranchValidationError: If the request is rejected; nothing was changed
        CorruptDocumentError: If the existing document cannot be loaded
        EmptyRepositoryError: If the repository has no branches
    """
    workspace = detect_workspace(repo_root)
    trunk = resolve_trunk(ctx, repo_root)
    doc = ctx.store.load(repo_root)
    local_branches = ctx.git.list_local_branches(repo_root)

    if base_branch is None:
        base_branch = _default_base(ctx, repo_root, doc, trunk)

    validate_base_branch(repo_root, base_branch, local_branches, trunk)
    _check_new_branch_name(ctx, repo_root, doc, name, local_branches)

    base_entry = find_entry(doc, base_branch)
    if spec_id is None:
        if base_entry is None:
            raise MissingSpecIdError(name)
        spec_id = base_entry.spec_id
    parent_spec_id = _resolve_parent_spec(workspace, base_entry, spec_id, parent_spec_id)

    updated = create_entry(
        doc,
        name=name,
        spec_id=spec_id,
        base_branch=base_branch,
        now=ctx.time.now(),
        parent_spec_id=parent_spec_id,
    )

    warnings: list[OperationWarning] = []
    has_remote = ctx.git.has_remote(repo_root)
    if not has_remote:
        warnings.append(
            OperationWarning(
                code=NO_REMOTE,
                message=NO_REMOTE_MESSAGE,
                hint=f"To enable PRs: {ctx.git.remote_add_hint(repo_root)}",
            )
        )
    if base_entry is None and base_branch != trunk:
        warnings.append(
            OperationWarning(
                code=BASE_NOT_TRACKED,
                message=f"Base branch '{base_branch}' is not tracked; treating it as a stack root.",
                hint=f"Track it with 'specstack branch import --batch {base_branch}:{spec_id}'.",
            )
        )

    suggestion: PRSuggestion | None = None
    if base_entry is not None:
        subjects = ctx.git.commit_subjects(repo_root, base_entry.base_branch, base_entry.name)
        if should_suggest_pr(base_entry, subjects):
            if has_remote:
                suggestion = build_pr_suggestion(
                    superseded=base_entry,
                    commit_subjects=subjects,
                    stack=resolve_stack(doc, base_entry.name),
                    repo_prefix=workspace.child_name,
                )
            else:
                logger.debug("Skipping PR suggestion for %s: no remote", base_entry.name)

    ctx.git.create_branch(repo_root, name, base_branch)
    ctx.store.save(repo_root, updated)
    logger.debug("Tracking %s on %s for spec %s", name, base_branch, spec_id)

    if checkout:
        try:
            ctx.git.checkout_branch(repo_root, name)
        except RuntimeError as e:
            logger.debug("Checkout of %s failed: %s", name, e)
            warnings.append(
                OperationWarning(
                    code=CHECKOUT_FAILED,
                    message=(
                        f"Branch '{name}' was created and tracked but could not be checked out."
                    ),
                    hint=f"Commit or stash local changes, then run 'git checkout {name}'.",
                )
            )

    entry = find_entry(updated, name)
    if entry is None:
        raise BranchNotFoundError(name)
    outcome = CreateOutcome.CREATED
    if suggestion is not None:
        outcome = CreateOutcome.SUGGESTION_AVAILABLE
    return CreateResult(
        entry=entry,
        stack=resolve_stack(updated, name),
        outcome=outcome,
        suggestion=suggestion,
        warnings=warnings,
        trunk=trunk,
    )


# ============================================================================
# Import
# ============================================================================


@dataclass(frozen=True)
class ImportCandidate:
    """An existing, untracked local branch that could be imported."""

    name: str
    upstream: str | None
    inferred_base: str


@dataclass(frozen=True)
class ImportPrompt:
    """Import needs the caller to pick a spec for each candidate."""

    candidates: list[ImportCandidate]
    available_specs: list[str]

    @property
    def exit_code(self) -> int:
        return IMPORT_PROMPT_EXIT_CODE


@dataclass(frozen=True)
class ImportApplied:
    """Branches imported in batch mode."""

    imported: list[BranchEntry]
    skipped: list[str]


def parse_import_assignment(text: str) -> tuple[str, str]:
    """Parse a NAME:SPEC batch assignment.

    Raises:
        BranchValidationError: If text is not NAME:SPEC
    """
    name, separator, spec_id = text.partition(":")
    if not separator or not name or not spec_id:
        raise BranchValidationError(
            f"Invalid import assignment '{text}'",
            remedy="Use NAME:SPEC, e.g. feature/db:007-multi-repo.",
        )
    return name, spec_id


def infer_base(name: str, upstream: str | None, trunk: str, local_branches: list[str]) -> str:
    """Infer an imported branch's base from its upstream.

    A branch tracking origin/<other> is assumed to stack on <other>. Branches
    tracking themselves, nothing, or a branch that does not exist locally
    are based on trunk.
    """
    if upstream is None:
        return trunk
    candidate = upstream.removeprefix("origin/")
    if not candidate or candidate == name:
        return trunk
    if candidate != trunk and candidate not in local_branches:
        return trunk
    return candidate


def list_import_candidates(
    ctx: SpecstackContext,
    repo_root: Path,
    doc: DependencyDocument,
    trunk: str,
    pattern: str | None = None,
) -> list[ImportCandidate]:
    local_branches = ctx.git.list_local_branches(repo_root)
    candidates: list[ImportCandidate] = []
    for name in local_branches:
        if name == trunk or find_entry(doc, name) is not None:
            continue
        if pattern is not None and not fnmatch.fnmatchcase(name, pattern):
            continue
        upstream = ctx.git.get_branch_upstream(repo_root, name)
        candidates.append(
            ImportCandidate(
                name=name,
                upstream=upstream,
                inferred_base=infer_base(name, upstream, trunk, local_branches),
            )
        )
    return candidates


def known_spec_ids(doc: DependencyDocument, workspace: WorkspaceInfo) -> list[str]:
    """Spec ids already tracked plus spec directories in the workspace root."""
    return sorted(set(doc.spec_index) | set(discover_spec_ids(workspace.workspace_root)))


def import_branches(
    ctx: SpecstackContext,
    repo_root: Path,
    assignments: Mapping[str, str] | None = None,
    pattern: str | None = None,
) -> ImportApplied | ImportPrompt:
    """Start tracking existing local branches.

    Without assignments, returns an ImportPrompt listing untracked branches
    (optionally filtered by a glob pattern) with their inferred bases and the
    known spec ids. With assignments (branch name -> spec id), imports those
    branches and saves once.

    Raises:
        BranchValidationError: If any assignment is invalid; nothing is saved
    """
    workspace = detect_workspace(repo_root)
    trunk = resolve_trunk(ctx, repo_root)
    doc = ctx.store.load(repo_root)

    if assignments is None:
        return ImportPrompt(
            candidates=list_import_candidates(ctx, repo_root, doc, trunk, pattern),
            available_specs=known_spec_ids(doc, workspace),
        )

    local_branches = ctx.git.list_local_branches(repo_root)
    now = ctx.time.now()
    updated = doc
    imported_names: list[str] = []
    skipped: list[str] = []

    for name, spec_id in assignments.items():
        if find_entry(updated, name) is not None:
            logger.debug("Skipping %s: already tracked", name)
            skipped.append(name)
            continue
        if name not in local_branches:
            raise InvalidBranchNameError(name, "no local git branch with this name")
        if name == trunk:
            raise InvalidBranchNameError(name, "the trunk branch cannot be tracked")

        upstream = ctx.git.get_branch_upstream(repo_root, name)
        base = infer_base(name, upstream, trunk, local_branches)
        validate_base_branch(repo_root, base, local_branches, trunk)
        updated = create_entry(
            updated,
            name=name,
            spec_id=spec_id,
            base_branch=base,
            now=now,
            parent_spec_id=spec_id if workspace.is_child else None,
        )
        imported_names.append(name)

    cycle = detect_cycle(updated)
    if cycle is not None:
        raise CircularDependencyError(cycle)

    if imported_names:
        ctx.store.save(repo_root, updated)

    imported = [entry for entry in updated.branches if entry.name in imported_names]
    return ImportApplied(imported=imported, skipped=skipped)


# ============================================================================
# Update
# ============================================================================


def update_branch(
    ctx: SpecstackContext,
    repo_root: Path,
    name: str,
    *,
    status: BranchStatus | None = None,
    pr: int | None = None,
) -> BranchEntry:
    """Record a status change and/or PR number for a tracked branch.

    Raises:
        BranchValidationError: If nothing was requested or the change is not allowed
    """
    if status is None and pr is None:
        raise BranchValidationError(
            f"Nothing to update for '{name}'",
            remedy="Pass --status and/or --pr.",
        )

    doc = ctx.store.load(repo_root)
    updated = update_entry(doc, name, now=ctx.time.now(), status=status, pr=pr)
    ctx.store.save(repo_root, updated)

    entry = find_entry(updated, name)
    if entry is None:
        raise BranchNotFoundError(name)
    return entry


# ============================================================================
# Health check
# ============================================================================


class HealthIssueKind(Enum):
    MERGED_NOT_RECORDED = "merged-not-recorded"
    REBASE_NEEDED = "rebase-needed"


@dataclass(frozen=True)
class HealthIssue:
    """A tracked branch whose recorded state has drifted from git."""

    branch: str
    kind: HealthIssueKind
    message: str
    fix: str


def _is_merged_into_base(ctx: SpecstackContext, repo_root: Path, entry: BranchEntry) -> bool:
    # Base contains the tip and has moved past it
    if not ctx.git.is_ancestor(repo_root, entry.name, entry.base_branch):
        return False
    return not ctx.git.is_ancestor(repo_root, entry.base_branch, entry.name)


def check_stack_health(
    ctx: SpecstackContext,
    repo_root: Path,
    doc: DependencyDocument,
) -> list[HealthIssue]:
    """Report tracked branches whose git state disagrees with the document.

    Branches whose tip or base no longer exists locally are not inspected.
    """
    trunk = resolve_trunk(ctx, repo_root)
    open_statuses = (BranchStatus.ACTIVE, BranchStatus.SUBMITTED)
    issues: list[HealthIssue] = []

    for entry in doc.branches:
        if not ctx.git.ref_exists(repo_root, entry.name):
            continue
        if not ctx.git.ref_exists(repo_root, entry.base_branch):
            continue

        merged = _is_merged_into_base(ctx, repo_root, entry)
        if merged and entry.status in open_statuses:
            issues.append(
                HealthIssue(
                    branch=entry.name,
                    kind=HealthIssueKind.MERGED_NOT_RECORDED,
                    message=(
                        f"Merged into '{entry.base_branch}' but recorded as {entry.status.value}"
                    ),
                    fix=f"specstack branch update {entry.name} --status merged",
                )
            )

        if merged or entry.status == BranchStatus.MERGED:
            for child in children_of(doc, entry.name):
                if child.status not in open_statuses:
                    continue
                issues.append(
                    HealthIssue(
                        branch=child.name,
                        kind=HealthIssueKind.REBASE_NEEDED,
                        message=f"Base branch '{entry.name}' has been merged",
                        fix=f"git rebase --onto {trunk} {entry.name} {child.name}",
                    )
                )

    return issues


# ============================================================================
# Reports
# ============================================================================


def load_workspace_documents(
    ctx: SpecstackContext,
    workspace: WorkspaceInfo,
) -> tuple[DependencyDocument, dict[str, DependencyDocument]]:
    """Load the root document and one document per linked child."""
    root_doc = ctx.store.load(workspace.workspace_root)
    child_docs = {name: ctx.store.load(path) for name, path in workspace.children.items()}
    return root_doc, child_docs


def render_environment(ctx: SpecstackContext, repo_root: Path) -> str:
    """Render status for a repository, or for the whole workspace from its root."""
    workspace = detect_workspace(repo_root)
    if workspace.mode == WorkspaceMode.ROOT:
        root_doc, child_docs = load_workspace_documents(ctx, workspace)
        return render_workspace(root_doc, child_docs)

    doc = ctx.store.load(repo_root)
    return render_repository(doc, ctx.git.get_current_branch(repo_root))
