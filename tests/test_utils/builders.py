"""Builders for dependency documents and real git repositories used in tests."""

import subprocess
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from specstack.core.branches.models import (
    CURRENT_SCHEMA_VERSION,
    BranchEntry,
    BranchStatus,
    DependencyDocument,
)
from specstack.core.branches.stack import rebuild_spec_index

CREATED = datetime(2024, 1, 10, 9, 30, 0, tzinfo=UTC)
DEFAULT_SPEC = "007-multi-repo"


def make_entry(
    name: str,
    *,
    base_branch: str = "main",
    spec_id: str = DEFAULT_SPEC,
    status: BranchStatus = BranchStatus.ACTIVE,
    pr: int | None = None,
    created_at: datetime = CREATED,
    updated_at: datetime | None = None,
    parent_spec_id: str | None = None,
) -> BranchEntry:
    return BranchEntry(
        name=name,
        spec_id=spec_id,
        base_branch=base_branch,
        status=status,
        pr=pr,
        created_at=created_at,
        updated_at=updated_at if updated_at is not None else created_at,
        parent_spec_id=parent_spec_id,
    )


def make_document(*entries: BranchEntry) -> DependencyDocument:
    """Build a consistent document holding entries in the given order."""
    branches = list(entries)
    return DependencyDocument(
        schema_version=CURRENT_SCHEMA_VERSION,
        branches=branches,
        spec_index=rebuild_spec_index(branches),
    )


def raw_entry(
    name: str,
    *,
    base_branch: str = "main",
    spec_id: str = DEFAULT_SPEC,
    status: str = "active",
    pr: int | None = None,
    created_at: str = "2024-01-10T09:30:00.000Z",
    updated_at: str | None = None,
) -> dict[str, Any]:
    """Build one persisted (camelCase) branch entry at the current schema."""
    return {
        "name": name,
        "specId": spec_id,
        "baseBranch": base_branch,
        "status": status,
        "pr": pr,
        "createdAt": created_at,
        "updatedAt": updated_at if updated_at is not None else created_at,
    }


def raw_document(*entries: dict[str, Any]) -> dict[str, Any]:
    """Build a persisted document at the current schema with a matching specIndex."""
    index: dict[str, list[str]] = {}
    for entry in entries:
        index.setdefault(entry["specId"], []).append(entry["name"])
    return {
        "schemaVersion": CURRENT_SCHEMA_VERSION,
        "branches": list(entries),
        "specIndex": index,
    }


# ============================================================================
# Real git helpers
# ============================================================================


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def init_git_repo(repo: Path) -> Path:
    """Create a repository on main with one initial commit."""
    repo.mkdir(parents=True, exist_ok=True)
    run_git(repo, "init", "-b", "main")
    run_git(repo, "config", "user.email", "test@example.com")
    run_git(repo, "config", "user.name", "Test User")
    run_git(repo, "config", "commit.gpgsign", "false")
    commit_file(repo, "README.md", "Initial commit")
    return repo.resolve()


def commit_file(repo: Path, filename: str, message: str, content: str | None = None) -> None:
    path = repo / filename
    path.write_text(content if content is not None else f"{message}\n", encoding="utf-8")
    run_git(repo, "add", filename)
    run_git(repo, "commit", "-m", message)
