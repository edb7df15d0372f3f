"""Pydantic models for JSON output schemas.

This module defines the validated JSON schemas for CLI commands that support
--json output. These models ensure type safety and provide runtime validation
of JSON output structures.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from specstack.core.branches.models import BranchEntry, OperationWarning, format_timestamp
from specstack.core.branches.operations import ImportCandidate
from specstack.core.branches.pr_suggestion import PRSuggestion


class BranchInfo(BaseModel):
    """A tracked branch as reported by JSON output."""

    model_config = ConfigDict(strict=True)

    name: str
    spec_id: str
    base_branch: str
    status: str = Field(..., pattern="^(active|submitted|merged|abandoned)$")
    pr: int | None
    created_at: str
    updated_at: str
    parent_spec_id: str | None

    @staticmethod
    def from_entry(entry: BranchEntry) -> "BranchInfo":
        return BranchInfo(
            name=entry.name,
            spec_id=entry.spec_id,
            base_branch=entry.base_branch,
            status=entry.status.value,
            pr=entry.pr,
            created_at=format_timestamp(entry.created_at),
            updated_at=format_timestamp(entry.updated_at),
            parent_spec_id=entry.parent_spec_id,
        )


class WarningInfo(BaseModel):
    model_config = ConfigDict(strict=True)

    code: str
    message: str
    hint: str | None

    @staticmethod
    def from_warning(warning: OperationWarning) -> "WarningInfo":
        return WarningInfo(code=warning.code, message=warning.message, hint=warning.hint)


class PRSuggestionInfo(BaseModel):
    """Suggested pull request for a branch that has been stacked on."""

    model_config = ConfigDict(strict=True)

    branch: str
    title: str
    body: str
    base: str

    @staticmethod
    def from_suggestion(suggestion: PRSuggestion) -> "PRSuggestionInfo":
        return PRSuggestionInfo(
            branch=suggestion.branch,
            title=suggestion.title,
            body=suggestion.body,
            base=suggestion.base,
        )


class CreateCommandResponse(BaseModel):
    """JSON response schema for `specstack branch create`.

    Attributes:
        outcome: "created", or "suggestion-available" when pr_suggestion is set
        branch: The new branch
        stack: Branch names root-first, starting with the stack's base ref
        pr_suggestion: PR to open for the branch stacked on
        warnings: Non-fatal conditions
    """

    model_config = ConfigDict(strict=True)

    outcome: Literal["created", "suggestion-available"]
    branch: BranchInfo
    stack: list[str]
    pr_suggestion: PRSuggestionInfo | None
    warnings: list[WarningInfo]


class ImportCandidateInfo(BaseModel):
    model_config = ConfigDict(strict=True)

    name: str
    upstream: str | None
    inferred_base: str

    @staticmethod
    def from_candidate(candidate: ImportCandidate) -> "ImportCandidateInfo":
        return ImportCandidateInfo(
            name=candidate.name,
            upstream=candidate.upstream,
            inferred_base=candidate.inferred_base,
        )


class ImportPromptResponse(BaseModel):
    """JSON response when import needs a spec chosen for each branch (exit code 3)."""

    model_config = ConfigDict(strict=True)

    type: Literal["import-prompt"] = "import-prompt"
    branches: list[ImportCandidateInfo]
    available_specs: list[str]


class ImportAppliedResponse(BaseModel):
    """JSON response after a batch import."""

    model_config = ConfigDict(strict=True)

    type: Literal["import-applied"] = "import-applied"
    imported: list[BranchInfo]
    skipped: list[str]


class RepositoryStatus(BaseModel):
    model_config = ConfigDict(strict=True)

    name: str
    path: str
    branches: list[BranchInfo]


class EnvCommandResponse(BaseModel):
    """JSON response schema for `specstack env`.

    Attributes:
        mode: single, root or child
        repo_root: Repository the command ran in
        workspace_root: Root repository of the workspace
        child_name: Name of this repository when it is a child
        repositories: Root (or single) repository first, then children by name
    """

    model_config = ConfigDict(strict=True)

    mode: Literal["single", "root", "child"]
    repo_root: str
    workspace_root: str
    child_name: str | None
    repositories: list[RepositoryStatus]
