"""PR suggestions for branches superseded by a new stacked branch.

When a developer stacks a new branch on an active branch that has commits but
no pull request yet, that branch is ready for review. The suggestion carries
everything needed to open the PR; nothing here talks to a code host.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from specstack.core.branches.models import BranchEntry, BranchStatus

_CONVENTIONAL_PREFIX = re.compile(r"^[a-zA-Z]+(?:\([^)]*\))?!?:\s*")
_LOW_SIGNAL_SUBJECT = re.compile(r"^(?:fixup!|squash!|amend!|wip\b|merge\b)", re.IGNORECASE)


@dataclass(frozen=True)
class PRSuggestion:
    """Title, body and target base for a PR that should be opened."""

    branch: str
    title: str
    body: str
    base: str


def should_suggest_pr(superseded: BranchEntry | None, commit_subjects: Sequence[str]) -> bool:
    """Check whether stacking on superseded makes it ready for a PR.

    Args:
        superseded: Tracked entry the new branch is based on (None if untracked)
        commit_subjects: Commits between superseded's base and its tip
    """
    if superseded is None:
        return False
    if superseded.status != BranchStatus.ACTIVE:
        return False
    if superseded.pr is not None:
        return False
    return len(commit_subjects) > 0


def summarize_subject(subject: str) -> str:
    """Turn a commit subject into a PR title (conventional prefix removed)."""
    summary = _CONVENTIONAL_PREFIX.sub("", subject.strip(), count=1).strip()
    if not summary:
        return subject.strip()
    return summary[0].upper() + summary[1:]


def choose_title_subject(commit_subjects: Sequence[str]) -> str | None:
    """Pick the most recent commit subject that says something substantive.

    Falls back to the most recent subject when every commit is a fixup, WIP
    or merge commit.
    """
    if not commit_subjects:
        return None
    for subject in reversed(commit_subjects):
        if subject.strip() and _LOW_SIGNAL_SUBJECT.match(subject.strip()) is None:
            return subject
    return commit_subjects[-1]


def _format_stack(stack: Sequence[BranchEntry]) -> str:
    if not stack:
        return ""
    return " -> ".join([stack[0].base_branch, *(entry.name for entry in stack)])


def build_pr_suggestion(
    *,
    superseded: BranchEntry,
    commit_subjects: Sequence[str],
    stack: Sequence[BranchEntry],
    repo_prefix: str | None = None,
) -> PRSuggestion:
    """Build the PR suggestion for a superseded branch.

    Args:
        superseded: Branch that should get a PR
        commit_subjects: Its commits, oldest first
        stack: Entries from the stack root up to and including superseded
        repo_prefix: Repository name to prefix the title with (child repos only)

    Returns:
        PRSuggestion targeting superseded's own base branch
    """
    subject = choose_title_subject(commit_subjects)
    summary = summarize_subject(subject) if subject is not None else superseded.name
    title = f"[{repo_prefix}] {summary}" if repo_prefix else summary

    lines = ["## Changes", ""]
    lines.extend(f"- {item}" for item in commit_subjects)
    lines.append("")
    lines.append(f"Spec: {superseded.spec_id}")
    stack_line = _format_stack(stack)
    if stack_line:
        lines.append(f"Stack: {stack_line}")

    return PRSuggestion(
        branch=superseded.name,
        title=title,
        body="\n".join(lines),
        base=superseded.base_branch,
    )
