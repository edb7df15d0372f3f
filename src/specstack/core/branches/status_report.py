"""Text rendering of branch stacks for one repository or a whole workspace."""

from collections.abc import Mapping

from specstack.core.branches.models import BranchEntry, BranchStatus, DependencyDocument

NO_BRANCHES_MESSAGE = "No branches tracked yet."
NO_TRACKED_BRANCHES = "no tracked branches"


def status_counts(doc: DependencyDocument) -> dict[BranchStatus, int]:
    counts = {status: 0 for status in BranchStatus}
    for entry in doc.branches:
        counts[entry.status] += 1
    return counts


def format_status_counts(doc: DependencyDocument) -> str:
    """Summarize statuses, e.g. '2 active, 1 merged' (zero counts omitted)."""
    counts = status_counts(doc)
    parts = [f"{count} {status.value}" for status, count in counts.items() if count > 0]
    return ", ".join(parts)


def _describe(entry: BranchEntry, current_branch: str | None) -> str:
    details = entry.status.value
    if entry.pr is not None:
        details += f", PR #{entry.pr}"
    label = f"{entry.name} ({details})"
    if entry.name == current_branch:
        label += " (current)"
    return label


def _render_subtree(
    entry: BranchEntry,
    members: list[BranchEntry],
    prefix: str,
    is_last: bool,
    current_branch: str | None,
    lines: list[str],
    visited: set[str],
) -> None:
    if entry.name in visited:
        return
    visited.add(entry.name)

    connector = "└─" if is_last else "├─"
    lines.append(f"{prefix}{connector} {_describe(entry, current_branch)}")

    children = [item for item in members if item.base_branch == entry.name]
    child_prefix = prefix + ("   " if is_last else "│  ")
    for index, child in enumerate(children):
        _render_subtree(
            child,
            members,
            child_prefix,
            index == len(children) - 1,
            current_branch,
            lines,
            visited,
        )


def _render_lines(
    doc: DependencyDocument,
    current_branch: str | None,
    only_spec: str | None = None,
) -> list[str]:
    by_name = {entry.name: entry for entry in doc.branches}
    lines: list[str] = []

    for spec_id, names in doc.spec_index.items():
        if only_spec is not None and spec_id != only_spec:
            continue
        members = [by_name[name] for name in names if name in by_name]
        member_names = {entry.name for entry in members}
        roots = [entry for entry in members if entry.base_branch not in member_names]

        bases: list[str] = []
        for root in roots:
            if root.base_branch not in bases:
                bases.append(root.base_branch)

        if lines:
            lines.append("")
        lines.append(f"Spec: {spec_id}")
        visited: set[str] = set()
        for base in bases:
            lines.append(f"  {base}")
            base_roots = [root for root in roots if root.base_branch == base]
            for index, root in enumerate(base_roots):
                _render_subtree(
                    root,
                    members,
                    "  ",
                    index == len(base_roots) - 1,
                    current_branch,
                    lines,
                    visited,
                )

    return lines


def render_repository(
    doc: DependencyDocument,
    current_branch: str | None = None,
    only_spec: str | None = None,
) -> str:
    """Render tracked stacks in a repository, grouped by spec.

    Each stack starts at its base ref and descends root-first with tree
    connectors; every branch shows its status and PR number when known.
    only_spec limits the output to a single spec.
    """
    if not doc.branches:
        return NO_BRANCHES_MESSAGE
    return "\n".join(_render_lines(doc, current_branch, only_spec))


def _render_section(header: str, doc: DependencyDocument) -> list[str]:
    lines = [f"{header}:"]
    if not doc.branches:
        lines.append(f"  {NO_TRACKED_BRANCHES}")
        return lines
    lines.append(f"  {format_status_counts(doc)}")
    lines.extend(f"  {line}" if line else "" for line in _render_lines(doc, None))
    return lines


def render_workspace(
    root_doc: DependencyDocument,
    child_docs: Mapping[str, DependencyDocument],
) -> str:
    """Render a multi-repo workspace: the root first, then children by name."""
    sections = [_render_section("Root", root_doc)]
    for name in sorted(child_docs):
        sections.append(_render_section(f"Child: {name}", child_docs[name]))
    return "\n\n".join("\n".join(section) for section in sections)
