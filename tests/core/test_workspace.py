"""Tests for multi-repo workspace detection and workspace-aware operations."""

from pathlib import Path

import pytest

from specstack.core.branches.errors import InvalidBaseError, WorkspaceConfigError
from specstack.core.branches.operations import create_branch, import_branches, render_environment
from specstack.core.branches.store import InMemoryDependencyStore
from specstack.core.context import SpecstackContext
from specstack.core.git.fake import FakeGit
from specstack.core.workspace import (
    CHILD_LINK_PREFIX,
    WorkspaceMode,
    detect_workspace,
    discover_spec_ids,
    list_child_repos,
    root_link_path,
)
from tests.test_utils.builders import raw_document, raw_entry


def _make_workspace(tmp_path: Path, *children: str) -> tuple[Path, dict[str, Path]]:
    """Create a root repository with symlinked child repositories."""
    root = tmp_path / "platform"
    root.mkdir()
    paths: dict[str, Path] = {}
    for name in children:
        child = tmp_path / name
        (child / ".specstack").mkdir(parents=True)
        root_link_path(child).symlink_to(root)
        (root / f"{CHILD_LINK_PREFIX}{name}").symlink_to(child)
        paths[name] = child
    return root, paths


def test_plain_repository_is_single(tmp_path: Path) -> None:
    info = detect_workspace(tmp_path)

    assert info.mode == WorkspaceMode.SINGLE
    assert info.workspace_root == tmp_path
    assert info.child_name is None
    assert not info.is_child


def test_root_repository_lists_children(tmp_path: Path) -> None:
    root, children = _make_workspace(tmp_path, "backend", "frontend")

    info = detect_workspace(root)

    assert info.mode == WorkspaceMode.ROOT
    assert info.children == {
        "backend": children["backend"].resolve(),
        "frontend": children["frontend"].resolve(),
    }


def test_child_repository_points_at_root(tmp_path: Path) -> None:
    root, children = _make_workspace(tmp_path, "backend")

    info = detect_workspace(children["backend"])

    assert info.mode == WorkspaceMode.CHILD
    assert info.is_child
    assert info.child_name == "backend"
    assert info.workspace_root == root.resolve()


def test_broken_child_link_is_skipped(tmp_path: Path) -> None:
    root, _ = _make_workspace(tmp_path, "backend")
    (root / f"{CHILD_LINK_PREFIX}gone").symlink_to(tmp_path / "does-not-exist")

    assert list(list_child_repos(root)) == ["backend"]


def test_broken_root_link_raises(tmp_path: Path) -> None:
    (tmp_path / ".specstack").mkdir()
    root_link_path(tmp_path).symlink_to(tmp_path / "missing-root")

    with pytest.raises(WorkspaceConfigError) as exc_info:
        detect_workspace(tmp_path)

    assert "rm " in exc_info.value.remedy


def test_root_link_that_is_a_file_raises(tmp_path: Path) -> None:
    (tmp_path / ".specstack").mkdir()
    root_link_path(tmp_path).write_text("../platform", encoding="utf-8")

    with pytest.raises(WorkspaceConfigError):
        detect_workspace(tmp_path)


def test_discover_spec_ids(tmp_path: Path) -> None:
    for name in ["010-platform", "007-multi-repo", "drafts", "11-short"]:
        (tmp_path / "specs" / name).mkdir(parents=True)
    (tmp_path / "specs" / "012-file.md").write_text("", encoding="utf-8")

    assert discover_spec_ids(tmp_path) == ["007-multi-repo", "010-platform"]
    assert discover_spec_ids(tmp_path / "nowhere") == []


# ============================================================================
# Operations inside a workspace
# ============================================================================


def test_child_suggestion_title_has_repository_prefix(tmp_path: Path) -> None:
    _, children = _make_workspace(tmp_path, "backend")
    backend = children["backend"]
    git = FakeGit(
        local_branches={backend: ["main", "api-v2"]},
        current_branches={backend: "api-v2"},
        commit_ranges={backend: {("main", "api-v2"): ["feat: version the API"]}},
        remotes={backend: ["origin"]},
    )
    store = InMemoryDependencyStore(documents={backend: raw_document(raw_entry("api-v2"))})
    ctx = SpecstackContext.for_test(git=git, store=store, cwd=backend)

    result = create_branch(ctx, backend, name="api-v2-docs")

    assert result.suggestion is not None
    assert result.suggestion.title == "[backend] Version the API"
    assert result.entry.parent_spec_id == "007-multi-repo"


def test_child_branch_inherits_parent_spec_from_base(tmp_path: Path) -> None:
    _, children = _make_workspace(tmp_path, "backend")
    backend = children["backend"]
    base = raw_entry("api-v2")
    base["parentSpecId"] = "010-platform"
    git = FakeGit(local_branches={backend: ["main", "api-v2"]}, remotes={backend: ["origin"]})
    store = InMemoryDependencyStore(documents={backend: raw_document(base)})
    ctx = SpecstackContext.for_test(git=git, store=store, cwd=backend)

    result = create_branch(ctx, backend, name="api-v2-docs", base_branch="api-v2")

    assert result.entry.parent_spec_id == "010-platform"


def test_child_branch_explicit_parent_spec(tmp_path: Path) -> None:
    _, children = _make_workspace(tmp_path, "backend")
    backend = children["backend"]
    git = FakeGit(local_branches={backend: ["main"]}, remotes={backend: ["origin"]})
    ctx = SpecstackContext.for_test(git=git, cwd=backend)

    result = create_branch(
        ctx,
        backend,
        name="api-v2",
        spec_id="007-multi-repo",
        parent_spec_id="010-platform",
    )

    assert result.entry.parent_spec_id == "010-platform"


def test_sibling_branch_is_not_a_valid_base(tmp_path: Path) -> None:
    """Two repositories in one workspace cannot stack on each other's branches."""
    _, children = _make_workspace(tmp_path, "backend", "frontend")
    backend = children["backend"]
    frontend = children["frontend"]
    git = FakeGit(
        local_branches={backend: ["main", "api-v2"], frontend: ["main"]},
        remotes={backend: ["origin"], frontend: ["origin"]},
    )
    ctx = SpecstackContext.for_test(git=git, cwd=frontend)

    with pytest.raises(InvalidBaseError):
        create_branch(
            ctx,
            frontend,
            name="ui-v2",
            base_branch="api-v2",
            spec_id="007-multi-repo",
        )


def test_same_branch_name_tracked_independently_per_repository(tmp_path: Path) -> None:
    _, children = _make_workspace(tmp_path, "backend", "frontend")
    git = FakeGit(
        local_branches={path: ["main"] for path in children.values()},
        remotes={path: ["origin"] for path in children.values()},
    )
    store = InMemoryDependencyStore()
    ctx = SpecstackContext.for_test(git=git, store=store)

    for path in children.values():
        create_branch(ctx, path, name="api-v2", spec_id="007-multi-repo")

    assert store.load(children["backend"]).names() == ["api-v2"]
    assert store.load(children["frontend"]).names() == ["api-v2"]


def test_child_import_records_parent_spec(tmp_path: Path) -> None:
    _, children = _make_workspace(tmp_path, "backend")
    backend = children["backend"]
    git = FakeGit(local_branches={backend: ["main", "api-v2"]})
    ctx = SpecstackContext.for_test(git=git, cwd=backend)

    result = import_branches(ctx, backend, assignments={"api-v2": "007-multi-repo"})

    assert result.imported[0].parent_spec_id == "007-multi-repo"  # type: ignore[union-attr]


def test_render_environment_from_root_shows_every_repository(tmp_path: Path) -> None:
    root, children = _make_workspace(tmp_path, "backend", "frontend")
    backend = children["backend"].resolve()
    git = FakeGit(local_branches={root: ["main"], backend: ["main", "api-v2", "api-v1"]})
    store = InMemoryDependencyStore(
        documents={
            backend: raw_document(
                raw_entry("api-v2"),
                raw_entry("api-v1", status="merged"),
            ),
        }
    )
    ctx = SpecstackContext.for_test(git=git, store=store, cwd=root)

    output = render_environment(ctx, root)

    assert "Root:" in output
    assert "Child: backend" in output
    assert "1 active, 1 merged" in output
    assert "Child: frontend" in output
    assert "no tracked branches" in output
