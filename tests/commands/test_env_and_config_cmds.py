"""Tests for `specstack env` and `specstack config`."""

import json
from pathlib import Path

from click.testing import CliRunner

from specstack.cli.cli import cli
from specstack.core.branches.store import InMemoryDependencyStore
from specstack.core.context import SpecstackContext
from specstack.core.git.fake import FakeGit
from specstack.core.repo_discovery import RepoContext
from specstack.core.workspace import CHILD_LINK_PREFIX, root_link_path
from tests.test_utils.builders import raw_document, raw_entry


def _link_child(root: Path, child: Path) -> None:
    (child / ".specstack").mkdir(parents=True)
    root_link_path(child).symlink_to(root)
    (root / f"{CHILD_LINK_PREFIX}{child.name}").symlink_to(child)


def test_env_single_repository(tmp_path: Path) -> None:
    runner = CliRunner()
    git = FakeGit(local_branches={tmp_path: ["main"]}, current_branches={tmp_path: "main"})
    store = InMemoryDependencyStore(documents={tmp_path: raw_document(raw_entry("feature/db"))})
    ctx = SpecstackContext.for_test(
        git=git,
        store=store,
        cwd=tmp_path,
        repo=RepoContext(root=tmp_path, repo_name=tmp_path.name),
    )

    result = runner.invoke(cli, ["env"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "=== Branch Stack Status ===" in result.output
    assert "feature/db (active)" in result.output


def test_env_workspace_root_shows_children(tmp_path: Path) -> None:
    runner = CliRunner()
    root = tmp_path / "platform"
    root.mkdir()
    backend = tmp_path / "backend"
    frontend = tmp_path / "frontend"
    _link_child(root, backend)
    _link_child(root, frontend)
    store = InMemoryDependencyStore(
        documents={
            backend.resolve(): raw_document(
                raw_entry("api-v2"),
                raw_entry("api-v1", status="merged"),
            ),
        }
    )
    ctx = SpecstackContext.for_test(
        git=FakeGit(local_branches={root: ["main"]}),
        store=store,
        cwd=root,
        repo=RepoContext(root=root, repo_name="platform"),
    )

    result = runner.invoke(cli, ["env"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "=== Branch Stack Status (Multi-Repo) ===" in result.output
    assert "Root:" in result.output
    assert "Child: backend" in result.output
    assert "1 active, 1 merged" in result.output
    assert "Child: frontend" in result.output


def test_env_json_from_workspace_root(tmp_path: Path) -> None:
    runner = CliRunner()
    root = tmp_path / "platform"
    root.mkdir()
    backend = tmp_path / "backend"
    _link_child(root, backend)
    store = InMemoryDependencyStore(
        documents={backend.resolve(): raw_document(raw_entry("api-v2"))}
    )
    ctx = SpecstackContext.for_test(
        git=FakeGit(local_branches={root: ["main"]}),
        store=store,
        cwd=root,
        repo=RepoContext(root=root, repo_name="platform"),
    )

    result = runner.invoke(cli, ["env", "--json"], obj=ctx)

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["mode"] == "root"
    assert data["child_name"] is None
    assert [repo["name"] for repo in data["repositories"]] == ["platform", "backend"]
    assert data["repositories"][0]["branches"] == []
    assert data["repositories"][1]["branches"][0]["name"] == "api-v2"


def test_env_json_from_child(tmp_path: Path) -> None:
    runner = CliRunner()
    root = tmp_path / "platform"
    root.mkdir()
    backend = tmp_path / "backend"
    _link_child(root, backend)
    ctx = SpecstackContext.for_test(
        git=FakeGit(local_branches={backend: ["main"]}),
        cwd=backend,
        repo=RepoContext(root=backend, repo_name="backend"),
    )

    result = runner.invoke(cli, ["env", "--json"], obj=ctx)

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["mode"] == "child"
    assert data["child_name"] == "backend"
    assert data["workspace_root"] == str(root.resolve())


def test_config_set_and_get_trunk(tmp_path: Path) -> None:
    runner = CliRunner()
    ctx = SpecstackContext.for_test(
        git=FakeGit(local_branches={tmp_path: ["main", "develop"]}),
        cwd=tmp_path,
        repo=RepoContext(root=tmp_path, repo_name=tmp_path.name),
    )

    set_result = runner.invoke(cli, ["config", "set", "trunk-branch", "develop"], obj=ctx)
    get_result = runner.invoke(cli, ["config", "get", "trunk-branch"], obj=ctx)

    assert set_result.exit_code == 0, set_result.output
    assert "Set trunk-branch=develop" in set_result.output
    assert get_result.exit_code == 0
    assert get_result.stdout.strip() == "develop"


def test_config_set_unknown_branch_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    ctx = SpecstackContext.for_test(
        git=FakeGit(local_branches={tmp_path: ["main"]}),
        cwd=tmp_path,
        repo=RepoContext(root=tmp_path, repo_name=tmp_path.name),
    )

    result = runner.invoke(cli, ["config", "set", "trunk-branch", "release"], obj=ctx)

    assert result.exit_code == 1
    assert "Branch 'release' does not exist" in result.output
    assert not (tmp_path / "pyproject.toml").exists()


def test_config_get_unset(tmp_path: Path) -> None:
    runner = CliRunner()
    ctx = SpecstackContext.for_test(
        cwd=tmp_path,
        repo=RepoContext(root=tmp_path, repo_name=tmp_path.name),
    )

    result = runner.invoke(cli, ["config", "get", "trunk-branch"], obj=ctx)

    assert result.exit_code == 0
    assert "not configured" in result.output


def test_configured_trunk_is_used_by_create(tmp_path: Path) -> None:
    runner = CliRunner()
    (tmp_path / "pyproject.toml").write_text(
        '[tool.specstack]\ntrunk_branch = "develop"\n', encoding="utf-8"
    )
    git = FakeGit(
        local_branches={tmp_path: ["main", "develop"]},
        current_branches={tmp_path: "develop"},
        remotes={tmp_path: ["origin"]},
    )
    ctx = SpecstackContext.for_test(
        git=git,
        cwd=tmp_path,
        repo=RepoContext(root=tmp_path, repo_name=tmp_path.name),
    )

    result = runner.invoke(
        cli, ["branch", "create", "feature/db", "--spec", "007-multi-repo"], obj=ctx
    )

    assert result.exit_code == 0, result.output
    assert git.created_branches == [(tmp_path, "feature/db", "develop")]
