"""Repository and workspace status."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import emit_json, error_boundary
from specstack.cli.json_schemas import BranchInfo, EnvCommandResponse, RepositoryStatus
from specstack.cli.output import user_output
from specstack.core.branches.models import DependencyDocument
from specstack.core.branches.operations import load_workspace_documents, render_environment
from specstack.core.context import SpecstackContext
from specstack.core.workspace import WorkspaceMode, detect_workspace


def _repository_status(name: str, path: str, doc: DependencyDocument) -> RepositoryStatus:
    return RepositoryStatus(
        name=name,
        path=path,
        branches=[BranchInfo.from_entry(entry) for entry in doc.branches],
    )


@click.command("env")
@click.option("--json", "json_mode", is_flag=True, help="Output JSON to stdout")
@click.pass_obj
@error_boundary
def env_cmd(ctx: SpecstackContext, json_mode: bool) -> None:
    """Show tracked branches for this repository.

    From the root of a multi-repo workspace, shows the root and every linked
    child repository.
    """
    repo = Ensure.in_repo(ctx)
    workspace = detect_workspace(repo.root)

    if not json_mode:
        if workspace.mode == WorkspaceMode.ROOT:
            user_output("=== Branch Stack Status (Multi-Repo) ===")
        else:
            user_output("=== Branch Stack Status ===")
        if workspace.mode == WorkspaceMode.CHILD:
            user_output(f"Child repository '{workspace.child_name}' of {workspace.workspace_root}")
        user_output()
        user_output(render_environment(ctx, repo.root))
        return

    repositories: list[RepositoryStatus] = []
    if workspace.mode == WorkspaceMode.ROOT:
        root_doc, child_docs = load_workspace_documents(ctx, workspace)
        repositories.append(_repository_status(repo.repo_name, str(repo.root), root_doc))
        for name in sorted(child_docs):
            path = str(workspace.children[name])
            repositories.append(_repository_status(name, path, child_docs[name]))
    else:
        doc = ctx.store.load(repo.root)
        repositories.append(_repository_status(repo.repo_name, str(repo.root), doc))

    response = EnvCommandResponse(
        mode=workspace.mode.value,
        repo_root=str(workspace.repo_root),
        workspace_root=str(workspace.workspace_root),
        child_name=workspace.child_name,
        repositories=repositories,
    )
    emit_json(response.model_dump(mode="json"))
