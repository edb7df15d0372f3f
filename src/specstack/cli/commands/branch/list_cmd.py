"""List tracked branches as stack trees."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import error_boundary
from specstack.cli.output import user_output
from specstack.core.branches.stack import find_entry
from specstack.core.branches.status_report import NO_BRANCHES_MESSAGE, render_repository
from specstack.core.context import SpecstackContext


@click.command("list")
@click.option(
    "--all", "show_all", is_flag=True, help="Show every spec, not just the current branch's"
)
@click.pass_obj
@error_boundary
def list_branches_cmd(ctx: SpecstackContext, show_all: bool) -> None:
    """Show the stack of the current branch's spec.

    Example:
        $ specstack branch list
        Spec: 007-multi-repo
          main
          └─ feature/db (active, PR #12)
             └─ feature/api (active) (current)
    """
    repo = Ensure.in_repo(ctx)
    doc = ctx.store.load(repo.root)
    current = ctx.git.get_current_branch(repo.root)

    if not doc.branches:
        user_output(NO_BRANCHES_MESSAGE)
        user_output("Create one with: specstack branch create <name> --spec <spec-id>")
        return

    if show_all:
        user_output(render_repository(doc, current))
        user_output()
        user_output(f"Total: {len(doc.branches)} branches across {len(doc.spec_index)} specs")
        return

    entry = find_entry(doc, current) if current is not None else None
    if entry is None:
        user_output("Current branch is not tracked.")
        user_output("Use --all to see all tracked branches.")
        return

    user_output(render_repository(doc, current, only_spec=entry.spec_id))
