"""Record status changes and PR numbers."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import error_boundary
from specstack.cli.output import user_output
from specstack.core.branches.models import BranchStatus
from specstack.core.branches.operations import update_branch
from specstack.core.context import SpecstackContext


@click.command("update")
@click.argument("name")
@click.option(
    "--status",
    type=click.Choice([status.value for status in BranchStatus]),
    help="New lifecycle status",
)
@click.option("--pr", type=int, help="Pull request number")
@click.pass_obj
@error_boundary
def update_branch_cmd(ctx: SpecstackContext, name: str, status: str | None, pr: int | None) -> None:
    """Update the status and/or PR number of tracked branch NAME."""
    repo = Ensure.in_repo(ctx)
    entry = update_branch(
        ctx,
        repo.root,
        name,
        status=BranchStatus(status) if status is not None else None,
        pr=pr,
    )

    details = entry.status.value
    if entry.pr is not None:
        details += f", PR #{entry.pr}"
    user_output(click.style("✓", fg="green") + f" Updated {entry.name} ({details})")
