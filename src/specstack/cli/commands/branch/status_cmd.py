"""Check tracked branches against git."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import error_boundary
from specstack.cli.output import user_output
from specstack.core.branches.operations import HealthIssueKind, check_stack_health
from specstack.core.branches.status_report import NO_BRANCHES_MESSAGE
from specstack.core.context import SpecstackContext

_LABELS = {
    HealthIssueKind.MERGED_NOT_RECORDED: "MERGED",
    HealthIssueKind.REBASE_NEEDED: "REBASE NEEDED",
}


@click.command("status")
@click.pass_obj
@error_boundary
def branch_status_cmd(ctx: SpecstackContext) -> None:
    """Report merged branches and stacks that need a rebase."""
    repo = Ensure.in_repo(ctx)
    doc = ctx.store.load(repo.root)

    if not doc.branches:
        user_output(NO_BRANCHES_MESSAGE)
        return

    issues = check_stack_health(ctx, repo.root, doc)
    if not issues:
        user_output(click.style("✓", fg="green") + " Branch stacks are healthy")
        return

    for issue in issues:
        user_output(f"{issue.branch}")
        user_output(click.style(f"  ⚠ {_LABELS[issue.kind]}: ", fg="yellow") + issue.message)
        user_output(f"  → Run: {issue.fix}")
    user_output()
    user_output(f"{len(issues)} warning(s) found")
