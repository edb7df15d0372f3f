"""Create a stacked branch and start tracking it."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import emit_json, emit_json_error, error_boundary
from specstack.cli.json_schemas import (
    BranchInfo,
    CreateCommandResponse,
    PRSuggestionInfo,
    WarningInfo,
)
from specstack.cli.output import user_output
from specstack.core.branches.operations import CreateOutcome, CreateResult, create_branch
from specstack.core.context import SpecstackContext


def _stack_names(result: CreateResult) -> list[str]:
    return [result.stack[0].base_branch, *(entry.name for entry in result.stack)]


def _show_warnings(result: CreateResult) -> None:
    for warning in result.warnings:
        user_output(click.style("Warning: ", fg="yellow") + warning.message)
        if warning.hint is not None:
            user_output(f"  {warning.hint}")


def _show_human(result: CreateResult) -> None:
    entry = result.entry
    user_output(click.style("✓", fg="green") + f" Created branch '{entry.name}'")
    user_output(f"  Based on: {entry.base_branch}")
    user_output(f"  Spec: {entry.spec_id}")
    if entry.parent_spec_id is not None:
        user_output(f"  Parent spec: {entry.parent_spec_id}")
    user_output(f"  Stack: {' -> '.join(_stack_names(result))}")

    suggestion = result.suggestion
    if suggestion is None:
        return

    user_output()
    user_output(click.style(f"'{suggestion.branch}' is ready for a pull request:", bold=True))
    user_output(f"  Title: {suggestion.title}")
    user_output(f"  Base:  {suggestion.base}")
    user_output()
    for line in suggestion.body.splitlines():
        user_output(f"  {line}" if line else "")


@click.command("create")
@click.argument("name")
@click.option(
    "--base",
    "base_branch",
    help="Branch to stack on (default: current tracked branch, else trunk)",
)
@click.option(
    "--spec",
    "spec_id",
    help="Spec id, e.g. 007-multi-repo (default: inherited from base)",
)
@click.option("--parent-spec", "parent_spec_id", help="Orchestrating spec in the workspace root")
@click.option("--no-checkout", is_flag=True, help="Create the branch without checking it out")
@click.option("--json", "json_mode", is_flag=True, help="Output JSON to stdout")
@click.pass_obj
@error_boundary
def create_branch_cmd(
    ctx: SpecstackContext,
    name: str,
    base_branch: str | None,
    spec_id: str | None,
    parent_spec_id: str | None,
    no_checkout: bool,
    json_mode: bool,
) -> None:
    """Create branch NAME stacked on a base branch and track it.

    Exits with code 2 when the base branch is ready for a pull request; the
    suggested title, body and base are included in the output.
    """
    repo = Ensure.in_repo(ctx)
    try:
        result = create_branch(
            ctx,
            repo.root,
            name=name,
            base_branch=base_branch,
            spec_id=spec_id,
            parent_spec_id=parent_spec_id,
            checkout=not no_checkout,
        )
    except RuntimeError as e:
        if json_mode:
            emit_json_error(str(e), "GitCommandError")
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    _show_warnings(result)

    if json_mode:
        response = CreateCommandResponse(
            outcome="suggestion-available" if result.suggestion is not None else "created",
            branch=BranchInfo.from_entry(result.entry),
            stack=_stack_names(result),
            pr_suggestion=(
                PRSuggestionInfo.from_suggestion(result.suggestion)
                if result.suggestion is not None
                else None
            ),
            warnings=[WarningInfo.from_warning(warning) for warning in result.warnings],
        )
        emit_json(response.model_dump(mode="json"))
    else:
        _show_human(result)

    if result.outcome != CreateOutcome.CREATED:
        raise SystemExit(result.outcome.exit_code)
