"""Import existing local branches into tracking."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import emit_json, error_boundary
from specstack.cli.json_schemas import (
    BranchInfo,
    ImportAppliedResponse,
    ImportCandidateInfo,
    ImportPromptResponse,
)
from specstack.cli.output import user_output
from specstack.core.branches.operations import (
    ImportApplied,
    ImportPrompt,
    import_branches,
    parse_import_assignment,
)
from specstack.core.context import SpecstackContext


def _show_prompt(prompt: ImportPrompt) -> None:
    if not prompt.candidates:
        user_output("No untracked branches found to import.")
        return

    user_output(f"Found {len(prompt.candidates)} untracked branch(es):")
    for candidate in prompt.candidates:
        user_output()
        user_output(f"Branch: {candidate.name}")
        user_output(f"  Upstream: {candidate.upstream or '(none)'}")
        user_output(f"  Inferred base: {candidate.inferred_base}")

    user_output()
    if prompt.available_specs:
        user_output("Known specs:")
        for index, spec_id in enumerate(prompt.available_specs, start=1):
            user_output(f"  {index}. {spec_id}")
    else:
        user_output("No known specs.")
    user_output()
    user_output("Re-run with --batch NAME:SPEC for each branch to import.")


def _show_applied(applied: ImportApplied) -> None:
    for entry in applied.imported:
        details = f"{entry.spec_id}, base {entry.base_branch}"
        user_output(click.style("✓", fg="green") + f" Imported {entry.name} ({details})")
    for name in applied.skipped:
        user_output(f"⊘ {name} (already tracked)")
    user_output(f"Imported: {len(applied.imported)}, skipped: {len(applied.skipped)}")


@click.command("import")
@click.option(
    "--batch",
    "batch",
    multiple=True,
    metavar="NAME:SPEC",
    help="Import branch NAME for spec SPEC (repeatable)",
)
@click.option("--pattern", help="Only consider branches matching this glob")
@click.option("--json", "json_mode", is_flag=True, help="Output JSON to stdout")
@click.pass_obj
@error_boundary
def import_branches_cmd(
    ctx: SpecstackContext,
    batch: tuple[str, ...],
    pattern: str | None,
    json_mode: bool,
) -> None:
    """Track existing local branches.

    Without --batch, lists importable branches and known specs and exits with
    code 3 so the caller can choose a spec for each branch.
    """
    repo = Ensure.in_repo(ctx)

    assignments: dict[str, str] | None = None
    if batch:
        assignments = dict(parse_import_assignment(item) for item in batch)

    result = import_branches(ctx, repo.root, assignments=assignments, pattern=pattern)

    if isinstance(result, ImportPrompt):
        if json_mode:
            response = ImportPromptResponse(
                branches=[ImportCandidateInfo.from_candidate(item) for item in result.candidates],
                available_specs=result.available_specs,
            )
            emit_json(response.model_dump(mode="json"))
        else:
            _show_prompt(result)
        if result.candidates:
            raise SystemExit(result.exit_code)
        return

    if json_mode:
        applied = ImportAppliedResponse(
            imported=[BranchInfo.from_entry(entry) for entry in result.imported],
            skipped=result.skipped,
        )
        emit_json(applied.model_dump(mode="json"))
    else:
        _show_applied(result)
