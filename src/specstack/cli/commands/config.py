"""Repository configuration commands."""

import click

from specstack.cli.ensure import Ensure
from specstack.cli.json_output import error_boundary
from specstack.cli.output import machine_output, user_output
from specstack.core.config import load_repo_config, write_trunk_to_pyproject
from specstack.core.context import SpecstackContext

_KEYS = ("trunk-branch",)


@click.group("config")
def config_group() -> None:
    """Manage specstack configuration."""
    pass


@config_group.command("get")
@click.argument("key", metavar="KEY", type=click.Choice(_KEYS))
@click.pass_obj
@error_boundary
def config_get(ctx: SpecstackContext, key: str) -> None:
    """Print the value of a given configuration key."""
    repo = Ensure.in_repo(ctx)

    trunk_branch = load_repo_config(repo.root).trunk_branch
    if trunk_branch:
        machine_output(trunk_branch)
    else:
        user_output("not configured (will auto-detect)")


@config_group.command("set")
@click.argument("key", metavar="KEY", type=click.Choice(_KEYS))
@click.argument("value", metavar="VALUE")
@click.pass_obj
@error_boundary
def config_set(ctx: SpecstackContext, key: str, value: str) -> None:
    """Update configuration with a value for the given key."""
    repo = Ensure.in_repo(ctx)

    Ensure.invariant(
        ctx.git.ref_exists(repo.root, value),
        f"Branch '{value}' does not exist in repository.\n"
        "Create the branch first before configuring it as trunk.",
    )

    write_trunk_to_pyproject(repo.root, value)
    user_output(f"Set {key}={value}")
