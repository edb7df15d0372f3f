import logging
import os

import click

from specstack.cli.commands.branch import branch_group
from specstack.cli.commands.config import config_group
from specstack.cli.commands.env import env_cmd
from specstack.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

DEBUG_ENV_VAR = "SPECSTACK_DEBUG"


def configure_logging() -> None:
    """Enable debug logging if SPECSTACK_DEBUG environment variable is set."""
    if os.getenv(DEBUG_ENV_VAR):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="specstack")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track stacked branches per spec and suggest pull requests."""
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()


cli.add_command(branch_group)
cli.add_command(config_group)
cli.add_command(env_cmd)


def main() -> None:
    """CLI entry point used by the `specstack` console script."""
    configure_logging()
    cli()
