"""Branch tracking commands."""

import click

from specstack.cli.commands.branch.create_cmd import create_branch_cmd
from specstack.cli.commands.branch.import_cmd import import_branches_cmd
from specstack.cli.commands.branch.list_cmd import list_branches_cmd
from specstack.cli.commands.branch.status_cmd import branch_status_cmd
from specstack.cli.commands.branch.update_cmd import update_branch_cmd


@click.group("branch")
def branch_group() -> None:
    """Create and track stacked branches."""
    pass


# Register subcommands
branch_group.add_command(create_branch_cmd, name="create")
branch_group.add_command(import_branches_cmd, name="import")
branch_group.add_command(list_branches_cmd, name="list")
branch_group.add_command(branch_status_cmd, name="status")
branch_group.add_command(update_branch_cmd, name="update")
