"""Output routing for CLI commands.

user_output: human-readable messages, sent to stderr
machine_output: structured data (JSON), sent to stdout
"""

import click


def user_output(message: str = "", nl: bool = True) -> None:
    """Write a message for humans to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", nl: bool = True) -> None:
    """Write machine-readable output to stdout."""
    click.echo(message, nl=nl)
