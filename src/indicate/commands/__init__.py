"""Subcommand modules for indicate.

Provides register_commands() which uses deferred imports to keep
``indicate --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from indicate.commands.query import query
    from indicate.commands.schema import schema

    cli.add_command(query)
    cli.add_command(schema)
