"""Command: print the schema queries are written against."""

from __future__ import annotations

import click

from indicate.commands._base import IndicateCommand
from indicate.schema import declared_fields, load_schema_text


@click.command(
    cls=IndicateCommand,
    examples="""\
  indicate schema
  indicate schema --fields""",
)
@click.option("--fields", is_flag=True, help="List Type.field pairs instead of the SDL.")
def schema(fields: bool) -> None:
    """Print the GraphQL schema."""
    if not fields:
        click.echo(load_schema_text().rstrip("\n"))
        return
    for type_name, type_fields in declared_fields().items():
        for field, type_ref in type_fields.items():
            click.echo(f"{type_name}.{field}: {type_ref}")
