"""Command: run a query file against the dependency graph."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from indicate.commands._base import IndicateCommand
from indicate.engine import load_query_file
from indicate.errors import ConfigurationError
from indicate.services.result import ServiceError, ServiceResult
from indicate.services.query import QueryService

if TYPE_CHECKING:
    from indicate.commands._context import AppContext

_QUERY_EXAMPLES = """\
  indicate query queries/advisories.json
  indicate query queries/deps.toml --arg name=serde
  indicate --metadata metadata.json query queries/unsafe.json --limit 10
  indicate --json query queries/stars.toml --arg min_stars=100"""


def _parse_arg(raw: str) -> tuple[str, Any]:
    """``name=value``; value is read as JSON when it parses, else as a string."""
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VALUE, got {raw!r}", param_hint="--arg")
    try:
        return name, json.loads(value)
    except json.JSONDecodeError:
        return name, value


@click.command(cls=IndicateCommand, examples=_QUERY_EXAMPLES)
@click.argument("query_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--arg",
    "raw_args",
    multiple=True,
    help="Query argument NAME=VALUE, overriding the file's args. Repeatable.",
)
@click.option("--limit", default=None, type=click.IntRange(min=0), help="Max rows.")
@click.pass_obj
def query(app: AppContext, query_file: Path, raw_args: tuple[str, ...], limit: int | None) -> None:
    """Run the query in QUERY_FILE (.json or .toml) and print its rows."""
    try:
        qfile = load_query_file(query_file)
    except ConfigurationError as exc:
        app.emit(
            ServiceResult(
                ok=False,
                op="query",
                error=ServiceError(code=exc.code, message=str(exc)),
            )
        )
        return

    args = {**qfile.args, **dict(_parse_arg(raw) for raw in raw_args)}
    app.emit(QueryService(app.build_adapter).run(qfile.query, args, limit=limit))
