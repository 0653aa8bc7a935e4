"""Rich/JSON output for ServiceResult.

Machines get the whole result as JSON (``--json``). Humans get a status
line and, for queries, one table row per result row with the query's
output names as columns. Rendering goes through a StringIO-backed Rich
console so every formatter returns a plain string.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from indicate.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from indicate.services.result import ServiceResult


def _cell(value: Any) -> Text:
    if value is None:
        return Text("null", style="indicate.null")
    if isinstance(value, bool):
        return Text(str(value).lower())
    if isinstance(value, (int, float)):
        return Text(str(value), style="indicate.number")
    if isinstance(value, (list, dict)):
        return Text(_json.dumps(value, separators=(",", ":")))
    return Text(str(value))


def _columns(rows: list[dict[str, Any]]) -> list[str]:
    """Union of row keys, in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def rows_table(rows: list[dict[str, Any]]) -> Table:
    """Build a Rich Table with one column per output name."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    columns = _columns(rows)
    for column in columns:
        table.add_column(column, header_style="indicate.header")
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    return table


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span_data.get('name', '?')}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _render_ok(result: ServiceResult, console: Console) -> None:
    console.print(Text("OK", style="indicate.ok"), Text(f"  {result.op}", style="indicate.op"))
    rows = result.data.get("rows")
    if isinstance(rows, list):
        console.print(Text(f"  {len(rows)} row(s)", style="indicate.key"))
        if rows:
            console.print(rows_table(rows))
        return
    for key, value in result.data.items():
        console.print(Text(f"  {key}: ", style="indicate.key"), _cell(value))


def _render_error(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="indicate.error"),
        Text(f"  {result.op}{code}", style="indicate.op"),
        Text(f": {msg}"),
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def format_result(
    result: ServiceResult,
    *,
    json_output: bool = False,
    verbose: bool = False,
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise human-readable text.
        verbose: Include error detail and the telemetry span tree.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    console = create_console()
    if result.ok:
        _render_ok(result, console)
    else:
        _render_error(result, console, verbose=verbose)

    if verbose and result.meta:
        console.print(Text("  meta:", style="dim"))
        for key, value in result.meta.items():
            if key == "telemetry":
                _render_telemetry_tree(console, value)
            else:
                console.print(f"    {key}: {value}")
    return get_output(console).rstrip("\n")
