"""Root CLI group for indicate with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from indicate import __version__
from indicate.commands import register_commands
from indicate.commands._context import AppContext
from indicate.config.settings import IndicateSettings
from indicate.errors import ConfigurationError


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="indicate")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing telemetry.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--manifest-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Cargo.toml of the package to inspect.",
)
@click.option(
    "--metadata",
    "metadata_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Saved `cargo metadata --format-version 1` output to use instead of cargo.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    manifest_path: Path | None,
    metadata_path: Path | None,
) -> None:
    """indicate — query a Rust dependency tree and what is known about it."""
    ctx.ensure_object(dict)
    try:
        settings = IndicateSettings.from_cli(
            config_path=config_path,
            # Unset flags fall through to env vars and indicate.toml.
            json_output=json_output or None,
            verbose=verbose or None,
            log_json=log_json or None,
            manifest_path=manifest_path,
            metadata_path=metadata_path,
        )
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
