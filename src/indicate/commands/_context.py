"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Configures logging and telemetry, builds the adapter
on demand, and centralizes result emission (stdout/stderr routing + exit
codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from indicate.config.logging import configure_logging
from indicate.output.formatters import format_result
from indicate.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from indicate.adapter import IndicateAdapter
    from indicate.config.settings import IndicateSettings
    from indicate.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The adapter is built lazily so ``--help`` and ``schema`` never run
    ``cargo metadata``.
    """

    def __init__(self, settings: IndicateSettings) -> None:
        self.settings = settings
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    def build_adapter(self) -> IndicateAdapter:
        from indicate.adapter_builder import build_adapter

        return build_adapter(self.settings)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(
            result,
            json_output=self.settings.json_output,
            verbose=self.settings.verbose,
        )
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not self.settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
