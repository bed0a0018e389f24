"""Command line — collect package statistics and write the report."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer

from package_stats.domain.entities import OutputMode
from package_stats.domain.value_objects import Organization
from package_stats.infrastructure.config import Settings, get_settings
from package_stats.interface.dependencies import (
    get_action_output,
    get_report_writer,
    use_case_for,
)
from package_stats.interface.error_handlers import report_failure
from package_stats.interface.schemas import render_report

logger = logging.getLogger(__name__)

OUTPUT_NAME = "packageStats"

app = typer.Typer(
    help="Collect package statistics from a GitHub organization.",
    add_completion=False,
)


async def run(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Collect, write and publish the report; return its compact JSON."""
    organization = Organization.from_string(settings.org)
    async with use_case_for(settings, transport=transport) as use_case:
        report = await use_case.execute(organization, settings.mode)

    get_report_writer(settings).write(render_report(report, indent=2), settings.mode)
    compact = render_report(report)
    get_action_output(settings).set(OUTPUT_NAME, compact)
    return compact


@app.command()
def collect(
    org: Annotated[
        Optional[str], typer.Option("--org", help="GitHub organization to collect from.")
    ] = None,
    mode: Annotated[
        Optional[OutputMode],
        typer.Option("--mode", help="Group packages by type or by repository."),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", help="Directory the JSON report is written to."),
    ] = None,
) -> None:
    """Collect package statistics and write them to the output directory."""
    try:
        settings = get_settings()
        overrides = {
            key: value
            for key, value in {"org": org, "mode": mode, "output_dir": output_dir}.items()
            if value is not None
        }
        if overrides:
            settings = settings.model_copy(update=overrides)
        output = asyncio.run(run(settings))
    except Exception as exc:  # noqa: BLE001
        raise typer.Exit(code=report_failure(exc)) from exc
    typer.echo(output)
