"""Dependency wiring — builds the adapters and use case for one run."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from package_stats.infrastructure.auth import authenticator_from_settings
from package_stats.infrastructure.config import Settings
from package_stats.infrastructure.github_packages_adapter import GitHubPackagesAdapter
from package_stats.infrastructure.report_writer import ActionOutput, JsonReportWriter
from package_stats.infrastructure.retry import RetryPolicy
from package_stats.services.collect_stats import CollectPackageStatsUseCase


@asynccontextmanager
async def use_case_for(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[CollectPackageStatsUseCase]:
    """Yield a use case whose registry client lives for the ``async with`` block.

    Credentials are resolved before the client is created, so a missing
    token fails without touching the network.
    """
    authenticator = authenticator_from_settings(settings)
    client = await authenticator.create_client(settings, transport=transport)
    try:
        registry = GitHubPackagesAdapter(
            client=client,
            retry_policy=RetryPolicy(
                max_retries=settings.max_retries,
                retry_after_seconds=settings.retry_after_seconds,
            ),
            per_page=settings.per_page,
        )
        yield CollectPackageStatsUseCase(registry=registry)
    finally:
        await client.aclose()


def get_report_writer(settings: Settings) -> JsonReportWriter:
    return JsonReportWriter(settings.output_dir)


def get_action_output(settings: Settings) -> ActionOutput:
    return ActionOutput(settings.github_output)
