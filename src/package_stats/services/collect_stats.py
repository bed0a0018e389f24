"""Collect-package-stats use case — the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the :class:`PackageRegistry` port and the aggregation strategies; the
interface layer injects the concrete GitHub adapter at runtime.

Requests are issued strictly one after another: one package type at a time,
one package at a time within a type.  Registry failures never abort the
run: a failing listing skips its type, a failing detail fetch skips the
package.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from package_stats.domain.entities import (
    ALL_PACKAGE_TYPES,
    OutputMode,
    PackageSummary,
    PackageType,
    Report,
)
from package_stats.domain.exceptions import RegistryError
from package_stats.domain.ports.package_registry import PackageRegistry
from package_stats.domain.value_objects import Organization
from package_stats.services.aggregation import AggregationStrategy, strategy_for

logger = logging.getLogger(__name__)


class CollectPackageStatsUseCase:
    """Orchestrates the package types → packages → versions pipeline.

    Parameters
    ----------
    registry:
        Adapter that can list packages and fetch package details.
    package_types:
        Types to query, in processing order.  Defaults to every supported
        type.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        package_types: Sequence[PackageType] = ALL_PACKAGE_TYPES,
    ) -> None:
        self._registry = registry
        self._package_types = tuple(PackageType.parse(t) for t in package_types)

    # ── Public entry point ──────────────────────────────────────────────

    async def execute(
        self, org: Organization | str, mode: OutputMode = OutputMode.ORG_LEVEL
    ) -> Report:
        """Run the full pipeline and return the report for *mode*."""
        organization = org if isinstance(org, Organization) else Organization.from_string(org)
        mode = OutputMode(mode)
        logger.info("Running in %s mode for organization: %s", mode.value, organization)

        strategy = strategy_for(mode)
        for package_type in self._package_types:
            await self._collect_type(organization, package_type, strategy)
        return strategy.result()

    # ── Per type ────────────────────────────────────────────────────────

    async def _collect_type(
        self,
        org: Organization,
        package_type: PackageType,
        strategy: AggregationStrategy,
    ) -> None:
        logger.info("Fetching %s packages for organization: %s", package_type.value, org)
        try:
            packages = await self._registry.list_packages(org, package_type)
        except RegistryError as exc:
            logger.warning("Error fetching %s packages: %s", package_type.value, exc)
            return

        logger.info("Found %d %s packages in %s", len(packages), package_type.value, org)
        if not packages:
            return

        strategy.on_type(package_type, packages)
        for package in packages:
            await self._collect_package(org, package_type, package, strategy)

    # ── Per package ─────────────────────────────────────────────────────

    async def _collect_package(
        self,
        org: Organization,
        package_type: PackageType,
        package: PackageSummary,
        strategy: AggregationStrategy,
    ) -> None:
        try:
            detail = await self._registry.get_package(org, package_type, package.name)
        except RegistryError as exc:
            logger.error("Error getting details for package %s: %s", package.name, exc)
            return
        strategy.on_package(package_type, detail)
