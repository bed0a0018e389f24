"""Port: package registry — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from package_stats.domain.entities import PackageDetail, PackageSummary, PackageType
from package_stats.domain.value_objects import Organization


class PackageRegistry(Protocol):
    """Abstract contract for reading an organization's packages.

    Implementations raise :class:`~package_stats.domain.exceptions.RegistryError`
    subclasses for every failure.
    """

    async def list_packages(
        self, org: Organization, package_type: PackageType
    ) -> list[PackageSummary]:
        """Return every package of *package_type*, following pagination."""
        ...

    async def get_package(
        self, org: Organization, package_type: PackageType, name: str
    ) -> PackageDetail:
        """Return version count and owning repository for a single package."""
        ...
