"""Aggregation strategies — fold packages into an org- or repo-level report.

A strategy is chosen once per run (:func:`strategy_for`) and fed by the
collection use case through three hooks:

* :meth:`on_type`: once per package type whose listing was non-empty, with
  the enumerated packages;
* :meth:`on_package`: once per package whose detail fetch succeeded;
* :meth:`result`: after the last type, to read out the finished report.

Each strategy instance owns its lookup table for the duration of a single
run; nothing is shared between runs.
"""

from __future__ import annotations

from typing import Protocol

from package_stats.domain.entities import (
    UNLINKED_REPOSITORY,
    OrgLevelReport,
    OutputMode,
    PackageDetail,
    PackageSummary,
    PackageType,
    RepoAggregate,
    RepoLevelReport,
    Report,
    TypeAggregate,
)


class AggregationStrategy(Protocol):
    """Accumulates enumerated and detailed packages into a report."""

    def on_type(self, package_type: PackageType, packages: list[PackageSummary]) -> None:
        ...

    def on_package(self, package_type: PackageType, detail: PackageDetail) -> None:
        ...

    def result(self) -> Report:
        ...


class OrgLevelStrategy:
    """Group packages by type.

    The package count comes from the enumeration, so packages whose detail
    fetch failed are still counted; only their versions are missing.
    """

    def __init__(self) -> None:
        self._by_type: dict[PackageType, TypeAggregate] = {}

    def on_type(self, package_type: PackageType, packages: list[PackageSummary]) -> None:
        if not packages:
            return
        self._by_type[package_type] = TypeAggregate(
            type=package_type,
            total_package_count=len(packages),
        )

    def on_package(self, package_type: PackageType, detail: PackageDetail) -> None:
        aggregate = self._by_type.get(package_type)
        if aggregate is None:
            # on_type was skipped for an empty listing; nothing to attribute to
            return
        aggregate.versions_count += detail.version_count

    def result(self) -> OrgLevelReport:
        return OrgLevelReport(packages=list(self._by_type.values()))


class RepoLevelStrategy:
    """Group packages by owning repository, with a per-type breakdown.

    Packages without a repository land in the ``"unlinked packages"`` entry.
    Repositories and their breakdown entries keep first-encountered order.
    """

    def __init__(self) -> None:
        self._by_repo: dict[str, RepoAggregate] = {}

    def on_type(self, package_type: PackageType, packages: list[PackageSummary]) -> None:
        pass

    def on_package(self, package_type: PackageType, detail: PackageDetail) -> None:
        key = detail.repository or UNLINKED_REPOSITORY
        aggregate = self._by_repo.get(key)
        if aggregate is None:
            aggregate = self._by_repo[key] = RepoAggregate(name=key)
        aggregate.record(package_type, detail.version_count)

    def result(self) -> RepoLevelReport:
        return RepoLevelReport(repositories=list(self._by_repo.values()))


_STRATEGIES: dict[OutputMode, type[OrgLevelStrategy] | type[RepoLevelStrategy]] = {
    OutputMode.ORG_LEVEL: OrgLevelStrategy,
    OutputMode.REPO_LEVEL: RepoLevelStrategy,
}


def strategy_for(mode: OutputMode) -> AggregationStrategy:
    """Return a fresh strategy for *mode*."""
    return _STRATEGIES[OutputMode(mode)]()
