"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from package_stats.domain.exceptions import InvalidPackageTypeError

UNLINKED_REPOSITORY = "unlinked packages"


class PackageType(str, Enum):
    """Registry ecosystem a package is published to."""

    NPM = "npm"
    MAVEN = "maven"
    RUBYGEMS = "rubygems"
    DOCKER = "docker"
    CONTAINER = "container"
    NUGET = "nuget"

    @classmethod
    def parse(cls, value: str) -> PackageType:
        """Return the member for *value*, rejecting anything outside the set."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            supported = ", ".join(t.value for t in cls)
            raise InvalidPackageTypeError(
                f"Unsupported package type '{value}'. Expected one of: {supported}"
            ) from None


ALL_PACKAGE_TYPES: tuple[PackageType, ...] = (
    PackageType.NPM,
    PackageType.MAVEN,
    PackageType.RUBYGEMS,
    PackageType.DOCKER,
    PackageType.CONTAINER,
    PackageType.NUGET,
)


class OutputMode(str, Enum):
    """How package statistics are grouped in the report."""

    ORG_LEVEL = "org-level"
    REPO_LEVEL = "repo-level"

    @property
    def filename(self) -> str:
        if self is OutputMode.REPO_LEVEL:
            return "package-stats-repo.json"
        return "package-stats-org.json"


@dataclass(frozen=True, slots=True)
class PackageSummary:
    """A package as returned by the organization listing (no version data)."""

    name: str
    package_type: PackageType


@dataclass(frozen=True, slots=True)
class PackageDetail:
    """Per-package metadata from the detail endpoint."""

    name: str
    package_type: PackageType
    version_count: int = 0
    repository: str | None = None  # owning repository full name


@dataclass(slots=True)
class TypeAggregate:
    """Org-level totals for one package type."""

    type: PackageType
    total_package_count: int = 0
    versions_count: int = 0


@dataclass(slots=True)
class RepoTypeBreakdown:
    """Per-type counts inside a single repository."""

    type: PackageType
    package_count: int = 0
    versions_count: int = 0


@dataclass(slots=True)
class RepoAggregate:
    """Repo-level totals, with a breakdown by package type."""

    name: str
    total_package_count: int = 0
    total_versions_count: int = 0
    packages: list[RepoTypeBreakdown] = field(default_factory=list)

    def record(self, package_type: PackageType, version_count: int) -> None:
        """Count one package of *package_type* with *version_count* versions."""
        self.total_package_count += 1
        self.total_versions_count += version_count

        entry = next((b for b in self.packages if b.type == package_type), None)
        if entry is None:
            entry = RepoTypeBreakdown(type=package_type)
            self.packages.append(entry)
        entry.package_count += 1
        entry.versions_count += version_count


@dataclass(slots=True)
class OrgLevelReport:
    """Report root for ``org-level`` mode."""

    packages: list[TypeAggregate] = field(default_factory=list)


@dataclass(slots=True)
class RepoLevelReport:
    """Report root for ``repo-level`` mode."""

    repositories: list[RepoAggregate] = field(default_factory=list)


Report = OrgLevelReport | RepoLevelReport
