"""Pydantic DTOs for the report artifact.

Field order here is the key order of the written JSON.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from package_stats.domain.entities import OrgLevelReport, PackageType, Report


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TypeStats(_FromDomain):
    """One entry of ``packages`` in an org-level report."""

    type: PackageType
    total_package_count: int
    versions_count: int


class RepoTypeStats(_FromDomain):
    """Per-type breakdown inside a repository entry."""

    type: PackageType
    package_count: int
    versions_count: int


class RepoStats(_FromDomain):
    """One entry of ``repositories`` in a repo-level report."""

    name: str
    total_package_count: int
    total_versions_count: int
    packages: list[RepoTypeStats]


class OrgLevelReportModel(_FromDomain):
    packages: list[TypeStats]


class RepoLevelReportModel(_FromDomain):
    repositories: list[RepoStats]


def to_model(report: Report) -> OrgLevelReportModel | RepoLevelReportModel:
    """Convert a domain report into its serializable model."""
    if isinstance(report, OrgLevelReport):
        return OrgLevelReportModel.model_validate(report)
    return RepoLevelReportModel.model_validate(report)


def render_report(report: Report, indent: int | None = None) -> str:
    """Serialize *report* to JSON; compact unless *indent* is given."""
    return to_model(report).model_dump_json(indent=indent)
