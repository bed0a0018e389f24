"""Tests for report rendering, the JSON writer and the Actions output."""

from __future__ import annotations

import json

import pytest

from package_stats.domain.entities import (
    OrgLevelReport,
    OutputMode,
    PackageType,
    RepoAggregate,
    RepoLevelReport,
    TypeAggregate,
)
from package_stats.domain.exceptions import ReportWriteError
from package_stats.infrastructure.report_writer import ActionOutput, JsonReportWriter
from package_stats.interface.schemas import render_report


@pytest.fixture
def org_report() -> OrgLevelReport:
    return OrgLevelReport(
        packages=[TypeAggregate(type=PackageType.NPM, total_package_count=2, versions_count=8)]
    )


@pytest.fixture
def repo_report() -> RepoLevelReport:
    repo = RepoAggregate(name="unlinked packages")
    repo.record(PackageType.NPM, 3)
    repo.record(PackageType.NPM, 5)
    return RepoLevelReport(repositories=[repo])


def test_render_org_level_report(org_report) -> None:
    assert json.loads(render_report(org_report)) == {
        "packages": [{"type": "npm", "total_package_count": 2, "versions_count": 8}]
    }


def test_render_repo_level_report_keeps_key_order(repo_report) -> None:
    rendered = render_report(repo_report)

    assert rendered == (
        '{"repositories":[{"name":"unlinked packages","total_package_count":2,'
        '"total_versions_count":8,"packages":[{"type":"npm","package_count":2,'
        '"versions_count":8}]}]}'
    )


def test_render_with_indent(org_report) -> None:
    assert render_report(org_report, indent=2).startswith('{\n  "packages": [')


@pytest.mark.parametrize(
    ("mode", "filename"),
    [
        (OutputMode.ORG_LEVEL, "package-stats-org.json"),
        (OutputMode.REPO_LEVEL, "package-stats-repo.json"),
    ],
)
def test_writer_uses_mode_filename(tmp_path, mode, filename) -> None:
    writer = JsonReportWriter(tmp_path / "nested" / "output")

    path = writer.write('{"packages": []}', mode)

    assert path == tmp_path / "nested" / "output" / filename
    assert path.read_text(encoding="utf-8") == '{"packages": []}'


def test_writer_defaults_to_output_in_working_directory(tmp_path) -> None:
    path = JsonReportWriter().write("{}", OutputMode.ORG_LEVEL)

    assert path.resolve() == (tmp_path / "output" / "package-stats-org.json").resolve()


def test_writer_failure_raises_report_write_error(tmp_path) -> None:
    blocker = tmp_path / "output"
    blocker.write_text("not a directory")

    with pytest.raises(ReportWriteError, match="output directory"):
        JsonReportWriter(blocker).write("{}", OutputMode.ORG_LEVEL)


def test_action_output_appends_multiline_value(tmp_path) -> None:
    output_file = tmp_path / "github_output"
    output_file.write_text("existing=1\n")

    ActionOutput(output_file).set("packageStats", '{"packages":[]}')

    lines = output_file.read_text().splitlines()
    assert lines[0] == "existing=1"
    name, delimiter = lines[1].split("<<")
    assert name == "packageStats"
    assert lines[2] == '{"packages":[]}'
    assert lines[3] == delimiter


def test_action_output_without_file_is_a_no_op(tmp_path) -> None:
    ActionOutput(None).set("packageStats", "{}")

    assert list(tmp_path.iterdir()) == []
