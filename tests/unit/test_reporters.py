"""Unit tests for reporters module."""
from __future__ import annotations

import json
from pathlib import Path
from xml.etree import ElementTree

import pytest

from config import ReportingConfig
from reporters import HTMLFormatter, JSONFormatter, JUnitFormatter, ReportFormat, ReportGenerator, SlideshowFormatter
from spec_types import (
    DataRecord,
    EvalStatus,
    FeatureSpec,
    FeatureUnit,
    ReportResult,
    RunSummary,
    Scenario,
    Step,
    SummaryLine,
)


@pytest.fixture
def all_formats_config(report_dir: Path) -> ReportingConfig:
    return ReportingConfig(
        report_dir=report_dir,
        report_formats=[ReportFormat.HTML, ReportFormat.JUNIT, ReportFormat.JSON],
        title="Nightly Run",
    )


def _render(config, run_info, unit, report_format) -> Path:
    _, report_file = ReportGenerator(report_format, config).render_feature_detail(run_info, unit)
    return report_file


class TestHTMLFormatter:
    """Tests for HTML detail and summary pages."""

    def test_feature_page_content(self, all_formats_config, run_info, feature_unit):
        page = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML).read_text()

        assert "<!DOCTYPE html>" in page
        assert "Nightly Run - User login" in page
        assert "Feature: User login" in page
        assert "Scenario: Valid credentials" in page
        assert "Expected error banner but found none" in page
        assert "Generated by specreport" in page

    def test_breadcrumbs_link_summary(self, all_formats_config, run_info, feature_unit):
        page = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML).read_text()

        assert 'href="../../../feature-summary.html"' in page
        assert '<span class="crumb current">Feature</span>' in page

    def test_support_toc_links_written_reports(self, all_formats_config, run_info, feature_unit):
        page = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML).read_text()

        assert 'href="support/0001-login.meta.html"' in page
        assert 'href="support/0002-common.meta.html"' in page

    def test_support_page_links_back(self, all_formats_config, run_info, feature_unit):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML)
        page = (report_file.parent / "support" / "0001-login.meta.html").read_text()

        assert "Support Spec: Login steps" in page
        assert 'href="../login.feature.html"' in page
        assert 'href="../../../../feature-summary.html"' in page
        assert '<span class="crumb current">Login steps</span>' in page

    def test_attachment_linked_on_feature_page(self, all_formats_config, run_info, feature_unit):
        page = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML).read_text()
        assert 'href="attachments/screenshot.png"' in page

    def test_slideshow_link(self, all_formats_config, run_info, feature_unit):
        page = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML).read_text()
        assert 'href="../../../../slideshow/features/auth/login.feature/login.feature.slideshow.html"' in page

    def test_data_record_card(self, all_formats_config, run_info, feature_spec, data_record):
        unit = FeatureUnit(specs=(feature_spec,), data_record=data_record)
        page = _render(all_formats_config, run_info, unit, ReportFormat.HTML).read_text()

        assert "Data Record 7" in page
        assert "data/users.csv" in page
        assert "<th>user</th><td>alice</td>" in page

    def test_html_escaping(self, all_formats_config, run_info):
        spec = FeatureSpec(name="<script>alert(1)</script>")
        page = _render(all_formats_config, run_info, FeatureUnit(specs=(spec,)), ReportFormat.HTML).read_text()
        assert "<script>alert(1)</script>" not in page
        assert "&lt;script&gt;" in page

    def test_summary_links_features(self, all_formats_config, run_info, feature_unit, report_dir):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.HTML)
        line = SummaryLine(spec=feature_unit.feature, report_files={ReportFormat.HTML: report_file})

        path = ReportGenerator(ReportFormat.HTML, all_formats_config).render_run_summary(
            run_info, RunSummary([line])
        )
        page = path.read_text()

        assert 'href="features/auth/login.feature/login.feature.html"' in page
        assert "Nightly Run" in page

    def test_summary_lists_unlinked_lines(self, all_formats_config, run_info, feature_spec):
        formatter = HTMLFormatter()
        page = formatter.format_summary(all_formats_config, run_info, RunSummary([SummaryLine(spec=feature_spec)]))
        assert "User login" in page
        assert "login.feature.html" not in page


class TestSlideshowFormatter:
    """Tests for the slideshow companion."""

    def test_one_slide_per_scenario(self, all_formats_config, run_info, feature_unit):
        page = _render(all_formats_config, run_info, feature_unit, ReportFormat.SLIDESHOW).read_text()

        assert page.count('<section class="slide') == 2
        assert 'href="../../../../html/features/auth/login.feature/login.feature.html"' in page

    def test_declines_support_and_summary(self, all_formats_config, run_info, feature_unit, feature_spec):
        formatter = SlideshowFormatter()
        result = ReportResult(
            spec=feature_spec,
            report_files={ReportFormat.SLIDESHOW: Path("x.slideshow.html")},
            support=True,
            sequence=1,
        )
        assert formatter.format_detail(all_formats_config, run_info, feature_unit, result, []) is None
        summary = RunSummary([SummaryLine(spec=feature_spec)])
        assert formatter.format_summary(all_formats_config, run_info, summary) is None


class TestJUnitFormatter:
    """Tests for JUnit XML reports."""

    def test_generates_valid_xml(self, all_formats_config, run_info, feature_unit):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.JUNIT)

        root = ElementTree.parse(report_file).getroot()
        assert root.tag == "testsuite"
        assert root.get("name") == "User login"
        assert root.get("tests") == "2"
        assert root.get("failures") == "1"
        assert root.get("skipped") == "0"
        assert root.get("timestamp") == "2024-01-01T10:00:00"

    def test_failure_element(self, all_formats_config, run_info, feature_unit):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.JUNIT)
        root = ElementTree.parse(report_file).getroot()

        cases = root.findall("testcase")
        assert [c.get("name") for c in cases] == ["Valid credentials", "Wrong password"]
        assert cases[0].find("failure") is None
        failure = cases[1].find("failure")
        assert failure.get("message") == "Expected error banner but found none"
        assert failure.get("type") == "StepFailure"

    def test_record_properties(self, all_formats_config, run_info, feature_spec, data_record):
        unit = FeatureUnit(specs=(feature_spec,), data_record=data_record)
        report_file = _render(all_formats_config, run_info, unit, ReportFormat.JUNIT)
        root = ElementTree.parse(report_file).getroot()

        assert root.get("name") == "User login [record 7]"
        props = {p.get("name"): p.get("value") for p in root.iter("property")}
        assert props["data.record"] == "7"
        assert props["data.user"] == "alice"
        assert props["source"] == str(Path("features/auth/login.feature"))

    def test_cdata_terminator_in_error_message(self, all_formats_config, run_info):
        error = "expected <a>]]></a> in page"
        spec = FeatureSpec(
            name="Markup",
            source_file=Path("features/markup.feature"),
            scenarios=(
                Scenario("broken", (Step("Then", "the page has ]]> in it", status=EvalStatus.FAILED, error_message=error),)),
            ),
        )
        report_file = _render(all_formats_config, run_info, FeatureUnit(specs=(spec,)), ReportFormat.JUNIT)

        case = ElementTree.parse(report_file).getroot().find("testcase")
        assert error in case.find("failure").text
        assert "Then the page has ]]> in it (failed)" in case.find("system-out").text

    def test_no_summary(self, all_formats_config, run_info, feature_spec):
        summary = RunSummary([SummaryLine(spec=feature_spec)])
        assert JUnitFormatter().format_summary(all_formats_config, run_info, summary) is None


class TestJSONFormatter:
    """Tests for JSON reports."""

    def test_feature_document(self, all_formats_config, run_info, feature_unit):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.JSON)
        data = json.loads(report_file.read_text())

        assert data["kind"] == "feature"
        assert data["generator"]["name"] == "specreport"
        assert data["spec"]["name"] == "User login"
        assert data["spec"]["status"] == "failed"
        assert len(data["spec"]["scenarios"]) == 2
        assert data["data_record"] is None
        assert [c["label"] for c in data["breadcrumbs"]] == ["Summary", "Feature"]
        assert data["breadcrumbs"][0]["href"] == "../../../feature-summary.json"

    def test_support_entries(self, all_formats_config, run_info, feature_unit):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.JSON)
        data = json.loads(report_file.read_text())

        assert [(s["sequence"], s["name"]) for s in data["support"]] == [(1, "Login steps"), (2, "Common steps")]
        assert data["support"][0]["href"] == "support/0001-login.meta.json"

        support = json.loads((report_file.parent / "support" / "0001-login.meta.json").read_text())
        assert support["kind"] == "support"
        assert support["sequence"] == 1
        assert support["data_record"] is None

    def test_attachment_file_names(self, all_formats_config, run_info, feature_unit):
        report_file = _render(all_formats_config, run_info, feature_unit, ReportFormat.JSON)
        data = json.loads(report_file.read_text())

        step = data["spec"]["scenarios"][0]["steps"][1]
        assert step["attachments"] == [{"name": "Screenshot", "file": "screenshot.png"}]

    def test_data_record(self, all_formats_config, run_info, feature_spec, data_record):
        unit = FeatureUnit(specs=(feature_spec,), data_record=data_record)
        data = json.loads(_render(all_formats_config, run_info, unit, ReportFormat.JSON).read_text())
        assert data["data_record"]["number"] == 7
        assert data["data_record"]["values"] == {"user": "alice"}

    def test_summary_document(self, all_formats_config, run_info, feature_spec, support_specs):
        passing = support_specs[0]
        lines = [
            SummaryLine(spec=feature_spec, data_record=DataRecord(number=1)),
            SummaryLine(spec=passing),
        ]
        path = ReportGenerator(ReportFormat.JSON, all_formats_config).render_run_summary(
            run_info, RunSummary(lines)
        )
        data = json.loads(path.read_text())

        assert data["summary"]["total"] == 2
        assert data["summary"]["failed"] == 1
        assert data["summary"]["status"] == "failed"
        assert data["features"][0]["data_record"] == 1
        assert data["features"][0]["href"] is None
