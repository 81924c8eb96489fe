"""Unit tests for report_runner module."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

import reporters.generator as generator_module
from config import ReportingConfig, SpecReportConfig
from exceptions import ReportWriteError
from report_runner import ReportRunner, main
from reporters import ReportFormat, ReportGenerator
from spec_types import DataRecord, EvaluatedRun, FeatureSpec, FeatureUnit


@pytest.fixture
def runner_config(report_dir: Path) -> SpecReportConfig:
    return SpecReportConfig(
        reporting=ReportingConfig(report_dir=report_dir, report_formats=[ReportFormat.HTML, ReportFormat.JSON])
    )


@pytest.fixture
def evaluated_run(run_info, feature_unit, feature_spec) -> EvaluatedRun:
    return EvaluatedRun(
        info=run_info,
        units=[
            feature_unit,
            FeatureUnit(specs=(feature_spec,), data_record=DataRecord(number=2)),
            FeatureUnit(specs=(FeatureSpec(name="Search", source_file=Path("features/search.feature")),)),
        ],
    )


class TestReportRunner:
    """Tests for ReportRunner."""

    def test_reports_every_unit_in_every_format(self, runner_config, evaluated_run, report_dir):
        report = ReportRunner(runner_config).report_all(evaluated_run)

        assert report.ok
        assert report.summary.total == 3
        for line in report.summary.lines:
            assert set(line.report_files) == {ReportFormat.SLIDESHOW, ReportFormat.HTML, ReportFormat.JSON}
            assert all(path.exists() for path in line.report_files.values())

    def test_summary_files_written(self, runner_config, evaluated_run, report_dir):
        report = ReportRunner(runner_config).report_all(evaluated_run)

        assert set(report.summary_files) == {ReportFormat.HTML, ReportFormat.JSON}
        data = json.loads(report.summary_files[ReportFormat.JSON].read_text())
        assert data["summary"]["total"] == 3
        assert data["features"][1]["data_record"] == 2
        assert data["features"][1]["href"] == "features/auth/login.feature/record-0002/0002-login.feature.json"

    def test_record_numbers_share_one_width(self, runner_config, run_info, feature_spec, report_dir):
        run = EvaluatedRun(
            info=run_info,
            units=[FeatureUnit(specs=(feature_spec,), data_record=DataRecord(number=n)) for n in (9, 10000)],
        )
        report = ReportRunner(runner_config).report_all(run)

        names = [line.report_files[ReportFormat.HTML].name for line in report.summary.lines]
        assert names == ["00009-login.feature.html", "10000-login.feature.html"]
        assert (report_dir / "html" / "features" / "auth" / "login.feature" / "record-00009").is_dir()

    def test_parallel_matches_sequential_layout(self, runner_config, evaluated_run, report_dir):
        runner_config.parallel_workers = 3
        report = ReportRunner(runner_config).report_all(evaluated_run)

        assert report.ok
        assert [line.spec.name for line in report.summary.lines] == ["User login", "User login", "Search"]
        assert (report_dir / "html" / "features" / "search.feature" / "search.feature.html").exists()
        assert (report_dir / "html" / "features" / "auth" / "login.feature" / "support" / "0001-login.meta.html").exists()

    def test_no_report_dir(self, evaluated_run):
        report = ReportRunner(SpecReportConfig()).report_all(evaluated_run)

        assert report.ok
        assert report.summary_files == {}
        assert report.summary.total == 3
        assert all(line.report_files == {} for line in report.summary.lines)

    def test_failed_unit_does_not_stop_others(self, runner_config, evaluated_run, monkeypatch):
        original = generator_module.write_report

        def failing_write(path: Path, content: str) -> Path:
            if "search" in path.name:
                raise ReportWriteError("disk full", path)
            return original(path, content)

        monkeypatch.setattr(generator_module, "write_report", failing_write)
        logger = MagicMock(spec=logging.Logger)

        report = ReportRunner(runner_config, logger=logger).report_all(evaluated_run)

        assert not report.ok
        assert [u.feature.name for u in report.failed_units] == ["Search"]
        assert report.summary.total == 3
        assert report.summary.lines[2].report_files == {}
        assert ReportFormat.HTML in report.summary_files
        logger.error.assert_called_once()

    def test_parallel_failure_isolated(self, runner_config, evaluated_run, run_info):
        generator = MagicMock(spec=ReportGenerator)

        def render(info, unit):
            if unit.feature.name == "Search":
                raise ReportWriteError("cannot write")
            return ReportFormat.HTML, Path("/reports/x.html")

        generator.render_feature_detail.side_effect = render
        runner = ReportRunner(runner_config, logger=MagicMock(spec=logging.Logger))

        lines = asyncio.run(runner.run_parallel([generator], run_info, evaluated_run.units, max_workers=2))

        assert lines[2] is None
        assert lines[0].report_files == {ReportFormat.HTML: Path("/reports/x.html")}

    def test_unexpected_error_propagates(self, runner_config, evaluated_run, run_info):
        generator = MagicMock(spec=ReportGenerator)
        generator.render_feature_detail.side_effect = RuntimeError("bug")
        runner = ReportRunner(runner_config)

        with pytest.raises(RuntimeError):
            runner.run_sequential([generator], run_info, evaluated_run.units)


class TestMain:
    """Tests for the CLI entry point."""

    def test_success_exit_code(self, temp_dir: Path, sample_results, monkeypatch):
        monkeypatch.chdir(temp_dir)
        results_file = temp_dir / "results.json"
        sample_results["units"][0]["specs"][0]["scenarios"][0]["steps"][1]["attachments"] = []
        results_file.write_text(json.dumps(sample_results))

        with pytest.raises(SystemExit) as exc_info:
            main([str(results_file), "--report-dir", str(temp_dir / "out"), "--format", "all", "-q"])

        assert exc_info.value.code == 0
        assert (temp_dir / "out" / "html" / "feature-summary.html").exists()
        assert (temp_dir / "out" / "junit" / "features" / "search.feature" / "record-0002" / "TEST-0002-search.feature.xml").exists()

    def test_missing_attachment_fails_run(self, temp_dir: Path, sample_results, monkeypatch):
        monkeypatch.chdir(temp_dir)
        results_file = temp_dir / "results.json"
        results_file.write_text(json.dumps(sample_results))

        with pytest.raises(SystemExit) as exc_info:
            main([str(results_file), "--report-dir", str(temp_dir / "out"), "-q"])

        assert exc_info.value.code == 1
        assert (temp_dir / "out" / "html" / "features" / "search.feature" / "record-0002").is_dir()

    def test_missing_results_file(self, temp_dir: Path, monkeypatch):
        monkeypatch.chdir(temp_dir)
        with pytest.raises(SystemExit) as exc_info:
            main([str(temp_dir / "absent.json"), "-q"])
        assert exc_info.value.code == 1

    def test_invalid_format_rejected_by_parser(self, temp_dir: Path):
        with pytest.raises(SystemExit) as exc_info:
            main([str(temp_dir), "--format", "pdf"])
        assert exc_info.value.code == 2
