"""CLI-friendly orchestrator for rendering evaluated runs into report trees."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from config import SpecReportConfig, load_config
from exceptions import ReportWriteError, SpecReportError
from reporters import ReportFormat, ReportGenerator, generators_for
from results_loader import discover_results
from spec_types import EvaluatedRun, FeatureUnit, RunInfo, RunSummary, SummaryLine


@dataclass
class RunReport:
    """What was written for a run."""

    summary: RunSummary
    summary_files: Dict[ReportFormat, Path] = field(default_factory=dict)
    failed_units: List[FeatureUnit] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_units


class ReportRunner:
    """High-level runner that renders every unit of a run through each active format."""

    def __init__(
        self,
        config: SpecReportConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.logger = logger or logging.getLogger("specreport")

    def report_unit(
        self,
        generators: Sequence[ReportGenerator],
        info: RunInfo,
        unit: FeatureUnit,
    ) -> SummaryLine:
        """Render one unit through every generator, in order."""
        line = SummaryLine.for_unit(unit)
        for generator in generators:
            written = generator.render_feature_detail(info, unit)
            if written is not None:
                report_format, report_file = written
                line.report_files[report_format] = report_file
        return line

    def run_sequential(
        self,
        generators: Sequence[ReportGenerator],
        info: RunInfo,
        units: Sequence[FeatureUnit],
    ) -> List[Optional[SummaryLine]]:
        """Render units one after another; a failed unit yields None."""
        lines: List[Optional[SummaryLine]] = []
        for i, unit in enumerate(units, 1):
            self.logger.debug(f"Reporting {unit.label} ({i}/{len(units)})")
            try:
                lines.append(self.report_unit(generators, info, unit))
            except ReportWriteError as exc:
                self.logger.error(f"Report for {unit.label} failed: {exc}")
                lines.append(None)
        return lines

    async def run_parallel(
        self,
        generators: Sequence[ReportGenerator],
        info: RunInfo,
        units: Sequence[FeatureUnit],
        max_workers: int = 4,
    ) -> List[Optional[SummaryLine]]:
        """Render units concurrently with limited concurrency."""
        semaphore = asyncio.Semaphore(max_workers)

        async def report_with_limit(unit: FeatureUnit, index: int) -> SummaryLine:
            async with semaphore:
                self.logger.debug(f"Reporting {unit.label} ({index}/{len(units)})")
                return await asyncio.to_thread(self.report_unit, generators, info, unit)

        tasks = [report_with_limit(unit, i + 1) for i, unit in enumerate(units)]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        lines: List[Optional[SummaryLine]] = []
        for unit, result in zip(units, results):
            if isinstance(result, ReportWriteError):
                self.logger.error(f"Report for {unit.label} failed: {result}")
                lines.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                lines.append(result)
        return lines

    def report_all(self, run: EvaluatedRun) -> RunReport:
        """Render every unit of a run, then the run summary of each format."""
        run = run.with_record_totals()
        generators = generators_for(self.config.reporting, logger=self.logger)
        if not generators:
            self.logger.info("No report directory configured, nothing to report")
            return RunReport(summary=RunSummary([SummaryLine.for_unit(u) for u in run.units]))

        self.logger.info(
            f"Reporting {len(run.units)} unit(s) as {', '.join(g.report_format.value for g in generators)}"
        )
        if self.config.parallel_workers > 1 and len(run.units) > 1:
            lines = asyncio.run(
                self.run_parallel(generators, run.info, run.units, self.config.parallel_workers)
            )
        else:
            lines = self.run_sequential(generators, run.info, run.units)

        report = RunReport(summary=RunSummary())
        for unit, line in zip(run.units, lines):
            if line is None:
                report.failed_units.append(unit)
                # Still listed in the summary, without links
                line = SummaryLine.for_unit(unit)
            report.summary.lines.append(line)

        for generator in generators:
            summary_file = generator.render_run_summary(run.info, report.summary)
            if summary_file is not None:
                report.summary_files[generator.report_format] = summary_file
        return report


def run_from_cli_args(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Entry point shared by the CLI script."""
    config_path = Path(args.config) if args.config else None
    cli_overrides = {
        "report_dir": args.report_dir,
        "formats": args.format,
        "title": args.title,
        "parallel": args.parallel,
        "verbose": args.verbose or None,
    }
    cli_overrides = {k: v for k, v in cli_overrides.items() if v is not None}

    try:
        config = load_config(config_path, cli_overrides)
    except SpecReportError:
        raise
    except Exception as exc:
        logger.error(f"Failed to load config: {exc}")
        return 1

    run = EvaluatedRun.merge(discover_results(Path(p)) for p in args.results)
    if not run.units:
        logger.warning("No evaluated units found")

    logger.info(f"Loaded {len(run.units)} unit(s)")
    if config.verbose:
        logger.info(f"Report dir: {config.reporting.report_dir}")
        logger.info(f"Formats: {', '.join(f.value for f in config.reporting.report_formats)}")
        logger.info(f"Parallel workers: {config.parallel_workers}")

    runner = ReportRunner(config=config, logger=logger)
    report = runner.report_all(run)

    summary = report.summary
    print("\n" + "=" * 60)
    print("REPORT SUMMARY")
    print("=" * 60)
    print(f"Total:  {summary.total}")
    print(f"Passed: {summary.passed}")
    print(f"Failed: {summary.failed}")
    print(f"Pass Rate: {summary.pass_rate:.1f}%")
    for report_format, path in report.summary_files.items():
        print(f"{report_format.value} summary: {path}")
    print("=" * 60)

    if report.failed_units:
        print("\nUnits without reports:")
        for unit in report.failed_units:
            print(f"  - {unit.label}")
        return 1
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Render evaluated feature runs into navigable report trees.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s results.yaml --report-dir reports          # HTML (+ slideshow)
  %(prog)s results/ --report-dir reports --format all  # Every format
  %(prog)s results.json --format junit --format json   # Machine-readable only
        """,
    )

    parser.add_argument(
        "results",
        nargs="+",
        help="Evaluated results file(s) or directories (YAML/JSON)",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--report-dir",
        help="Root directory for reports (an existing one is archived)",
    )
    output_group.add_argument(
        "--format",
        action="append",
        choices=[f.value for f in ReportFormat] + ["all"],
        help="Report format (can be used multiple times, default: html)",
    )
    output_group.add_argument(
        "--title",
        help="Title shown on HTML reports",
    )

    exec_group = parser.add_argument_group("Execution Options")
    exec_group.add_argument(
        "--parallel",
        type=int,
        metavar="N",
        help="Number of units reported concurrently (default: 1)",
    )
    exec_group.add_argument(
        "--config",
        help="Path to config file (default: specreport.json if exists)",
    )
    exec_group.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    exec_group.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-essential output",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    if args.quiet:
        log_level = logging.WARNING
    elif args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format="[%(levelname)s] %(message)s" if not args.verbose else "[%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger("specreport")

    try:
        exit_code = run_from_cli_args(args, logger)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 130
    except SpecReportError as exc:
        logger.error(f"Error: {exc}")
        exit_code = 1
    except Exception as exc:
        logger.exception(f"Unexpected error: {exc}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
