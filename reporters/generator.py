"""Per-format report generation for evaluated feature units."""
from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from exceptions import AttachmentCopyError, ReportWriteError
from reporters.base import BaseFormatter, Breadcrumb
from reporters.formats import ATTACHMENTS_DIR, SUPPORT_DIR, ReportFormat
from reporters.naming import encode_no, sequence_width
from spec_types import FeatureSpec, FeatureUnit, ReportResult, RunInfo, RunSummary

if TYPE_CHECKING:
    from config import ReportingConfig


SUMMARY_LABEL = "Summary"
FEATURE_LABEL = "Feature"


def ensure_dir(path: Path) -> Path:
    """Create a directory if absent. Safe to call from concurrent units."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReportWriteError(f"Failed to create report directory: {exc}", path) from exc
    return path


def write_report(path: Path, content: str) -> Path:
    ensure_dir(path.parent)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(f"Failed to write report file: {exc}", path) from exc
    return path


def copy_attachments(
    spec: FeatureSpec,
    feature_report_file: Path,
    logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """
    Copy every step attachment of a spec next to its report.

    Files land in an 'attachments' directory beside the report, under
    their original file names. Same-named files overwrite each other.

    Returns:
        Copied target files in first-copied order
    """
    logger = logger or logging.getLogger(__name__)
    attachments = spec.attachments
    if not attachments:
        return []

    attachments_dir = ensure_dir(feature_report_file.parent / ATTACHMENTS_DIR)
    copied: Dict[Path, Path] = {}
    for attachment in attachments:
        source = Path(attachment.path)
        target = attachments_dir / source.name
        previous = copied.get(target)
        if previous is not None and previous != source:
            logger.warning(
                f"Attachment '{attachment.name}' overwrites {target.name} copied from {previous}"
            )
        try:
            shutil.copyfile(source, target)
        except OSError as exc:
            raise AttachmentCopyError(
                f"Failed to copy attachment '{attachment.name}': {exc}", source=source, path=target
            ) from exc
        copied[target] = source
    return list(copied)


class ReportGenerator:
    """Writes the report files of one format."""

    def __init__(
        self,
        report_format: ReportFormat,
        config: ReportingConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self.report_format = report_format
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.report_dir = report_format.report_dir(config)
        self.summary_report_file = report_format.summary_report_file(config)

    @property
    def formatter(self) -> BaseFormatter:
        return self.report_format.formatter

    def __repr__(self) -> str:
        return f"ReportGenerator({self.report_format.value}, {self.report_dir})"

    def _breadcrumbs(self, feature_report_file: Path) -> List[Breadcrumb]:
        crumbs: List[Breadcrumb] = []
        if self.summary_report_file is not None:
            crumbs.append((SUMMARY_LABEL, self.summary_report_file))
        crumbs.append((FEATURE_LABEL, feature_report_file))
        return crumbs

    def render_feature_detail(
        self,
        info: RunInfo,
        unit: FeatureUnit,
        specs: Optional[Sequence[FeatureSpec]] = None,
    ) -> Optional[Tuple[ReportFormat, Path]]:
        """
        Generate the detail report of a feature and its support specs.

        Support reports are written first so the feature report can link
        to them. Attachments are copied once the feature report exists.

        Args:
            info: Implementation and run info
            unit: Feature unit being reported
            specs: Spec chain (head = feature, tail = support specs),
                defaults to the unit's own chain

        Returns:
            The format and absolute path of the feature report, or None
            if this format declined to render it
        """
        chain = list(unit.specs if specs is None else specs)
        if not chain:
            raise ValueError("Cannot report an empty spec chain")
        feature_spec, support_specs = chain[0], chain[1:]
        data_record = unit.data_record
        fmt = self.report_format

        feature_dir = fmt.create_report_dir(self.report_dir, feature_spec, data_record)
        report_file = fmt.create_report_file(feature_dir, "", feature_spec, data_record)
        support_results = self.render_support_detail(info, unit, support_specs, report_file)

        result = ReportResult(
            spec=feature_spec,
            report_files={fmt: report_file},
            support_results=support_results,
        )
        content = self.formatter.format_detail(
            self.config, info, unit, result, self._breadcrumbs(report_file)
        )
        if content is None:
            self.logger.debug(f"{fmt.value} feature detail report skipped: {unit.label}")
            return None

        write_report(report_file, content)
        copy_attachments(feature_spec, report_file, self.logger)
        self.logger.info(f"{fmt.value} feature detail report generated: {report_file.absolute()}")
        return fmt, report_file.absolute()

    def render_support_detail(
        self,
        info: RunInfo,
        unit: FeatureUnit,
        support_specs: Sequence[FeatureSpec],
        feature_report_file: Path,
    ) -> List[ReportResult]:
        """Generate numbered support spec reports beneath a feature report."""
        fmt = self.report_format
        support_dir = feature_report_file.parent / SUPPORT_DIR
        width = sequence_width(len(support_specs))
        results: List[ReportResult] = []

        for index, spec in enumerate(support_specs, start=1):
            prefix = f"{encode_no(index, width)}-"
            report_file = fmt.create_report_file(support_dir, prefix, spec)
            result = ReportResult(
                spec=spec,
                report_files={fmt: report_file},
                support=True,
                sequence=index,
            )
            content = self.formatter.format_detail(
                self.config, info, unit, result, self._breadcrumbs(feature_report_file)
            )
            if content is None:
                del result.report_files[fmt]
                self.logger.debug(f"{fmt.value} support detail report skipped: {spec.name}")
            else:
                write_report(report_file, content)
                self.logger.info(f"{fmt.value} support detail report generated: {report_file.absolute()}")
            results.append(result)

        return results

    def render_run_summary(self, info: RunInfo, summary: RunSummary) -> Optional[Path]:
        """Generate the run summary report, if this format has one."""
        if summary.is_empty or self.summary_report_file is None:
            return None
        content = self.formatter.format_summary(self.config, info, summary)
        if content is None:
            self.logger.debug(f"{self.report_format.value} summary report skipped")
            return None
        write_report(self.summary_report_file, content)
        self.logger.info(
            f"{self.report_format.value} feature summary report generated: "
            f"{self.summary_report_file.absolute()}"
        )
        return self.summary_report_file.absolute()


def resolve_formats(requested: Iterable[ReportFormat]) -> List[ReportFormat]:
    """
    De-duplicate requested formats and place the slideshow companion of HTML.

    Whenever HTML is requested the slideshow sits immediately before it,
    whether it was requested explicitly or not, so HTML pages can link
    slideshows that already exist.
    """
    formats: List[ReportFormat] = []
    for fmt in requested:
        if fmt not in formats:
            formats.append(fmt)
    if ReportFormat.HTML in formats:
        if ReportFormat.SLIDESHOW in formats:
            formats.remove(ReportFormat.SLIDESHOW)
        formats.insert(formats.index(ReportFormat.HTML), ReportFormat.SLIDESHOW)
    return formats


def rotate_report_dir(report_dir: Path, clock: Callable[[], float] = time.time) -> Path:
    """Move an existing report directory to a '<name>-<epoch millis>' sibling."""
    report_dir = report_dir.absolute()
    millis = int(clock() * 1000)
    target = report_dir.with_name(f"{report_dir.name}-{millis}")
    while target.exists():
        millis += 1
        target = report_dir.with_name(f"{report_dir.name}-{millis}")
    try:
        report_dir.rename(target)
    except OSError as exc:
        raise ReportWriteError(f"Failed to archive previous reports: {exc}", report_dir) from exc
    return target


def generators_for(
    config: ReportingConfig,
    logger: Optional[logging.Logger] = None,
    clock: Callable[[], float] = time.time,
) -> List[ReportGenerator]:
    """
    Build one generator per active report format.

    A report directory left by a previous run is archived, never deleted,
    and a fresh one is created. Without a configured report directory no
    generators are returned and nothing is touched.
    """
    logger = logger or logging.getLogger(__name__)
    if config.report_dir is None:
        logger.debug("No report directory configured, report generation disabled")
        return []

    report_dir = Path(config.report_dir)
    if report_dir.exists():
        archived = rotate_report_dir(report_dir, clock)
        logger.info(f"Previous reports archived to {archived}")
    ensure_dir(report_dir)

    formats = resolve_formats(config.report_formats)
    return [ReportGenerator(fmt, config, logger) for fmt in formats]
