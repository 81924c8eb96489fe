"""Supported report formats and where their files live."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

from exceptions import ConfigurationError
from reporters.naming import encode_data_record_no, encode_dir, encode_no, sequence_width

if TYPE_CHECKING:
    from config import ReportingConfig
    from reporters.base import BaseFormatter
    from spec_types import DataRecord, FeatureSpec


SUPPORT_DIR = "support"
ATTACHMENTS_DIR = "attachments"
RECORD_DIR_PREFIX = "record-"


@dataclass(frozen=True)
class FormatDescriptor:
    """Static properties of a report format."""

    file_extension: str
    base_dir: str
    summary_filename: Optional[str] = None
    file_prefix: str = ""
    file_infix: str = ""


class ReportFormat(str, Enum):
    """Supported report formats."""

    HTML = "html"
    SLIDESHOW = "slideshow"
    JUNIT = "junit"
    JSON = "json"

    @property
    def descriptor(self) -> FormatDescriptor:
        return _DESCRIPTORS[self]

    @property
    def file_extension(self) -> str:
        return self.descriptor.file_extension

    @property
    def summary_filename(self) -> Optional[str]:
        return self.descriptor.summary_filename

    @property
    def is_primary(self) -> bool:
        return self is ReportFormat.HTML

    @property
    def formatter(self) -> BaseFormatter:
        return _formatter_for(self)

    def report_dir(self, config: ReportingConfig) -> Path:
        """Base directory of this format under the configured report root."""
        if config.report_dir is None:
            raise ConfigurationError("No report directory configured", {"format": self.value})
        return Path(config.report_dir) / self.descriptor.base_dir

    def summary_report_file(self, config: ReportingConfig) -> Optional[Path]:
        if self.summary_filename is None:
            return None
        return self.report_dir(config) / f"{self.summary_filename}.{self.file_extension}"

    def create_report_dir(
        self,
        base_dir: Path,
        spec: FeatureSpec,
        data_record: Optional[DataRecord] = None,
    ) -> Path:
        """
        Directory holding a feature's report and its support/attachments subtree.

        Source directories stay nested and the last level is the spec's
        full report name, so distinct source files never share a directory.
        """
        target = base_dir
        if spec.source_file is not None:
            target = target.joinpath(*encode_dir(spec.source_file.parent))
        target = target / spec.report_name
        if data_record is not None:
            width = sequence_width(data_record.total or data_record.number)
            target = target / f"{RECORD_DIR_PREFIX}{encode_no(data_record.number, width)}"
        return target

    def create_report_file(
        self,
        to_dir: Path,
        prefix: str,
        spec: FeatureSpec,
        data_record: Optional[DataRecord] = None,
    ) -> Path:
        """Exact file path of a spec's rendered report."""
        d = self.descriptor
        name = (
            f"{d.file_prefix}{prefix}{encode_data_record_no(data_record)}"
            f"{spec.report_name}{d.file_infix}.{d.file_extension}"
        )
        return to_dir / name

    def feature_report_file(
        self,
        config: ReportingConfig,
        spec: FeatureSpec,
        data_record: Optional[DataRecord] = None,
    ) -> Path:
        """Composed path of a feature's report for this format."""
        report_dir = self.create_report_dir(self.report_dir(config), spec, data_record)
        return self.create_report_file(report_dir, "", spec, data_record)


_DESCRIPTORS = {
    ReportFormat.HTML: FormatDescriptor(
        file_extension="html",
        base_dir="html",
        summary_filename="feature-summary",
    ),
    ReportFormat.SLIDESHOW: FormatDescriptor(
        file_extension="html",
        base_dir="slideshow",
        file_infix=".slideshow",
    ),
    ReportFormat.JUNIT: FormatDescriptor(
        file_extension="xml",
        base_dir="junit",
        file_prefix="TEST-",
    ),
    ReportFormat.JSON: FormatDescriptor(
        file_extension="json",
        base_dir="json",
        summary_filename="feature-summary",
    ),
}

ALL_FORMATS = "all"
_ALL_EXPANSION = [ReportFormat.HTML, ReportFormat.JUNIT, ReportFormat.JSON]


@lru_cache(maxsize=None)
def _formatter_for(report_format: ReportFormat) -> BaseFormatter:
    from reporters.html import HTMLFormatter
    from reporters.json_reporter import JSONFormatter
    from reporters.junit import JUnitFormatter
    from reporters.slideshow import SlideshowFormatter

    formatters = {
        ReportFormat.HTML: HTMLFormatter,
        ReportFormat.SLIDESHOW: SlideshowFormatter,
        ReportFormat.JUNIT: JUnitFormatter,
        ReportFormat.JSON: JSONFormatter,
    }
    return formatters[report_format]()


def parse_formats(value: Union[str, ReportFormat, Iterable[Union[str, ReportFormat]], None]) -> List[ReportFormat]:
    """
    Parse requested report formats.

    Accepts a comma separated string, a single format or an iterable of
    either. 'all' expands to every primary and machine-readable format.
    Duplicates are dropped, request order is kept.
    """
    if value is None:
        return []
    if isinstance(value, (str, ReportFormat)):
        items: List[Union[str, ReportFormat]] = [value]
    else:
        items = list(value)

    names: List[str] = []
    for item in items:
        if isinstance(item, ReportFormat):
            names.append(item.value)
        else:
            names.extend(part.strip().lower() for part in str(item).split(",") if part.strip())

    formats: List[ReportFormat] = []
    for name in names:
        if name == ALL_FORMATS:
            candidates = _ALL_EXPANSION
        else:
            try:
                candidates = [ReportFormat(name)]
            except ValueError as exc:
                valid = ", ".join([f.value for f in ReportFormat] + [ALL_FORMATS])
                raise ConfigurationError(
                    f"Unknown report format: {name}", {"valid_formats": valid}
                ) from exc
        for fmt in candidates:
            if fmt not in formats:
                formats.append(fmt)
    return formats
