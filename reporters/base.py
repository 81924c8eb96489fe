"""Base formatter interface for report generation."""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

from spec_types import FeatureUnit, ReportResult, RunInfo, RunSummary

if TYPE_CHECKING:
    from config import ReportingConfig


Breadcrumb = Tuple[str, Path]


def relative_href(target: Path, report_file: Path) -> str:
    """Link to `target` from a page written at `report_file`."""
    return Path(os.path.relpath(target, start=report_file.parent)).as_posix()


class BaseFormatter(ABC):
    """Abstract rendering capability for one report format.

    Returning None from either method means there is nothing to write
    for this format.
    """

    @abstractmethod
    def format_detail(
        self,
        config: ReportingConfig,
        info: RunInfo,
        unit: FeatureUnit,
        result: ReportResult,
        breadcrumbs: List[Breadcrumb],
    ) -> Optional[str]:
        """
        Render the detail report of a feature or support spec.

        Args:
            config: Reporting configuration
            info: Implementation and run info
            unit: Feature unit the spec belongs to
            result: Spec being rendered, its target files and support results
            breadcrumbs: Navigation trail, summary first

        Returns:
            Report content, or None to skip writing
        """
        pass

    @abstractmethod
    def format_summary(
        self,
        config: ReportingConfig,
        info: RunInfo,
        summary: RunSummary,
    ) -> Optional[str]:
        """
        Render the run summary report.

        Args:
            config: Reporting configuration
            info: Implementation and run info
            summary: Aggregated run summary

        Returns:
            Report content, or None to skip writing
        """
        pass
