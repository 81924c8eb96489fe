"""JUnit XML report formatter for CI integration."""
from __future__ import annotations

import html
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from reporters.base import BaseFormatter, Breadcrumb
from spec_types import EvalStatus, FeatureUnit, ReportResult, RunInfo, RunSummary, Scenario

if TYPE_CHECKING:
    from config import ReportingConfig


class JUnitFormatter(BaseFormatter):
    """Generate one JUnit XML test suite per feature."""

    def _escape_xml(self, text: str) -> str:
        """Escape special XML characters."""
        return html.escape(str(text), quote=True)

    def _format_timestamp(self, dt: datetime) -> str:
        """Format datetime for JUnit XML."""
        return dt.strftime("%Y-%m-%dT%H:%M:%S")

    def _cdata(self, text: str) -> str:
        """Make text safe inside a CDATA section."""
        return str(text).replace("]]>", "]]]]><![CDATA[>")

    def _build_testcase_xml(self, classname: str, scenario: Scenario) -> str:
        """Build XML for a single scenario."""
        lines = []
        name = self._escape_xml(scenario.name)
        time_sec = f"{scenario.duration_ms / 1000:.3f}"
        lines.append(f'    <testcase classname="{classname}" name="{name}" time="{time_sec}">')

        status = scenario.status
        if status == EvalStatus.FAILED:
            step = scenario.failed_step
            message = self._escape_xml(step.error_message or step.expression) if step else ""
            lines.append(f'      <failure message="{message}" type="StepFailure"><![CDATA[')
            for s in scenario.steps:
                lines.append(self._cdata(f"  [{s.status.value}] {s.expression}"))
            if step is not None and step.error_message:
                lines.append("")
                lines.append(self._cdata(step.error_message))
            lines.append("]]></failure>")
        elif status in (EvalStatus.SKIPPED, EvalStatus.PENDING):
            lines.append(f'      <skipped message="{status.value}"/>')

        if scenario.steps:
            lines.append("      <system-out><![CDATA[")
            for s in scenario.steps:
                lines.append(self._cdata(f"{s.expression} ({s.status.value})"))
            lines.append("]]></system-out>")
        lines.append("    </testcase>")
        return "\n".join(lines)

    def format_detail(
        self,
        config: ReportingConfig,
        info: RunInfo,
        unit: FeatureUnit,
        result: ReportResult,
        breadcrumbs: List[Breadcrumb],
    ) -> Optional[str]:
        """Render a feature as a JUnit test suite. Support specs are not reported."""
        if result.support:
            return None
        spec = result.spec
        scenarios = spec.scenarios
        failures = sum(1 for sc in scenarios if sc.status == EvalStatus.FAILED)
        skipped = sum(1 for sc in scenarios if sc.status in (EvalStatus.SKIPPED, EvalStatus.PENDING))
        total_time = spec.duration_ms / 1000
        timestamp = self._format_timestamp(info.started_at or datetime.utcnow())

        suite_name = spec.name
        if unit.data_record is not None:
            suite_name = f"{spec.name} [record {unit.data_record.number}]"
        classname = self._escape_xml(spec.report_stem)

        lines = ['<?xml version="1.0" encoding="UTF-8"?>']
        lines.append(
            f'<testsuite name="{self._escape_xml(suite_name)}" '
            f'tests="{len(scenarios)}" '
            f'failures="{failures}" '
            f'errors="0" '
            f'skipped="{skipped}" '
            f'time="{total_time:.3f}" '
            f'timestamp="{timestamp}">'
        )

        lines.append("  <properties>")
        lines.append(f'    <property name="reporter" value="{self._escape_xml(info.name)}"/>')
        lines.append(f'    <property name="reporter.version" value="{self._escape_xml(info.version)}"/>')
        if spec.source_file is not None:
            lines.append(f'    <property name="source" value="{self._escape_xml(spec.source_file)}"/>')
        if unit.data_record is not None:
            lines.append(f'    <property name="data.record" value="{unit.data_record.number}"/>')
            for key, value in unit.data_record.values.items():
                lines.append(
                    f'    <property name="data.{self._escape_xml(key)}" value="{self._escape_xml(value)}"/>'
                )
        lines.append("  </properties>")

        for scenario in scenarios:
            lines.append(self._build_testcase_xml(classname, scenario))

        lines.append("</testsuite>")
        return "\n".join(lines)

    def format_summary(
        self,
        config: ReportingConfig,
        info: RunInfo,
        summary: RunSummary,
    ) -> Optional[str]:
        return None
