"""JSON report formatter for evaluated feature runs."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from reporters.base import BaseFormatter, Breadcrumb, relative_href
from reporters.formats import ReportFormat
from spec_types import (
    DataRecord,
    FeatureSpec,
    FeatureUnit,
    ReportResult,
    RunInfo,
    RunSummary,
    Scenario,
    Step,
)

if TYPE_CHECKING:
    from config import ReportingConfig


REPORT_VERSION = "1.0"


class JSONFormatter(BaseFormatter):
    """Generate machine-readable JSON reports."""

    def _step_to_dict(self, step: Step) -> Dict[str, Any]:
        """Convert Step to JSON-serializable dict."""
        return {
            "keyword": step.keyword,
            "text": step.text,
            "status": step.status.value,
            "duration_ms": step.duration_ms,
            "error_message": step.error_message,
            "attachments": [
                {"name": a.name, "file": Path(a.path).name} for a in step.attachments
            ],
        }

    def _scenario_to_dict(self, scenario: Scenario) -> Dict[str, Any]:
        return {
            "name": scenario.name,
            "tags": list(scenario.tags),
            "status": scenario.status.value,
            "duration_ms": scenario.duration_ms,
            "steps": [self._step_to_dict(s) for s in scenario.steps],
        }

    def _spec_to_dict(self, spec: FeatureSpec) -> Dict[str, Any]:
        return {
            "name": spec.name,
            "source_file": str(spec.source_file) if spec.source_file else None,
            "description": spec.description,
            "tags": list(spec.tags),
            "status": spec.status.value,
            "duration_ms": spec.duration_ms,
            "scenarios": [self._scenario_to_dict(sc) for sc in spec.scenarios],
        }

    def _record_to_dict(self, data_record: Optional[DataRecord]) -> Optional[Dict[str, Any]]:
        if data_record is None:
            return None
        return {
            "number": data_record.number,
            "data_file": str(data_record.data_file) if data_record.data_file else None,
            "values": dict(data_record.values),
        }

    def _generator_info(self, info: RunInfo) -> Dict[str, Any]:
        return {
            "name": info.name,
            "version": info.version,
            "started_at": info.started_at.isoformat() if info.started_at else None,
            "finished_at": info.finished_at.isoformat() if info.finished_at else None,
        }

    def format_detail(
        self,
        config: ReportingConfig,
        info: RunInfo,
        unit: FeatureUnit,
        result: ReportResult,
        breadcrumbs: List[Breadcrumb],
    ) -> Optional[str]:
        """Render a feature or support spec as a JSON document."""
        report_file = result.report_file(ReportFormat.JSON)
        if report_file is None:
            return None

        support = []
        for support_result in result.support_results:
            target = support_result.report_file(ReportFormat.JSON)
            support.append({
                "sequence": support_result.sequence,
                "name": support_result.spec.name,
                "status": support_result.spec.status.value,
                "href": relative_href(target, report_file) if target else None,
            })

        report_data = {
            "generated_at": datetime.utcnow().isoformat(),
            "report_version": REPORT_VERSION,
            "generator": self._generator_info(info),
            "kind": "support" if result.support else "feature",
            "sequence": result.sequence,
            "breadcrumbs": [
                {"label": label, "href": relative_href(target, report_file)}
                for label, target in breadcrumbs
            ],
            "data_record": None if result.support else self._record_to_dict(unit.data_record),
            "spec": self._spec_to_dict(result.spec),
            "support": support,
        }
        return json.dumps(report_data, indent=2)

    def format_summary(
        self,
        config: ReportingConfig,
        info: RunInfo,
        summary: RunSummary,
    ) -> Optional[str]:
        """Render the run summary as a JSON document."""
        summary_file = ReportFormat.JSON.summary_report_file(config)
        features = []
        for line in summary.lines:
            target = line.report_files.get(ReportFormat.JSON)
            features.append({
                "name": line.spec.name,
                "source_file": str(line.spec.source_file) if line.spec.source_file else None,
                "data_record": line.data_record.number if line.data_record else None,
                "status": line.status.value,
                "duration_ms": line.duration_ms,
                "href": relative_href(target, summary_file) if target and summary_file else None,
            })

        report_data = {
            "generated_at": datetime.utcnow().isoformat(),
            "report_version": REPORT_VERSION,
            "generator": self._generator_info(info),
            "summary": {
                "total": summary.total,
                "passed": summary.passed,
                "failed": summary.failed,
                "pass_rate": round(summary.pass_rate, 2),
                "status": summary.status.value,
                "status_counts": {s.value: n for s, n in summary.status_counts.items()},
                "scenarios": summary.scenario_count,
                "steps": summary.step_count,
                "duration_ms": summary.duration_ms,
            },
            "features": features,
        }
        return json.dumps(report_data, indent=2)
