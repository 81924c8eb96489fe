"""HTML report formatter for evaluated feature runs."""
from __future__ import annotations

import html
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from reporters.base import BaseFormatter, Breadcrumb, relative_href
from reporters.formats import ATTACHMENTS_DIR, ReportFormat
from spec_types import (
    DataRecord,
    EvalStatus,
    FeatureUnit,
    ReportResult,
    RunInfo,
    RunSummary,
    Scenario,
    Step,
)

if TYPE_CHECKING:
    from config import ReportingConfig


STATUS_ICONS = {
    EvalStatus.PASSED: "✓",
    EvalStatus.FAILED: "✗",
    EvalStatus.SKIPPED: "»",
    EvalStatus.PENDING: "…",
    EvalStatus.LOADED: "↺",
}


def _format_duration(duration_ms: float) -> str:
    if duration_ms < 1000:
        return f"{duration_ms:.0f}ms"
    return f"{duration_ms / 1000:.1f}s"


class HTMLFormatter(BaseFormatter):
    """Generate navigable HTML reports for features, support specs and runs."""

    def _badge(self, status: EvalStatus) -> str:
        icon = STATUS_ICONS[status]
        return f'<span class="badge {status.value}">{icon} {status.value.upper()}</span>'

    def _render_breadcrumbs(
        self,
        breadcrumbs: List[Breadcrumb],
        report_file: Path,
        current: Optional[str] = None,
    ) -> str:
        """Render the navigation trail; the entry for this page is not a link."""
        items = []
        for label, target in breadcrumbs:
            if target == report_file:
                items.append(f'<span class="crumb current">{html.escape(label)}</span>')
            else:
                href = relative_href(target, report_file)
                items.append(f'<a class="crumb" href="{html.escape(href)}">{html.escape(label)}</a>')
        if current:
            items.append(f'<span class="crumb current">{html.escape(current)}</span>')
        return f'<nav class="breadcrumbs">{" <span class=sep>/</span> ".join(items)}</nav>'

    def _render_record(self, data_record: Optional[DataRecord]) -> str:
        if data_record is None:
            return ""
        source = (
            f"<p>Data file: <code>{html.escape(str(data_record.data_file))}</code></p>"
            if data_record.data_file
            else ""
        )
        if data_record.values:
            rows = "".join(
                f"<tr><th>{html.escape(k)}</th><td>{html.escape(str(v))}</td></tr>"
                for k, v in data_record.values.items()
            )
            values = f'<table class="record">{rows}</table>'
        else:
            values = "<p class='empty'>No values</p>"
        return f"""
        <div class="card">
            <h2>Data Record {data_record.number}</h2>
            {source}
            {values}
        </div>"""

    def _render_support_toc(self, result: ReportResult, report_file: Path) -> str:
        """Table of contents of the already written support spec reports."""
        if not result.support_results:
            return ""
        rows = []
        for support in result.support_results:
            target = support.report_file(ReportFormat.HTML)
            name = html.escape(support.spec.name)
            if target is not None:
                name = f'<a href="{html.escape(relative_href(target, report_file))}">{name}</a>'
            rows.append(f"""
                <tr>
                    <td>{support.sequence}</td>
                    <td>{name}</td>
                    <td>{self._badge(support.spec.status)}</td>
                    <td>{len(support.spec.steps)}</td>
                    <td>{_format_duration(support.spec.duration_ms)}</td>
                </tr>""")
        return f"""
        <div class="card">
            <h2>Support Specs</h2>
            <table class="steps">
                <thead><tr><th>#</th><th>Spec</th><th>Status</th><th>Steps</th><th>Duration</th></tr></thead>
                <tbody>{"".join(rows)}</tbody>
            </table>
        </div>"""

    def _render_attachments(self, step: Step, link: bool) -> str:
        if not step.attachments:
            return ""
        items = []
        for attachment in step.attachments:
            label = html.escape(attachment.name)
            if link:
                href = f"{ATTACHMENTS_DIR}/{Path(attachment.path).name}"
                items.append(f'<a class="attachment" href="{html.escape(href)}" target="_blank">{label}</a>')
            else:
                items.append(f'<span class="attachment">{label}</span>')
        return f'<div class="attachments">{" ".join(items)}</div>'

    def _render_scenario(self, scenario: Scenario, link_attachments: bool) -> str:
        rows = []
        for step in scenario.steps:
            error = (
                f'<div class="error-details">{html.escape(step.error_message)}</div>'
                if step.error_message
                else ""
            )
            rows.append(f"""
                <tr class="{step.status.value}">
                    <td><strong>{html.escape(step.keyword)}</strong> {html.escape(step.text)}{error}
                        {self._render_attachments(step, link_attachments)}</td>
                    <td>{self._badge(step.status)}</td>
                    <td>{_format_duration(step.duration_ms)}</td>
                </tr>""")
        tags = " ".join(f"<code>{html.escape(t)}</code>" for t in scenario.tags)
        description = f"<p>{html.escape(scenario.description)}</p>" if scenario.description else ""
        body = (
            f"""<table class="steps">
                <thead><tr><th>Step</th><th>Status</th><th>Duration</th></tr></thead>
                <tbody>{"".join(rows)}</tbody>
            </table>"""
            if rows
            else "<p class='empty'>No steps</p>"
        )
        return f"""
        <div class="card scenario {scenario.status.value}">
            <div class="header">
                <div class="header-content">
                    <h2>Scenario: {html.escape(scenario.name)}</h2>
                    {f"<p>{tags}</p>" if tags else ""}
                    {description}
                </div>
                {self._badge(scenario.status)}
            </div>
            {body}
        </div>"""

    def format_detail(
        self,
        config: ReportingConfig,
        info: RunInfo,
        unit: FeatureUnit,
        result: ReportResult,
        breadcrumbs: List[Breadcrumb],
    ) -> Optional[str]:
        """Render a feature or support spec detail page."""
        report_file = result.report_file(ReportFormat.HTML)
        if report_file is None:
            return None
        spec = result.spec
        kind = "Support Spec" if result.support else "Feature"
        current = spec.name if result.support else None

        slideshow_link = ""
        if not result.support:
            slideshow = ReportFormat.SLIDESHOW.feature_report_file(config, spec, unit.data_record)
            slideshow_link = (
                f'<a class="back-button" href="{html.escape(relative_href(slideshow, report_file))}">'
                f"Slideshow</a>"
            )

        record_pill = (
            f'<div class="pill"><strong>Record:</strong> {unit.data_record.number}</div>'
            if unit.data_record is not None and not result.support
            else ""
        )
        source = (
            f"<p>Source: <code>{html.escape(str(spec.source_file))}</code></p>" if spec.source_file else ""
        )
        description = f"<p>{html.escape(spec.description)}</p>" if spec.description else ""
        scenarios = "".join(
            self._render_scenario(sc, link_attachments=not result.support) for sc in spec.scenarios
        ) or "<div class='card'><p class='empty'>No scenarios</p></div>"

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(config.title)} - {html.escape(spec.name)}</title>
    <style>{self._get_css()}</style>
</head>
<body>
    <div class="container">
        {self._render_breadcrumbs(breadcrumbs, report_file, current)}
        <div class="card">
            <div class="header">
                <div class="header-content">
                    <h1>{kind}: {html.escape(spec.name)}</h1>
                    {source}
                    {description}
                </div>
                {self._badge(spec.status)}
            </div>
            <div class="meta">
                <div class="pill"><strong>Scenarios:</strong> {len(spec.scenarios)}</div>
                <div class="pill"><strong>Steps:</strong> {len(spec.steps)}</div>
                <div class="pill"><strong>Duration:</strong> {_format_duration(spec.duration_ms)}</div>
                {record_pill}
            </div>
            {slideshow_link}
        </div>
        {self._render_record(unit.data_record) if not result.support else ""}
        {self._render_support_toc(result, report_file)}
        {scenarios}
        {self._render_footer(info)}
    </div>
</body>
</html>"""

    def format_summary(
        self,
        config: ReportingConfig,
        info: RunInfo,
        summary: RunSummary,
    ) -> Optional[str]:
        """Render the run summary page linking to every feature report."""
        summary_file = ReportFormat.HTML.summary_report_file(config)
        rows = []
        for line in summary.lines:
            name = html.escape(line.spec.name)
            target = line.report_files.get(ReportFormat.HTML)
            if target is not None and summary_file is not None:
                name = f'<a href="{html.escape(relative_href(target, summary_file))}">{name}</a>'
            record = str(line.data_record.number) if line.data_record else "-"
            rows.append(f"""
                <tr class="{line.status.value}">
                    <td>{name}</td>
                    <td>{record}</td>
                    <td>{self._badge(line.status)}</td>
                    <td>{len(line.spec.scenarios)}</td>
                    <td>{len(line.spec.steps)}</td>
                    <td>{_format_duration(line.duration_ms)}</td>
                </tr>""")

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(config.title)} - Summary</title>
    <style>{self._get_css()}</style>
</head>
<body>
    <div class="container">
        <nav class="breadcrumbs"><span class="crumb current">Summary</span></nav>
        <div class="card">
            <div class="header">
                <div class="header-content">
                    <h1>{html.escape(config.title)}</h1>
                    <p>Generated: {datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S')} UTC</p>
                </div>
                {self._badge(summary.status)}
            </div>
            <div class="summary-grid">
                <div class="summary-stat">
                    <div class="value">{summary.total}</div>
                    <div class="label">Features</div>
                </div>
                <div class="summary-stat passed">
                    <div class="value">{summary.passed}</div>
                    <div class="label">Passed</div>
                </div>
                <div class="summary-stat failed">
                    <div class="value">{summary.failed}</div>
                    <div class="label">Failed</div>
                </div>
                <div class="summary-stat">
                    <div class="value">{summary.pass_rate:.0f}%</div>
                    <div class="label">Pass Rate</div>
                </div>
            </div>
            <div class="meta">
                <div class="pill"><strong>Scenarios:</strong> {summary.scenario_count}</div>
                <div class="pill"><strong>Steps:</strong> {summary.step_count}</div>
                <div class="pill"><strong>Duration:</strong> {_format_duration(summary.duration_ms)}</div>
            </div>
        </div>
        <div class="card">
            <h2>Features</h2>
            <table class="steps">
                <thead>
                    <tr><th>Feature</th><th>Record</th><th>Status</th><th>Scenarios</th><th>Steps</th><th>Duration</th></tr>
                </thead>
                <tbody>{"".join(rows)}</tbody>
            </table>
        </div>
        {self._render_footer(info)}
    </div>
</body>
</html>"""

    def _render_footer(self, info: RunInfo) -> str:
        return f'<p class="footer">Generated by {html.escape(info.name)} {html.escape(info.version)}</p>'

    def _get_css(self) -> str:
        """Return the CSS styles for the report."""
        return """
        :root {
            --bg-primary: #0b1220;
            --bg-card: #111a2d;
            --bg-input: #0f1729;
            --border-color: #1f2a44;
            --text-primary: #e6edf7;
            --text-secondary: #c3cee6;
            --accent-blue: #9dd0ff;
            --success-bg: #0f5132;
            --success-text: #b6f6d8;
            --success-border: #1e7a46;
            --fail-bg: #5b1a1a;
            --fail-text: #f6c6c6;
            --fail-border: #8a2f2f;
            --warn-bg: #5b4a1a;
            --warn-text: #f6e6b6;
            --warn-border: #8a6f2f;
        }
        * { box-sizing: border-box; }
        body {
            font-family: "Inter", "Segoe UI", -apple-system, sans-serif;
            background: var(--bg-primary);
            color: var(--text-primary);
            margin: 0;
            padding: 24px;
            line-height: 1.5;
        }
        .container { max-width: 1400px; margin: 0 auto; }
        .card {
            background: var(--bg-card);
            border: 1px solid var(--border-color);
            border-radius: 12px;
            padding: 20px;
            margin-bottom: 18px;
        }
        .header {
            display: flex;
            justify-content: space-between;
            align-items: flex-start;
            gap: 20px;
            flex-wrap: wrap;
        }
        .header-content { flex: 1; min-width: 300px; }
        h1 { margin: 0 0 8px; font-size: 1.5rem; font-weight: 600; }
        h2 { margin: 0 0 12px; font-size: 1.1rem; font-weight: 600; }
        p { margin: 4px 0; color: var(--text-secondary); }
        a { color: var(--accent-blue); }
        .breadcrumbs { margin-bottom: 16px; font-size: 0.9rem; }
        .crumb.current { color: var(--text-secondary); }
        .sep { color: #556; margin: 0 4px; }
        .badge {
            padding: 6px 14px;
            border-radius: 999px;
            font-weight: 700;
            font-size: 0.8rem;
            letter-spacing: 0.5px;
            white-space: nowrap;
        }
        .badge.passed { background: var(--success-bg); color: var(--success-text); border: 1px solid var(--success-border); }
        .badge.failed { background: var(--fail-bg); color: var(--fail-text); border: 1px solid var(--fail-border); }
        .badge.skipped, .badge.pending { background: var(--warn-bg); color: var(--warn-text); border: 1px solid var(--warn-border); }
        .badge.loaded { background: var(--bg-input); color: var(--text-secondary); border: 1px solid var(--border-color); }
        .meta {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 10px;
            margin-top: 16px;
        }
        .pill {
            background: var(--bg-input);
            border: 1px solid var(--border-color);
            padding: 10px 12px;
            border-radius: 8px;
            color: var(--text-secondary);
            font-size: 0.875rem;
        }
        .pill strong { color: var(--text-primary); }
        code {
            background: #0c1424;
            padding: 2px 6px;
            border-radius: 4px;
            color: #d3e1ff;
            font-family: "JetBrains Mono", "Fira Code", monospace;
            font-size: 0.85em;
        }
        .empty { color: #666; font-style: italic; }
        .back-button {
            display: inline-block;
            margin-top: 16px;
            padding: 8px 16px;
            background: var(--bg-input);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            text-decoration: none;
            font-size: 0.9rem;
        }
        .error-details {
            background: rgba(139, 26, 26, 0.2);
            border: 1px solid var(--fail-border);
            border-radius: 8px;
            padding: 12px;
            margin-top: 8px;
            font-family: "JetBrains Mono", "Fira Code", monospace;
            font-size: 0.8rem;
            color: var(--fail-text);
            white-space: pre-wrap;
            word-break: break-word;
        }
        .attachments { margin-top: 6px; }
        .attachment {
            display: inline-block;
            margin-right: 8px;
            padding: 2px 8px;
            border-radius: 4px;
            background: rgba(157, 208, 255, 0.15);
            font-size: 0.75rem;
        }
        table.steps, table.record {
            width: 100%;
            border-collapse: collapse;
            font-size: 0.85rem;
        }
        table.steps th, table.steps td, table.record th, table.record td {
            border: 1px solid var(--border-color);
            padding: 8px 10px;
            text-align: left;
            vertical-align: top;
        }
        table.steps th, table.record th { background: #16233b; color: #dce9ff; font-weight: 600; }
        table.steps tbody tr:nth-child(odd) { background: #0f1626; }
        table.steps tbody tr:nth-child(even) { background: #10192b; }
        .scenario.failed { border-left: 3px solid var(--fail-border); }
        .scenario.passed { border-left: 3px solid var(--success-border); }
        .summary-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(150px, 1fr));
            gap: 16px;
            margin-top: 16px;
        }
        .summary-stat {
            background: var(--bg-input);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            padding: 16px;
            text-align: center;
        }
        .summary-stat .value { font-size: 2rem; font-weight: 700; }
        .summary-stat.passed .value { color: var(--success-text); }
        .summary-stat.failed .value { color: var(--fail-text); }
        .summary-stat .label { color: var(--text-secondary); font-size: 0.85rem; text-transform: uppercase; }
        .footer { text-align: center; font-size: 0.75rem; color: #667; }
        """
