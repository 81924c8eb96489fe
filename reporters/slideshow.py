"""Slideshow companion of the HTML feature reports."""
from __future__ import annotations

import html
from typing import TYPE_CHECKING, List, Optional

from reporters.base import BaseFormatter, Breadcrumb, relative_href
from reporters.formats import ReportFormat
from spec_types import FeatureUnit, ReportResult, RunInfo, RunSummary, Scenario

if TYPE_CHECKING:
    from config import ReportingConfig


class SlideshowFormatter(BaseFormatter):
    """Step-by-step slideshow of a feature: one slide per scenario."""

    def _render_slide(self, index: int, scenario: Scenario) -> str:
        steps = "".join(
            f'<li class="{step.status.value}"><strong>{html.escape(step.keyword)}</strong> '
            f"{html.escape(step.text)}</li>"
            for step in scenario.steps
        )
        return f"""
        <section class="slide {scenario.status.value}" data-index="{index}">
            <h2>Scenario: {html.escape(scenario.name)}</h2>
            <p class="status">{scenario.status.value.upper()}</p>
            <ol>{steps}</ol>
        </section>"""

    def format_detail(
        self,
        config: ReportingConfig,
        info: RunInfo,
        unit: FeatureUnit,
        result: ReportResult,
        breadcrumbs: List[Breadcrumb],
    ) -> Optional[str]:
        """Render a feature slideshow. Support specs get none."""
        report_file = result.report_file(ReportFormat.SLIDESHOW)
        if result.support or report_file is None:
            return None
        spec = result.spec
        feature_report = ReportFormat.HTML.feature_report_file(config, spec, unit.data_record)
        slides = "".join(self._render_slide(i, sc) for i, sc in enumerate(spec.scenarios))
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>{html.escape(spec.name)} - Slideshow</title>
    <style>
        body {{ font-family: "Inter", "Segoe UI", sans-serif; background: #0b1220; color: #e6edf7; margin: 0; }}
        header {{ padding: 16px 24px; border-bottom: 1px solid #1f2a44; }}
        a {{ color: #9dd0ff; }}
        .slide {{ display: none; padding: 48px; min-height: 70vh; }}
        .slide.active {{ display: block; }}
        .slide.failed .status {{ color: #f6c6c6; }}
        .slide.passed .status {{ color: #b6f6d8; }}
        li.failed {{ color: #f6c6c6; }}
        li {{ margin: 8px 0; font-size: 1.2rem; }}
        .controls {{ padding: 16px 24px; }}
    </style>
</head>
<body>
    <header>
        <h1>{html.escape(spec.name)}</h1>
        <a href="{html.escape(relative_href(feature_report, report_file))}">Back to report</a>
    </header>
    <main>{slides or "<p>No scenarios</p>"}</main>
    <div class="controls">
        <button onclick="show(current - 1)">Previous</button>
        <button onclick="show(current + 1)">Next</button>
        <span id="position"></span>
    </div>
    <script>
        const slides = document.querySelectorAll('.slide');
        let current = 0;
        function show(index) {{
            if (!slides.length) return;
            current = Math.max(0, Math.min(slides.length - 1, index));
            slides.forEach((s, i) => s.classList.toggle('active', i === current));
            document.getElementById('position').textContent = (current + 1) + ' / ' + slides.length;
        }}
        document.addEventListener('keydown', e => {{
            if (e.key === 'ArrowRight') show(current + 1);
            if (e.key === 'ArrowLeft') show(current - 1);
        }});
        show(0);
    </script>
</body>
</html>"""

    def format_summary(
        self,
        config: ReportingConfig,
        info: RunInfo,
        summary: RunSummary,
    ) -> Optional[str]:
        return None
