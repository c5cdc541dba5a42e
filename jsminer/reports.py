"""
Report generation for JS Miner scan results.

Generates JSON and HTML reports listing every issue with its evidence.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog
from jinja2 import Environment

from jsminer import __version__
from jsminer.models import ScanReport

logger = structlog.get_logger(__name__)


class ReportGenerator:
    """
    Generate scan reports in JSON or HTML.
    """

    def __init__(self, report: ScanReport) -> None:
        """
        Initialize report generator.

        Args:
            report: Scan report to render
        """
        self.report = report

    def generate_json(self, output_path: str | Path | None = None) -> str:
        """
        Generate JSON report.

        Args:
            output_path: Optional path to save report

        Returns:
            JSON string of the report
        """
        report_data = self._build_report_data()
        json_str = json.dumps(report_data, indent=2, default=str)

        logger.info("json_report_generated", issues_in_report=len(report_data["issues"]))

        if output_path:
            Path(output_path).write_text(json_str)
            logger.info("json_report_saved", path=str(output_path))

        return json_str

    def generate_html(self, output_path: str | Path | None = None) -> str:
        """
        Generate HTML report.

        Args:
            output_path: Optional path to save report

        Returns:
            HTML string of the report
        """
        report_data = self._build_report_data()
        html = self._render_html(report_data)

        logger.info("html_report_generated", issues_in_report=len(report_data["issues"]))

        if output_path:
            Path(output_path).write_text(html)
            logger.info("html_report_saved", path=str(output_path))

        return html

    def _build_report_data(self) -> dict[str, Any]:
        """Build report data structure."""
        report = self.report
        return {
            "meta": {
                "report_generated": datetime.now(timezone.utc).isoformat(),
                "scanner_version": __version__,
                "page_url": report.page_url,
            },
            "summary": {
                "started_at": report.started_at.isoformat(),
                "completed_at": report.completed_at.isoformat() if report.completed_at else None,
                "duration_seconds": report.duration_seconds,
                "resources_scanned": report.resources_scanned,
                "total_issues": sum(len(r.issues) for r in report.results),
                "severity_counts": {s.value: c for s, c in report.severity_counts.items()},
            },
            "scanners": [
                {
                    "scanner": result.scanner.value,
                    "issue_count": len(result.issues),
                    "duration_seconds": result.duration_seconds,
                    "error": result.error,
                }
                for result in report.results
            ],
            "issues": [issue.summary() for issue in report.issues],
        }

    def _render_html(self, data: dict[str, Any]) -> str:
        """Render HTML report from data.

        Autoescape stays on: matches are attacker-controlled asset text.
        """
        env = Environment(autoescape=True)
        template = env.from_string(HTML_TEMPLATE)
        return template.render(data=data, severity_class=self._severity_class)

    @staticmethod
    def _severity_class(severity: str) -> str:
        """Get CSS class for severity level."""
        return f"severity-{severity.lower()}"


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>JS Miner Report - {{ data.meta.page_url }}</title>
    <style>
        body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background: #f8fafc; color: #1e293b; }
        .container { max-width: 1100px; margin: 0 auto; padding: 2rem; }
        header { background: #2563eb; color: white; padding: 1.5rem; border-radius: 10px; margin-bottom: 1.5rem; }
        .counts span { margin-right: 1rem; }
        .issue { background: white; border-radius: 8px; padding: 1rem 1.25rem; margin-bottom: 1rem; border-left: 4px solid #6b7280; }
        .issue .meta { color: #64748b; font-size: 0.85rem; word-break: break-all; }
        .issue ul { font-family: monospace; font-size: 0.85rem; word-break: break-all; }
        .severity-high { border-left-color: #ea580c; }
        .severity-medium { border-left-color: #ca8a04; }
        .severity-low { border-left-color: #16a34a; }
        .severity-information { border-left-color: #6b7280; }
        .failed { color: #dc2626; }
    </style>
</head>
<body>
<div class="container">
    <header>
        <h1>JS Miner Report</h1>
        <div>{{ data.meta.page_url }}</div>
        <div class="counts">
            {% for severity, count in data.summary.severity_counts.items() %}
            <span>{{ severity }}: {{ count }}</span>
            {% endfor %}
        </div>
        <div>{{ data.summary.resources_scanned }} resources, {{ "%.2f"|format(data.summary.duration_seconds) }}s</div>
    </header>

    {% for scanner in data.scanners if scanner.error %}
    <p class="failed">Scanner {{ scanner.scanner }} failed: {{ scanner.error }}</p>
    {% endfor %}

    {% for issue in data.issues %}
    <article class="issue {{ severity_class(issue.severity) }}">
        <h2>{{ issue.title }}</h2>
        <div class="meta">{{ issue.severity }} | {{ issue.confidence }} | {{ issue.scanner }} | {{ issue.resource_url }}</div>
        <p>{{ issue.description }}</p>
        {% if issue.matches %}
        <ul>
            {% for match in issue.matches %}<li>{{ match }}</li>{% endfor %}
        </ul>
        {% endif %}
        {% if issue.has_download %}<div class="meta">Recovered files available in the archive directory.</div>{% endif %}
    </article>
    {% else %}
    <p>No findings were reported.</p>
    {% endfor %}
</div>
</body>
</html>
"""
