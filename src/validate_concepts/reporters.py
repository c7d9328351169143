"""Validation report renderers."""

import html
import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from rich.markup import escape

from common.logger import get_logger

from .models import IssueSeverity, SkippedItem, ValidationIssue, ValidationReport

logger = get_logger(__name__)

_ICONS = {
    IssueSeverity.ERROR: "[red]✗[/red]",
    IssueSeverity.WARNING: "[yellow]⚠[/yellow]",
    IssueSeverity.INFO: "[blue]ℹ[/blue]",
}

_MARKDOWN_ICONS = {
    IssueSeverity.ERROR: "❌",
    IssueSeverity.WARNING: "⚠️",
    IssueSeverity.INFO: "ℹ️",
}

_BAND_COLORS = {"excellent": "green", "good": "cyan", "fair": "yellow", "poor": "red"}

_HTML_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
.container { max-width: 1200px; margin: 0 auto; background: white; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
.header { background: #2c3e50; color: white; padding: 30px; border-radius: 8px 8px 0 0; }
.summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; padding: 30px; border-bottom: 1px solid #eee; }
.stat-card { background: #f8f9fa; padding: 20px; border-radius: 6px; text-align: center; }
.stat-number { font-size: 2em; font-weight: bold; margin-bottom: 5px; }
.report { padding: 30px; border-bottom: 1px solid #eee; }
.score { font-size: 1.5em; font-weight: bold; padding: 5px 15px; border-radius: 20px; color: white; }
.score.excellent { background: #27ae60; }
.score.good { background: #3498db; }
.score.fair { background: #f39c12; }
.score.poor { background: #e74c3c; }
.issue { margin: 15px 0; padding: 15px; border-left: 4px solid; border-radius: 4px; }
.issue.error { border-color: #e74c3c; background: #fdf2f2; }
.issue.warning { border-color: #f39c12; background: #fef9e7; }
.issue.info { border-color: #3498db; background: #f0f8ff; }
.issue-title { font-weight: bold; margin-bottom: 5px; }
.issue-location { font-family: monospace; font-size: 0.9em; color: #666; }
.suggestion { margin-top: 10px; padding: 10px; background: rgba(0,0,0,0.05); border-radius: 4px; font-style: italic; }
.ai-analysis { margin-top: 20px; padding: 20px; background: #f8f9fa; border-radius: 6px; }
.files { font-family: monospace; font-size: 0.9em; color: #666; margin: 10px 0; }
""".strip()


@dataclass
class ReportStatistics:
    """Totals shared by every output format."""

    concepts_analyzed: int
    total_errors: int
    total_warnings: int
    total_info: int
    average_score: float


def score_band(score: float) -> str:
    """Map a score to excellent, good, fair or poor."""
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 50:
        return "fair"
    return "poor"


class ValidationReporter:
    """Format and display validation reports."""

    def __init__(self, show_info: bool = True):
        """Initialize the reporter.

        Args:
            show_info: Whether to show info-level issues
        """
        self.show_info = show_info

    def aggregate(self, reports: list[ValidationReport]) -> ReportStatistics:
        if not reports:
            return ReportStatistics(0, 0, 0, 0, 0.0)
        return ReportStatistics(
            concepts_analyzed=len(reports),
            total_errors=sum(r.summary.error_count for r in reports),
            total_warnings=sum(r.summary.warning_count for r in reports),
            total_info=sum(r.summary.info_count for r in reports),
            average_score=sum(r.summary.score for r in reports) / len(reports),
        )

    def report_console(
        self, reports: list[ValidationReport], skipped: Sequence[SkippedItem] = ()
    ) -> int:
        """Print validation reports to the console.

        Args:
            reports: Reports to print
            skipped: Files or concepts the run could not process

        Returns:
            Number of error-severity issues
        """
        stats = self.aggregate(reports)
        band = score_band(stats.average_score)

        logger.info("[bold]Concept Validation Summary[/bold]")
        logger.info("=" * 60)
        logger.info(f"Concepts analyzed: [bold]{stats.concepts_analyzed}[/bold]")
        logger.info(
            f"Total: [bold]{stats.total_errors}[/bold] errors, "
            f"[bold]{stats.total_warnings}[/bold] warnings, "
            f"[bold]{stats.total_info}[/bold] info"
        )
        logger.info(
            f"Average score: [{_BAND_COLORS[band]}]{stats.average_score:.1f}/100[/{_BAND_COLORS[band]}]"
        )

        for report in reports:
            self._console_report(report)

        if skipped:
            logger.info("")
            logger.info(f"[bold]Skipped ({len(skipped)}):[/bold]")
            for item in skipped:
                logger.info(f"  [dim]{item.stage}[/dim] {escape(item.path)}: {escape(item.reason)}")

        return stats.total_errors

    def report_html(self, reports: list[ValidationReport], path: Path) -> Path:
        """Write a self-contained HTML document.

        Args:
            reports: Reports to render
            path: Destination file

        Returns:
            The written path
        """
        stats = self.aggregate(reports)
        body = "\n".join(self._html_report(r) for r in reports)

        document = f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Concept Validation Report</title>
<style>
{_HTML_STYLE}
</style>
</head>
<body>
<div class="container">
<div class="header">
<h1>Concept Validation Report</h1>
<p>Generated on {html.escape(_now().strftime("%Y-%m-%d %H:%M:%S %Z"))}</p>
</div>
<div class="summary">
{_stat_card(stats.concepts_analyzed, "Concepts Analyzed")}
{_stat_card(stats.total_errors, "Errors", "#e74c3c")}
{_stat_card(stats.total_warnings, "Warnings", "#f39c12")}
{_stat_card(f"{stats.average_score:.1f}", "Average Score")}
</div>
{body}
</div>
</body>
</html>
"""
        _write(path, document)
        return path

    def report_markdown(self, reports: list[ValidationReport], path: Path) -> Path:
        """Write a Markdown summary."""
        stats = self.aggregate(reports)
        lines = [
            "# Concept Validation Report",
            "",
            f"Generated on {_now().strftime('%Y-%m-%d %H:%M:%S %Z')}",
            "",
            "## Summary",
            "",
            f"- **Concepts Analyzed**: {stats.concepts_analyzed}",
            f"- **Total Errors**: {stats.total_errors}",
            f"- **Total Warnings**: {stats.total_warnings}",
            f"- **Total Info**: {stats.total_info}",
            f"- **Average Score**: {stats.average_score:.1f}/100 ({score_band(stats.average_score)})",
            "",
        ]

        for report in reports:
            lines.extend(self._markdown_report(report))

        _write(path, "\n".join(lines).rstrip() + "\n")
        return path

    def report_json(self, reports: list[ValidationReport], path: Path | None = None) -> str:
        """Format reports as JSON, optionally writing them to path.

        Returns:
            JSON string representation of the reports
        """
        stats = self.aggregate(reports)
        data = {
            "timestamp": _now().isoformat(),
            "summary": {
                "conceptsAnalyzed": stats.concepts_analyzed,
                "totalErrors": stats.total_errors,
                "totalWarnings": stats.total_warnings,
                "averageScore": stats.average_score,
            },
            "reports": [r.to_dict() for r in reports],
        }
        output = json.dumps(data, indent=2)
        if path is not None:
            _write(path, output + "\n")
        return output

    def _grouped(
        self, report: ValidationReport
    ) -> list[tuple[IssueSeverity, list[ValidationIssue]]]:
        """Issues grouped by severity, errors first; empty groups are dropped."""
        groups = []
        for severity in IssueSeverity:
            if severity == IssueSeverity.INFO and not self.show_info:
                continue
            issues = report.issues_by_severity(severity)
            if issues:
                groups.append((severity, issues))
        return groups

    def _console_report(self, report: ValidationReport) -> None:
        band = score_band(report.summary.score)
        color = _BAND_COLORS[band]

        logger.info("")
        logger.info(
            f"[bold]{escape(report.concept_name)}[/bold] "
            f"[{color}]{report.summary.score}/100 ({band})[/{color}]"
        )
        logger.info(f"  Spec: {escape(report.spec_file)}")
        logger.info(f"  Implementation: {escape(report.implementation_file)}")
        if report.related_files:
            logger.info(f"  Syncs: {escape(', '.join(report.related_files))}")

        for severity, issues in self._grouped(report):
            logger.info(f"  {severity.value.capitalize()}s ({len(issues)}):")
            for issue in issues:
                line = f":{issue.location.line}" if issue.location.line else ""
                logger.info(
                    f"    {_ICONS[severity]} {escape(issue.message)} "
                    f"[dim]({issue.category.value}{line})[/dim]"
                )
                if issue.suggestion:
                    logger.info(f"      Suggestion: {escape(issue.suggestion)}")

        if report.assessment:
            logger.info(f"  AI Analysis: {escape(report.assessment.purpose_alignment_note[:200])}")

    def _html_report(self, report: ValidationReport) -> str:
        band = score_band(report.summary.score)
        parts = [
            '<div class="report">',
            f'<h2>{html.escape(report.concept_name)} <span class="score {band}">{report.summary.score}/100</span></h2>',
            '<div class="files">',
            f"<div>Spec: {html.escape(report.spec_file)}</div>",
            f"<div>Implementation: {html.escape(report.implementation_file)}</div>",
        ]
        if report.related_files:
            parts.append(f"<div>Syncs: {html.escape(', '.join(report.related_files))}</div>")
        parts.append("</div>")

        for issue in (i for _, issues in self._grouped(report) for i in issues):
            location = issue.location.file
            if issue.location.line:
                location += f":{issue.location.line}"
            parts.append(f'<div class="issue {issue.severity.value}">')
            parts.append(f'<div class="issue-title">{html.escape(issue.message)}</div>')
            parts.append(f"<div>{html.escape(issue.description)}</div>")
            parts.append(f'<div class="issue-location">{html.escape(location)}</div>')
            if issue.suggestion:
                parts.append(
                    f'<div class="suggestion">💡 {html.escape(issue.suggestion)}</div>'
                )
            parts.append("</div>")

        if report.assessment:
            a = report.assessment
            parts.append('<div class="ai-analysis">')
            parts.append("<h3>AI Analysis</h3>")
            parts.append(f"<p><strong>Purpose Alignment:</strong> {html.escape(a.purpose_alignment_note)}</p>")
            parts.append(
                f"<p><strong>Implementation Quality:</strong> {html.escape(a.implementation_quality_note)}</p>"
            )
            if a.suggestions:
                items = "".join(f"<li>{html.escape(s)}</li>" for s in a.suggestions)
                parts.append(f"<h4>Suggestions</h4><ul>{items}</ul>")
            parts.append("</div>")

        parts.append("</div>")
        return "\n".join(parts)

    def _markdown_report(self, report: ValidationReport) -> list[str]:
        band = score_band(report.summary.score)
        lines = [
            f"## {report.concept_name} ({report.summary.score}/100, {band})",
            "",
            f"- **Spec**: `{report.spec_file}`",
            f"- **Implementation**: `{report.implementation_file}`",
        ]
        if report.related_files:
            lines.append(f"- **Syncs**: {', '.join(f'`{f}`' for f in report.related_files)}")
        lines.append("")

        groups = self._grouped(report)
        if groups:
            lines.extend(["### Issues", ""])
        for severity, issues in groups:
            lines.extend([f"#### {severity.value.capitalize()}s ({len(issues)})", ""])
            for issue in issues:
                line = f" (line {issue.location.line})" if issue.location.line else ""
                lines.append(
                    f"- {_MARKDOWN_ICONS[severity]} **{issue.message}**{line}: {issue.description}"
                )
                if issue.suggestion:
                    lines.append(f"  - Suggestion: {issue.suggestion}")
            lines.append("")

        if report.assessment:
            a = report.assessment
            lines.extend(
                [
                    "### AI Analysis",
                    "",
                    f"**Purpose Alignment**: {a.purpose_alignment_note}",
                    "",
                    f"**Implementation Quality**: {a.implementation_quality_note}",
                    "",
                ]
            )
            if a.suggestions:
                lines.append("**Suggestions**:")
                lines.extend(f"- {s}" for s in a.suggestions)
                lines.append("")

        return lines


def _stat_card(value, label: str, color: str | None = None) -> str:
    style = f' style="color: {color}"' if color else ""
    return (
        f'<div class="stat-card"><div class="stat-number"{style}>{value}</div>'
        f"<div>{html.escape(label)}</div></div>"
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
