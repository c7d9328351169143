"""Tests for report rendering."""

import json

import pytest

from validate_concepts.models import (
    Assessment,
    IssueCategory,
    IssueLocation,
    IssueSeverity,
    SkippedItem,
    ValidationIssue,
    ValidationReport,
    summarize_issues,
)
from validate_concepts.reporters import ValidationReporter, score_band


def make_report(name, *severities, assessment=None):
    issues = [
        ValidationIssue(
            severity=severity,
            category=IssueCategory.SIGNATURE_MISMATCH,
            message=f"{severity.value} in <{name}>",
            description="Something is off",
            location=IssueLocation(file=f"concepts/{name.lower()}.ts", line=3),
            suggestion="Fix [it]",
        )
        for severity in severities
    ]
    return ValidationReport(
        concept_name=name,
        spec_file=f"specs/{name.lower()}.concept",
        implementation_file=f"concepts/{name.lower()}.ts",
        issues=issues,
        summary=summarize_issues(issues),
        assessment=assessment,
    )


@pytest.fixture
def reports():
    return [
        make_report("Team"),
        make_report(
            "Session",
            IssueSeverity.ERROR,
            IssueSeverity.WARNING,
            IssueSeverity.INFO,
            assessment=Assessment("Serves its purpose", "Readable", suggestions=["Add docs"]),
        ),
    ]


@pytest.fixture
def reporter():
    return ValidationReporter()


def test_score_bands():
    assert score_band(100) == "excellent"
    assert score_band(90) == "excellent"
    assert score_band(75) == "good"
    assert score_band(74.9) == "fair"
    assert score_band(50) == "fair"
    assert score_band(49) == "poor"


def test_aggregate(reporter, reports):
    stats = reporter.aggregate(reports)

    assert stats.concepts_analyzed == 2
    assert stats.total_errors == 1
    assert stats.total_warnings == 1
    assert stats.total_info == 1
    assert stats.average_score == pytest.approx((100 + 74) / 2)


def test_aggregate_empty(reporter):
    stats = reporter.aggregate([])

    assert stats.concepts_analyzed == 0
    assert stats.average_score == 0.0


def test_report_console_returns_error_count(reporter, reports):
    skipped = [SkippedItem(path="specs/bad.concept", stage="parse", reason="not UTF-8")]

    assert reporter.report_console(reports, skipped) == 1


def test_report_console_logs_issues(reporter, reports, caplog):
    reporter.report_console(reports)

    assert "Concepts analyzed" in caplog.text
    assert "Session" in caplog.text
    assert "error in <Session>" in caplog.text


def test_report_json(reporter, reports, tmp_path):
    path = tmp_path / "out" / "report.json"

    output = reporter.report_json(reports, path)

    data = json.loads(output)
    assert data["summary"] == {
        "conceptsAnalyzed": 2,
        "totalErrors": 1,
        "totalWarnings": 1,
        "averageScore": 87.0,
    }
    session = data["reports"][1]
    assert session["conceptName"] == "Session"
    assert session["summary"]["overallScore"] == 74
    assert session["issues"][0]["type"] == "error"
    assert session["issues"][0]["location"] == {"file": "concepts/session.ts", "line": 3}
    assert session["aiAnalysis"]["conceptPurposeAlignment"] == "Serves its purpose"
    assert "aiAnalysis" not in data["reports"][0]
    assert json.loads(path.read_text()) == data


def test_report_json_without_path(reporter):
    data = json.loads(reporter.report_json([]))

    assert data["summary"]["averageScore"] == 0.0
    assert data["reports"] == []


def test_report_html(reporter, reports, tmp_path):
    path = reporter.report_html(reports, tmp_path / "report.html")

    document = path.read_text()
    assert document.startswith("<!DOCTYPE html>")
    assert "<style>" in document
    assert "error in &lt;Session&gt;" in document
    assert "<Session>" not in document
    assert 'class="score fair"' in document
    assert "Serves its purpose" in document


def test_report_markdown(reporter, reports, tmp_path):
    path = reporter.report_markdown(reports, tmp_path / "report.md")

    text = path.read_text()
    assert text.startswith("# Concept Validation Report")
    assert "- **Concepts Analyzed**: 2" in text
    assert "## Session (74/100, fair)" in text
    assert "**error in <Session>** (line 3)" in text
    assert "- Add docs" in text


def test_hide_info(reports, tmp_path):
    reporter = ValidationReporter(show_info=False)

    text = reporter.report_markdown(reports, tmp_path / "report.md").read_text()

    assert "info in <Session>" not in text
    assert "warning in <Session>" in text


def test_issues_grouped_by_severity(reporter, tmp_path):
    issues = [
        ValidationIssue(
            severity=severity,
            category=IssueCategory.SIGNATURE_MISMATCH,
            message=message,
            description="Something is off",
            location=IssueLocation(file="concepts/tag.ts"),
        )
        for severity, message in [
            (IssueSeverity.INFO, "Info one"),
            (IssueSeverity.ERROR, "Error one"),
            (IssueSeverity.WARNING, "Warning one"),
            (IssueSeverity.ERROR, "Error two"),
        ]
    ]
    report = ValidationReport(
        concept_name="Tag",
        spec_file="specs/tag.concept",
        implementation_file="concepts/tag.ts",
        issues=issues,
        summary=summarize_issues(issues),
    )
    expected = ["Error one", "Error two", "Warning one", "Info one"]

    markdown = reporter.report_markdown([report], tmp_path / "report.md").read_text()
    document = reporter.report_html([report], tmp_path / "report.html").read_text()

    for text in (markdown, document):
        positions = [text.index(message) for message in expected]
        assert positions == sorted(positions)
    assert markdown.index("#### Errors (2)") < markdown.index("#### Warnings (1)")
