"""Data models for specifications, implementations and validation results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

from .constants import ERROR_PENALTY, INFO_PENALTY, QUERY_MARKER, WARNING_PENALTY

T = TypeVar("T")


class IssueSeverity(Enum):
    """Severity levels for validation issues."""

    ERROR = "error"  # Spec and implementation definitely disagree
    WARNING = "warning"  # Likely drift or a design-rule violation
    INFO = "info"  # Worth a look


class IssueCategory(Enum):
    """Closed taxonomy of alignment issues."""

    MISSING_ACTION = "missing_action"
    MISSING_QUERY = "missing_query"
    SIGNATURE_MISMATCH = "signature_mismatch"
    RETURN_TYPE_MISMATCH = "return_type_mismatch"
    MISSING_ERROR_HANDLING = "missing_error_handling"
    STATE_MISMATCH = "state_mismatch"
    NAMING_CONVENTION = "naming_convention"
    PURPOSE_ALIGNMENT = "purpose_alignment"
    OPERATIONAL_PRINCIPLE_VIOLATION = "operational_principle_violation"
    SYNC_ALIGNMENT = "sync_alignment"
    DEPENDENCY_VIOLATION = "dependency_violation"
    CONCEPT_INDEPENDENCE = "concept_independence"


@dataclass
class SpecMethod:
    """An action or query declared in a concept specification."""

    name: str
    signature_text: str
    inputs: dict[str, str] = field(default_factory=dict)
    outputs: dict[str, str] = field(default_factory=dict)
    description: str = ""
    line_number: int | None = None


@dataclass
class ConceptSpecification:
    """A parsed .concept document."""

    name: str
    purpose: str
    state: dict[str, dict[str, str]]
    actions: list[SpecMethod]
    queries: list[SpecMethod]
    operational_principle: str
    source_location: Path


@dataclass
class Parameter:
    """A single parameter of an implementation method."""

    name: str
    type_text: str
    optional: bool = False


@dataclass
class ImplMethod:
    """A method recovered from implementation source."""

    name: str
    is_async: bool
    parameters: list[Parameter]
    return_type_text: str
    body_text: str
    line_number: int | None = None

    @property
    def is_query(self) -> bool:
        """Queries carry the query marker."""
        return self.name.startswith(QUERY_MARKER)


@dataclass
class ImplementationModule:
    """Structural facts extracted from one implementation file."""

    name: str
    exposed_type_name: str
    methods: list[ImplMethod]
    imports: list[str]
    dependencies: list[str]
    source_location: Path

    @property
    def actions(self) -> list[ImplMethod]:
        return [m for m in self.methods if not m.is_query]

    @property
    def queries(self) -> list[ImplMethod]:
        return [m for m in self.methods if m.is_query]


@dataclass
class ComplexityMetrics:
    """Rough size and branching figures for one method."""

    line_count: int
    branch_count: int
    external_call_count: int


@dataclass
class IssueLocation:
    file: str
    line: int | None = None
    column: int | None = None


@dataclass
class RelatedReference:
    file: str
    line: int | None = None
    excerpt: str | None = None


@dataclass
class ValidationIssue:
    """A single discrepancy between a specification and its implementation."""

    severity: IssueSeverity
    category: IssueCategory
    message: str
    description: str
    location: IssueLocation
    suggestion: str | None = None
    related: RelatedReference | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "description": self.description,
            "location": _drop_none(vars(self.location)),
        }
        if self.suggestion:
            data["suggestion"] = self.suggestion
        if self.related:
            data["related"] = _drop_none(vars(self.related))
        return data


@dataclass
class ReportSummary:
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    score: int = 100


@dataclass
class AssessmentFinding:
    """One issue reported by the assessment service."""

    severity: str  # critical | major | minor
    description: str
    suggestion: str = ""


@dataclass
class Assessment:
    """Normalized qualitative review from the assessment service."""

    purpose_alignment_note: str
    implementation_quality_note: str
    issues: list[AssessmentFinding] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    alignment: str = "fair"
    score: int = 50

    def to_dict(self) -> dict[str, Any]:
        return {
            "alignment": self.alignment,
            "score": self.score,
            "conceptPurposeAlignment": self.purpose_alignment_note,
            "implementationQuality": self.implementation_quality_note,
            "issues": [
                {"type": i.severity, "description": i.description, "suggestion": i.suggestion}
                for i in self.issues
            ],
            "suggestions": list(self.suggestions),
        }


@dataclass
class ValidationReport:
    """Validation outcome for one paired (or unpaired) concept."""

    concept_name: str
    spec_file: str
    implementation_file: str
    related_files: list[str] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
    assessment: Assessment | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def issues_by_severity(self, severity: IssueSeverity) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "conceptName": self.concept_name,
            "specFile": self.spec_file,
            "implementationFile": self.implementation_file,
            "syncFiles": list(self.related_files),
            "timestamp": self.timestamp.isoformat(),
            "issues": [i.to_dict() for i in self.issues],
            "summary": {
                "errors": self.summary.error_count,
                "warnings": self.summary.warning_count,
                "info": self.summary.info_count,
                "overallScore": self.summary.score,
            },
        }
        if self.assessment is not None:
            data["aiAnalysis"] = self.assessment.to_dict()
        return data


@dataclass
class SkippedItem:
    """A file or concept the run could not process."""

    path: str
    stage: str  # parse | extract | pairing | validate
    reason: str


@dataclass
class DirectoryScan(Generic[T]):
    """Items read from a directory plus whatever had to be skipped."""

    items: list[T] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)


@dataclass
class ValidationRun:
    """All reports of one run together with the skipped bucket."""

    reports: list[ValidationReport] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return sum(r.summary.error_count for r in self.reports)

    @property
    def total_warnings(self) -> int:
        return sum(r.summary.warning_count for r in self.reports)

    @property
    def total_info(self) -> int:
        return sum(r.summary.info_count for r in self.reports)

    @property
    def average_score(self) -> float:
        if not self.reports:
            return 0.0
        return sum(r.summary.score for r in self.reports) / len(self.reports)


def compute_score(errors: int, warnings: int, info: int) -> int:
    """Score out of 100, floored at 0."""
    penalty = errors * ERROR_PENALTY + warnings * WARNING_PENALTY + info * INFO_PENALTY
    return max(0, 100 - penalty)


def summarize_issues(issues: list[ValidationIssue]) -> ReportSummary:
    """Count issues per severity and derive the score."""
    errors = sum(1 for i in issues if i.severity == IssueSeverity.ERROR)
    warnings = sum(1 for i in issues if i.severity == IssueSeverity.WARNING)
    info = sum(1 for i in issues if i.severity == IssueSeverity.INFO)
    return ReportSummary(
        error_count=errors,
        warning_count=warnings,
        info_count=info,
        score=compute_score(errors, warnings, info),
    )


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}
