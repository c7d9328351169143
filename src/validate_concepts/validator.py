"""Main validator pairing specifications with implementations and running all rules."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from common.logger import get_logger

from .assessment import AssessmentClient
from .constants import (
    MISSING,
    MISSING_IMPLEMENTATION_SCORE,
    MISSING_SPECIFICATION_SCORE,
    RELATED_EXTENSION,
)
from .models import (
    Assessment,
    ConceptSpecification,
    ImplementationModule,
    IssueCategory,
    IssueLocation,
    IssueSeverity,
    ReportSummary,
    SkippedItem,
    ValidationIssue,
    ValidationReport,
    ValidationRun,
    summarize_issues,
)
from .rules import ActionRules, NamingRules, QueryRules, StructureRules
from .rules.naming_rules import strip_concept_suffix
from .source_extractor import SourceExtractor
from .spec_parser import ConceptSpecParser
from .text_utils import to_pascal_case

logger = get_logger(__name__)

_FINDING_SEVERITY = {
    "critical": IssueSeverity.ERROR,
    "major": IssueSeverity.WARNING,
    "minor": IssueSeverity.INFO,
}

# (spec, module) with either side possibly absent
Pairing = tuple[ConceptSpecification | None, ImplementationModule | None]


def concept_key(name: str) -> str:
    """Comparison key: lowercased, without a trailing 'Concept'."""
    return strip_concept_suffix(name).lower()


def spec_key(spec: ConceptSpecification) -> str:
    return concept_key(spec.name or to_pascal_case(spec.source_location.name.split(".")[0]))


def module_keys(module: ImplementationModule) -> set[str]:
    return {concept_key(n) for n in (module.name, module.exposed_type_name) if n}


class ConceptValidator:
    """Compares every concept specification with its implementation."""

    def __init__(
        self,
        parser: ConceptSpecParser,
        extractor: SourceExtractor,
        assessment_client: AssessmentClient | None = None,
        related_dir: Path | None = None,
        workers: int = 1,
    ):
        """Initialize the validator.

        Args:
            parser: Specification parser
            extractor: Implementation extractor
            assessment_client: Optional natural-language reviewer
            related_dir: Directory of synchronization files mentioning concepts
            workers: Number of concepts checked concurrently
        """
        self.parser = parser
        self.extractor = extractor
        self.assessment_client = assessment_client
        self.related_dir = related_dir
        self.workers = max(1, workers)

        # Rule checks, run in this order
        self.rules = [
            StructureRules(parser, extractor),
            ActionRules(extractor),
            QueryRules(),
            NamingRules(),
        ]

    def run(self, spec_dir: Path, impl_dir: Path, only: str | None = None) -> ValidationRun:
        """Validate every concept found in the two directories.

        Args:
            spec_dir: Directory of .concept files
            impl_dir: Directory of implementation files
            only: Restrict the run to one concept name (case-insensitive)

        Returns:
            ValidationRun with one report per concept plus the skipped bucket
        """
        spec_scan = self.parser.scan_directory(spec_dir)
        impl_scan = self.extractor.scan_directory(impl_dir)
        skipped = spec_scan.skipped + impl_scan.skipped

        specs = spec_scan.items
        modules = impl_scan.items
        if only:
            wanted = concept_key(only)
            specs = [s for s in specs if spec_key(s) == wanted]
            modules = [m for m in modules if wanted in module_keys(m)]

        pairings, ambiguous = self.pair(specs, modules)
        skipped.extend(ambiguous)

        if self.workers > 1 and len(pairings) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                outcomes = list(executor.map(self._validate_pairing, pairings))
        else:
            outcomes = [self._validate_pairing(p) for p in pairings]

        run = ValidationRun()
        for report, failure in outcomes:
            run.reports.append(report)
            if failure:
                run.skipped.append(failure)
        run.skipped = skipped + run.skipped

        logger.debug(
            f"Validated {len(run.reports)} concept(s), skipped {len(run.skipped)} item(s)"
        )
        return run

    def validate_all(self, spec_dir: Path, impl_dir: Path) -> list[ValidationReport]:
        """Validate every concept and return only the reports."""
        return self.run(spec_dir, impl_dir).reports

    def pair(
        self, specs: list[ConceptSpecification], modules: list[ImplementationModule]
    ) -> tuple[list[Pairing], list[SkippedItem]]:
        """Match specifications with implementations.

        The first matching implementation (in directory order) wins. Further
        candidates for the same spec are reported as ambiguous and left out.

        Returns:
            Pairings in spec order followed by unmatched implementations, and
            the ambiguous candidates as skipped items
        """
        claimed: set[int] = set()
        pairings: list[Pairing] = []
        skipped: list[SkippedItem] = []

        for spec in specs:
            key = spec_key(spec)
            candidates = [
                (i, m) for i, m in enumerate(modules) if i not in claimed and key in module_keys(m)
            ]
            if not candidates:
                pairings.append((spec, None))
                continue

            index, module = candidates[0]
            claimed.add(index)
            pairings.append((spec, module))

            for extra_index, extra in candidates[1:]:
                claimed.add(extra_index)
                reason = (
                    f"Ambiguous implementation for concept '{spec.name}'; "
                    f"using {module.source_location.name}"
                )
                logger.warning(f"{extra.source_location}: {reason}")
                skipped.append(
                    SkippedItem(path=str(extra.source_location), stage="pairing", reason=reason)
                )

        pairings.extend((None, m) for i, m in enumerate(modules) if i not in claimed)
        return pairings, skipped

    def validate_concept(
        self, spec: ConceptSpecification, module: ImplementationModule
    ) -> ValidationReport:
        """Run all rules (and the optional assessment) for one pairing.

        Args:
            spec: Parsed specification
            module: Extracted implementation

        Returns:
            ValidationReport with issues and score
        """
        logger.debug(f"Validating concept {spec.name}")

        issues: list[ValidationIssue] = []
        for rule in self.rules:
            issues.extend(rule.validate(spec, module))

        related_files = self.find_related_files(spec.name)

        assessment = None
        if self.assessment_client is not None:
            related_text = "\n\n".join(text for _, text in related_files) or None
            assessment = self.assessment_client.assess(spec, module, related_text)
            issues.extend(_assessment_issues(assessment, module))

        return ValidationReport(
            concept_name=spec.name,
            spec_file=str(spec.source_location),
            implementation_file=str(module.source_location),
            related_files=[str(path) for path, _ in related_files],
            issues=issues,
            summary=summarize_issues(issues),
            assessment=assessment,
        )

    def find_related_files(self, concept_name: str) -> list[tuple[Path, str]]:
        """Synchronization files that mention the concept, with their text."""
        if not concept_name or self.related_dir is None or not self.related_dir.is_dir():
            return []

        related = []
        for path in sorted(self.related_dir.glob(f"*{RELATED_EXTENSION}")):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Cannot read sync file {path}: {e}")
                continue
            if concept_name in text:
                related.append((path, text))
        return related

    def _validate_pairing(self, pairing: Pairing) -> tuple[ValidationReport, SkippedItem | None]:
        spec, module = pairing
        if module is None:
            return missing_implementation_report(spec), None
        if spec is None:
            return missing_specification_report(module), None

        try:
            return self.validate_concept(spec, module), None
        except Exception as e:
            logger.warning(f"Validation of {spec.name} failed: {e}")
            return (
                _failed_report(spec, module, e),
                SkippedItem(path=str(spec.source_location), stage="validate", reason=str(e)),
            )


def missing_implementation_report(spec: ConceptSpecification) -> ValidationReport:
    """Report for a specification no implementation matches."""
    issue = ValidationIssue(
        severity=IssueSeverity.ERROR,
        category=IssueCategory.MISSING_ACTION,
        message="Implementation file not found",
        description=f"No implementation found for concept '{spec.name}'",
        location=IssueLocation(file=str(spec.source_location)),
        suggestion=f"Create an implementation exporting class '{strip_concept_suffix(spec.name)}Concept'",
    )
    return ValidationReport(
        concept_name=spec.name,
        spec_file=str(spec.source_location),
        implementation_file=MISSING,
        issues=[issue],
        summary=ReportSummary(error_count=1, score=MISSING_IMPLEMENTATION_SCORE),
    )


def missing_specification_report(module: ImplementationModule) -> ValidationReport:
    """Report for an implementation no specification matches."""
    name = strip_concept_suffix(module.exposed_type_name or module.name)
    issue = ValidationIssue(
        severity=IssueSeverity.WARNING,
        category=IssueCategory.STATE_MISMATCH,
        message="Specification file not found",
        description=f"No specification found for implementation '{module.exposed_type_name or module.name}'",
        location=IssueLocation(file=str(module.source_location)),
        suggestion=f"Create a specification file for concept '{name}'",
    )
    return ValidationReport(
        concept_name=name,
        spec_file=MISSING,
        implementation_file=str(module.source_location),
        issues=[issue],
        summary=ReportSummary(warning_count=1, score=MISSING_SPECIFICATION_SCORE),
    )


def _failed_report(
    spec: ConceptSpecification, module: ImplementationModule, exc: Exception
) -> ValidationReport:
    issues = [
        ValidationIssue(
            severity=IssueSeverity.WARNING,
            category=IssueCategory.CONCEPT_INDEPENDENCE,
            message="Internal validation failure",
            description=f"Checks for this concept stopped early: {exc}",
            location=IssueLocation(file=str(module.source_location)),
        )
    ]
    return ValidationReport(
        concept_name=spec.name,
        spec_file=str(spec.source_location),
        implementation_file=str(module.source_location),
        issues=issues,
        summary=summarize_issues(issues),
    )


def _assessment_issues(assessment: Assessment, module: ImplementationModule) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            severity=_FINDING_SEVERITY.get(finding.severity, IssueSeverity.INFO),
            category=IssueCategory.PURPOSE_ALIGNMENT,
            message=finding.description,
            description="AI analysis finding",
            location=IssueLocation(file=str(module.source_location)),
            suggestion=finding.suggestion or None,
        )
        for finding in assessment.issues
    ]
