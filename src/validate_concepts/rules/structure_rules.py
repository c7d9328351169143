"""Completeness and design-rule checks on each side of a pairing."""

from ..models import (
    ConceptSpecification,
    ImplementationModule,
    IssueCategory,
    IssueLocation,
    IssueSeverity,
    ValidationIssue,
)
from ..source_extractor import SourceExtractor
from ..spec_parser import ConceptSpecParser


class StructureRules:
    """Turns spec and implementation self-checks into issues."""

    def __init__(self, parser: ConceptSpecParser, extractor: SourceExtractor):
        self.parser = parser
        self.extractor = extractor

    def validate(
        self, spec: ConceptSpecification, module: ImplementationModule
    ) -> list[ValidationIssue]:
        """Report spec defects as errors and implementation defects as warnings."""
        issues = [
            ValidationIssue(
                severity=IssueSeverity.ERROR,
                category=IssueCategory.STATE_MISMATCH,
                message=defect,
                description="Specification is incomplete",
                location=IssueLocation(file=str(spec.source_location)),
            )
            for defect in self.parser.validate_spec(spec)
        ]

        for defect in self.extractor.validate_implementation(module):
            category = (
                IssueCategory.DEPENDENCY_VIOLATION
                if defect.startswith("Concept has dependencies")
                else IssueCategory.CONCEPT_INDEPENDENCE
            )
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    category=category,
                    message=defect,
                    description="Implementation may violate concept design principles",
                    location=IssueLocation(file=str(module.source_location)),
                )
            )

        return issues
