"""Action alignment rules."""

from ..models import (
    ConceptSpecification,
    ImplementationModule,
    ImplMethod,
    IssueCategory,
    IssueLocation,
    IssueSeverity,
    RelatedReference,
    SpecMethod,
    ValidationIssue,
)
from ..source_extractor import SourceExtractor, has_error_result
from .query_rules import misnamed_queries


class ActionRules:
    """Checks specified actions against implemented non-query methods."""

    def __init__(self, extractor: SourceExtractor):
        """Initialize with the extractor that knows the persistence handle."""
        self.extractor = extractor

    def validate(
        self, spec: ConceptSpecification, module: ImplementationModule
    ) -> list[ValidationIssue]:
        """Validate action coverage in both directions.

        Args:
            spec: Parsed specification
            module: Extracted implementation

        Returns:
            List of validation issues found
        """
        issues = []
        impl_file = str(module.source_location)
        implemented = {m.name: m for m in module.actions}
        specified = {a.name for a in spec.actions}

        for spec_action in spec.actions:
            method = implemented.get(spec_action.name)
            if method is None:
                issues.append(self._missing(spec, spec_action, impl_file))
            else:
                issues.extend(self._check_matched(method, impl_file))

        query_like = {m.name for m in misnamed_queries(spec, module)}
        for method in module.actions:
            if method.name in specified or method.name in query_like:
                continue
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    category=IssueCategory.SIGNATURE_MISMATCH,
                    message=f"Unspecified action: {method.name}",
                    description=f"Action '{method.name}' is implemented but not in specification",
                    location=IssueLocation(file=impl_file, line=method.line_number),
                    suggestion=f"Add '{method.name}' to the concept specification or remove if unnecessary",
                )
            )

        return issues

    def _missing(
        self, spec: ConceptSpecification, action: SpecMethod, impl_file: str
    ) -> ValidationIssue:
        return ValidationIssue(
            severity=IssueSeverity.ERROR,
            category=IssueCategory.MISSING_ACTION,
            message=f"Missing action: {action.name}",
            description=f"Action '{action.name}' is specified but not implemented",
            location=IssueLocation(file=impl_file),
            suggestion=f"Implement the '{action.name}' method",
            related=RelatedReference(
                file=str(spec.source_location),
                line=action.line_number,
                excerpt=action.signature_text,
            ),
        )

    def _check_matched(self, method: ImplMethod, impl_file: str) -> list[ValidationIssue]:
        issues = []
        location = IssueLocation(file=impl_file, line=method.line_number)

        if not has_error_result(method):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    category=IssueCategory.MISSING_ERROR_HANDLING,
                    message=f"Action '{method.name}' may lack error handling",
                    description="Actions should handle errors and return error objects when appropriate",
                    location=location,
                    suggestion="Add error handling and return {error: string} for failure cases",
                )
            )

        if not method.is_async and self.extractor.touches_persistence(method):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.INFO,
                    category=IssueCategory.SIGNATURE_MISMATCH,
                    message=f"Action '{method.name}' should probably be async",
                    description="Database operations typically require async/await patterns",
                    location=location,
                    suggestion="Consider making this method async",
                )
            )

        return issues
