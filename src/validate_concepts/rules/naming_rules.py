"""Naming convention rules."""

from ..constants import CONCEPT_SUFFIX
from ..models import (
    ConceptSpecification,
    ImplementationModule,
    IssueCategory,
    IssueLocation,
    IssueSeverity,
    ValidationIssue,
)


def strip_concept_suffix(name: str) -> str:
    """Drop a trailing 'Concept' (any case) from a name."""
    if name.lower().endswith(CONCEPT_SUFFIX.lower()) and len(name) > len(CONCEPT_SUFFIX):
        return name[: -len(CONCEPT_SUFFIX)]
    return name


class NamingRules:
    """Checks that the exported class is named <Concept>Concept."""

    def validate(
        self, spec: ConceptSpecification, module: ImplementationModule
    ) -> list[ValidationIssue]:
        expected = f"{strip_concept_suffix(spec.name)}{CONCEPT_SUFFIX}"
        if module.exposed_type_name == expected:
            return []

        found = module.exposed_type_name or "no exported class"
        return [
            ValidationIssue(
                severity=IssueSeverity.WARNING,
                category=IssueCategory.NAMING_CONVENTION,
                message=f"Class name should be '{expected}'",
                description=f"Found '{found}', expected '{expected}'",
                location=IssueLocation(file=str(module.source_location)),
                suggestion=f"Rename class to '{expected}'",
            )
        ]
