"""Query alignment rules."""

from ..constants import QUERY_MARKER
from ..models import (
    ConceptSpecification,
    ImplementationModule,
    ImplMethod,
    IssueCategory,
    IssueLocation,
    IssueSeverity,
    RelatedReference,
    ValidationIssue,
)
from ..source_extractor import looks_like_query, returns_sequence


def misnamed_queries(spec: ConceptSpecification, module: ImplementationModule) -> list[ImplMethod]:
    """Implementation methods that are queries in all but their name.

    A method qualifies when the spec lists it as a query once the marker is
    dropped (``getActive`` for ``_getActive``) or when it reads like one.
    """
    spec_names = {q.name.removeprefix(QUERY_MARKER) for q in spec.queries}
    return [
        m
        for m in module.methods
        if not m.is_query and (m.name in spec_names or looks_like_query(m))
    ]


class QueryRules:
    """Checks that specified queries exist, return arrays and are marked."""

    def validate(
        self, spec: ConceptSpecification, module: ImplementationModule
    ) -> list[ValidationIssue]:
        issues = []
        impl_file = str(module.source_location)
        implemented = {m.name: m for m in module.queries}

        for spec_query in spec.queries:
            method = implemented.get(spec_query.name)
            if method is None:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.MISSING_QUERY,
                        message=f"Missing query: {spec_query.name}",
                        description=f"Query '{spec_query.name}' is specified but not implemented",
                        location=IssueLocation(file=impl_file),
                        suggestion=f"Implement the '{spec_query.name}' method",
                        related=RelatedReference(
                            file=str(spec.source_location),
                            line=spec_query.line_number,
                            excerpt=spec_query.signature_text,
                        ),
                    )
                )
            elif not returns_sequence(method.return_type_text):
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.RETURN_TYPE_MISMATCH,
                        message=f"Query '{method.name}' should return an array",
                        description="Queries must return arrays to enable declarative composition",
                        location=IssueLocation(file=impl_file, line=method.line_number),
                        suggestion="Change return type to include '[]' or 'Array<T>'",
                    )
                )

        for method in misnamed_queries(spec, module):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    category=IssueCategory.NAMING_CONVENTION,
                    message=f"Query '{method.name}' should start with '{QUERY_MARKER}'",
                    description="All query methods must start with an underscore to distinguish them from actions",
                    location=IssueLocation(file=impl_file, line=method.line_number),
                    suggestion=f"Rename to '{QUERY_MARKER}{method.name}'",
                )
            )

        return issues
