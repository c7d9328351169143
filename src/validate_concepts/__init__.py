"""Validate concept implementations against their specifications."""

from .models import (
    ConceptSpecification,
    ImplementationModule,
    IssueCategory,
    IssueSeverity,
    ValidationIssue,
    ValidationReport,
    ValidationRun,
)
from .source_extractor import SourceExtractor
from .spec_parser import ConceptSpecParser
from .validator import ConceptValidator

__all__ = [
    "ConceptSpecification",
    "ImplementationModule",
    "IssueCategory",
    "IssueSeverity",
    "ValidationIssue",
    "ValidationReport",
    "ValidationRun",
    "SourceExtractor",
    "ConceptSpecParser",
    "ConceptValidator",
]
