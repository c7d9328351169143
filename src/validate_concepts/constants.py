"""Shared constants for the validate_concepts module."""

# Queries are name-marked with a leading underscore
QUERY_MARKER = "_"

# Implementation classes are named <ConceptName><CONCEPT_SUFFIX>
CONCEPT_SUFFIX = "Concept"

# Sentinel used in reports for the side of a pairing that does not exist
MISSING = "MISSING"

SPEC_EXTENSION = ".concept"
IMPL_EXTENSION = ".ts"
RELATED_EXTENSION = ".ts"

# Implementation files that never hold a concept class
IMPL_EXCLUDED_SUFFIXES: tuple[str, ...] = (".d.ts", ".test.ts", ".spec.ts")
IMPL_EXCLUDED_NAMES: set[str] = {"index.ts"}

DEFAULT_PERSISTENCE_HANDLE = "prisma"

# Text that marks an error outcome in a return type or body
ERROR_RESULT_MARKER = "error"

# Verbs that make an un-marked method look like a read operation
READ_VERB_PREFIXES: tuple[str, ...] = ("get", "find", "list", "fetch", "search")

SECTION_HEADERS: set[str] = {
    "purpose",
    "state",
    "actions",
    "queries",
    "operational principle",
}

ASSESSMENT_ASPECTS: tuple[str, ...] = ("purpose", "actions", "queries", "state", "independence")

# Score penalties per issue severity
ERROR_PENALTY = 20
WARNING_PENALTY = 5
INFO_PENALTY = 1

MISSING_IMPLEMENTATION_SCORE = 0
MISSING_SPECIFICATION_SCORE = 60
