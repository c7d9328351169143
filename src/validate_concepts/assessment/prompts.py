"""Prompt text sent to the assessment service."""

import json

from ..constants import ASSESSMENT_ASPECTS
from ..models import ComplexityMetrics, ConceptSpecification, ImplementationModule, ImplMethod

SYSTEM_PROMPT = """
You are an expert in Concept Design, a modular software architecture approach where applications are built from independent concepts connected by synchronizations.

Key Concept Design Principles:
1. Single Purpose: Each concept serves exactly one purpose
2. Independence: Concepts cannot import or reference other concepts
3. Reusability: Concepts should be highly reusable across applications
4. State Isolation: Each concept manages its own state independently

Action Rules:
- Take exactly one input object and return one output object
- Errors are not special - they're just another output pattern with an 'error' key
- Must specify all possible outcomes and transitions
- Only actions can modify state or perform side-effects

Query Rules:
- Must be side-effect free and return arrays
- Must start with underscore '_' to distinguish from actions
- Always return arrays of objects to enable declarative composition
- Provide the only way to read concept state in synchronizations

Your task is to analyze how well a TypeScript implementation aligns with its concept specification, identifying violations of these principles and suggesting improvements.
""".strip()

_ASPECT_FOCUS = {
    "purpose": "Focus on whether the implementation effectively serves the stated concept purpose.",
    "actions": "Focus on action implementation completeness and signature correctness.",
    "queries": "Focus on query naming conventions and return type compliance.",
    "state": "Focus on state management and independence violations.",
    "independence": "Focus on concept independence and dependency violations.",
}

_RESPONSE_FORMAT = """
Please provide a detailed analysis in the following JSON format:
{
  "alignment": "excellent|good|fair|poor",
  "score": 0-100,
  "purposeAlignment": "description of how well the implementation serves the stated purpose",
  "implementationQuality": "assessment of code quality and concept design adherence",
  "issues": [
    {
      "type": "critical|major|minor",
      "description": "description of the issue",
      "suggestion": "how to fix it"
    }
  ],
  "suggestions": ["list of improvement suggestions"]
}
""".strip()


def aspect_system_prompt(aspect: str) -> str:
    return f"You are an expert in Concept Design. {_ASPECT_FOCUS.get(aspect, '')}".strip()


def build_review_prompt(
    spec: ConceptSpecification,
    module: ImplementationModule,
    related_text: str | None,
    complexity: dict[str, ComplexityMetrics],
) -> str:
    """Build the full alignment-review prompt.

    Args:
        spec: Parsed specification
        module: Extracted implementation
        related_text: Synchronization code mentioning the concept, if any
        complexity: Complexity figures keyed by method name

    Returns:
        Prompt text
    """
    actions = "\n".join(
        f"- {a.name}: {a.signature_text}\n  Description: {a.description}" for a in spec.actions
    )
    queries = "\n".join(
        f"- {q.name}: {q.signature_text}\n  Description: {q.description}" for q in spec.queries
    )
    methods = "\n".join(_describe_method(m, complexity.get(m.name)) for m in module.methods)
    dependencies = ", ".join(module.dependencies) or "None"

    sections = [
        "Please analyze the alignment between this concept specification and its TypeScript implementation:",
        "## CONCEPT SPECIFICATION:",
        f"File: {spec.source_location}\nName: {spec.name}",
        f"Purpose: {spec.purpose}",
        f"State:\n{json.dumps(spec.state, indent=2)}",
        f"Actions:\n{actions}",
        f"Queries:\n{queries}",
        f"Operational Principle: {spec.operational_principle}",
        "## TYPESCRIPT IMPLEMENTATION:",
        f"File: {module.source_location}\nClass: {module.exposed_type_name}",
        f"Methods:\n{methods}",
        f"Dependencies: {dependencies}",
    ]
    if related_text:
        sections.append(f"## SYNCHRONIZATION CODE:\n{related_text}")
    sections.append(_RESPONSE_FORMAT)

    return "\n\n".join(sections)


def build_aspect_prompt(
    spec: ConceptSpecification, module: ImplementationModule, aspect: str
) -> str:
    """Build the narrower prompt for one aspect.

    Raises:
        ValueError: If aspect is not one of ASSESSMENT_ASPECTS
    """
    if aspect not in ASSESSMENT_ASPECTS:
        raise ValueError(f"Unknown aspect '{aspect}'. Expected one of: {', '.join(ASSESSMENT_ASPECTS)}")

    dependencies = ", ".join(module.dependencies) or "None"

    if aspect == "purpose":
        return (
            f"Concept Purpose: {spec.purpose}\n"
            f"Implementation Methods: {', '.join(m.name for m in module.methods)}\n\n"
            "Does the implementation effectively serve the stated purpose? "
            "Explain how each method contributes to or detracts from the purpose."
        )
    if aspect == "actions":
        specified = "\n".join(f"- {a.name}: {a.signature_text}" for a in spec.actions)
        implemented = "\n".join(f"- {m.name}: {m.return_type_text}" for m in module.actions)
        return (
            f"Specified Actions:\n{specified}\n\n"
            f"Implemented Methods (non-queries):\n{implemented}\n\n"
            "Are all specified actions implemented? Are there extra actions not in the spec? "
            "Do the signatures match?"
        )
    if aspect == "queries":
        specified = "\n".join(f"- {q.name}: {q.signature_text}" for q in spec.queries)
        implemented = "\n".join(f"- {m.name}: {m.return_type_text}" for m in module.queries)
        return (
            f"Specified Queries:\n{specified}\n\n"
            f"Implemented Queries:\n{implemented}\n\n"
            "Are all queries implemented with proper naming (underscore prefix)? "
            "Do they return arrays as required?"
        )
    if aspect == "state":
        return (
            f"Specified State:\n{json.dumps(spec.state, indent=2)}\n\n"
            f"Implementation Dependencies: {dependencies}\n\n"
            "Does the implementation properly manage the specified state? "
            "Are there state dependencies that violate concept independence?"
        )
    return (
        f"Concept Dependencies: {dependencies}\n"
        f"Imports: {', '.join(module.imports)}\n\n"
        "Does this concept maintain independence? Are there violations of the concept "
        "design rule that concepts cannot import other concepts?"
    )


def _describe_method(method: ImplMethod, metrics: ComplexityMetrics | None) -> str:
    params = ", ".join(f"{p.name}: {p.type_text}" for p in method.parameters)
    line = (
        f"- {method.name}({params}): {method.return_type_text}\n"
        f"  Async: {method.is_async}, Query: {method.is_query}"
    )
    if metrics:
        line += (
            f", Lines: {metrics.line_count}, Branches: {metrics.branch_count}, "
            f"External calls: {metrics.external_call_count}"
        )
    return line
