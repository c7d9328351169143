"""Tests for the rule checks comparing specifications with implementations."""

from pathlib import Path

import pytest

from validate_concepts.models import IssueCategory, IssueSeverity
from validate_concepts.rules import ActionRules, NamingRules, QueryRules, StructureRules
from validate_concepts.rules.naming_rules import strip_concept_suffix
from validate_concepts.source_extractor import SourceExtractor
from validate_concepts.spec_parser import ConceptSpecParser


@pytest.fixture
def parser():
    return ConceptSpecParser()


@pytest.fixture
def extractor():
    return SourceExtractor()


@pytest.fixture
def team(parser, extractor, team_spec_text, team_impl_text):
    spec = parser.parse_one(team_spec_text, Path("specs/team.concept"))
    module = extractor.analyze_source(team_impl_text, Path("concepts/team.ts"))
    return spec, module


def test_aligned_concept_passes_every_rule(parser, extractor, team):
    """Test that no rule fires on a fully aligned concept."""
    spec, module = team
    rules = [StructureRules(parser, extractor), ActionRules(extractor), QueryRules(), NamingRules()]

    assert [issue for rule in rules for issue in rule.validate(spec, module)] == []


def test_missing_action(extractor, team):
    """Test that a specified action with no method is an error pointing at the spec."""
    spec, module = team
    module.methods = [m for m in module.methods if m.name != "addMember"]

    issues = ActionRules(extractor).validate(spec, module)

    assert len(issues) == 1
    issue = issues[0]
    assert issue.severity == IssueSeverity.ERROR
    assert issue.category == IssueCategory.MISSING_ACTION
    assert issue.message == "Missing action: addMember"
    assert issue.related.file == "specs/team.concept"
    assert issue.related.line == 14


def test_unspecified_action(extractor, team):
    """Test that an extra public method is a signature warning."""
    spec, module = team
    spec.actions = [a for a in spec.actions if a.name != "addMember"]

    issues = ActionRules(extractor).validate(spec, module)

    assert [(i.severity, i.category, i.message) for i in issues] == [
        (IssueSeverity.WARNING, IssueCategory.SIGNATURE_MISMATCH, "Unspecified action: addMember")
    ]


def test_action_without_error_result_and_sync_persistence(parser, extractor):
    """Test error-handling warning and async hint on a matched action."""
    spec = parser.parse_one(
        "concept Tag\nactions\n    label(item: Item) -> {tag: Tag}\n", Path("tag.concept")
    )
    module = extractor.analyze_source(
        "export class TagConcept {\n"
        "  label(input: { item: string }) {\n"
        "    return this.prisma.tag.create({ data: input });\n"
        "  }\n"
        "}\n",
        Path("tag.ts"),
    )

    issues = ActionRules(extractor).validate(spec, module)

    assert [(i.severity, i.category) for i in issues] == [
        (IssueSeverity.WARNING, IssueCategory.MISSING_ERROR_HANDLING),
        (IssueSeverity.INFO, IssueCategory.SIGNATURE_MISMATCH),
    ]
    assert issues[1].location.line == 2


def test_missing_query(team):
    spec, module = team
    module.methods = [m for m in module.methods if not m.is_query]

    issues = QueryRules().validate(spec, module)

    assert [(i.category, i.message) for i in issues] == [
        (IssueCategory.MISSING_QUERY, "Missing query: _getByOwner")
    ]


def test_query_must_return_array(team):
    spec, module = team
    module.queries[0].return_type_text = "any"

    issues = QueryRules().validate(spec, module)

    assert len(issues) == 1
    assert issues[0].category == IssueCategory.RETURN_TYPE_MISMATCH
    assert issues[0].severity == IssueSeverity.ERROR


def test_unmarked_query_yields_one_naming_error(parser, extractor):
    """Test that getActive listed as _getActive gets exactly one naming error."""
    spec = parser.parse_one(
        "concept Session\nqueries\n    _getActive() -> Session[]\n", Path("session.concept")
    )
    module = extractor.analyze_source(
        "export class SessionConcept {\n  async getActive(): Promise<any[]> {\n    return [];\n  }\n}\n",
        Path("session.ts"),
    )

    issues = QueryRules().validate(spec, module) + ActionRules(extractor).validate(spec, module)

    naming = [i for i in issues if i.category == IssueCategory.NAMING_CONVENTION]
    assert len(naming) == 1
    assert naming[0].severity == IssueSeverity.ERROR
    assert naming[0].suggestion == "Rename to '_getActive'"
    assert not any(i.message.startswith("Unspecified action") for i in issues)


def test_structure_rules_map_defects(parser, extractor):
    """Test that spec defects are errors and implementation defects are warnings."""
    spec = parser.parse_one("concept Empty\n", Path("empty.concept"))
    module = extractor.analyze_source(
        'import { User } from "./user";\nexport class EmptyConcept {}\n',
        Path("empty.ts"),
        sibling_names={"empty", "user"},
    )

    issues = StructureRules(parser, extractor).validate(spec, module)

    errors = [i for i in issues if i.severity == IssueSeverity.ERROR]
    warnings = [i for i in issues if i.severity == IssueSeverity.WARNING]
    assert {i.category for i in errors} == {IssueCategory.STATE_MISMATCH}
    assert [i.message for i in errors] == [
        "Purpose is missing",
        "State specification is missing",
        "No actions defined",
    ]
    assert [i.category for i in warnings] == [IssueCategory.DEPENDENCY_VIOLATION]


def test_naming_rules(team):
    spec, module = team
    module.exposed_type_name = "Teams"

    issues = NamingRules().validate(spec, module)

    assert len(issues) == 1
    assert issues[0].severity == IssueSeverity.WARNING
    assert issues[0].message == "Class name should be 'TeamConcept'"


def test_naming_rules_accept_suffixed_spec_name(team):
    """Test that a spec already named TeamConcept expects TeamConcept."""
    spec, module = team
    spec.name = "TeamConcept"

    assert NamingRules().validate(spec, module) == []


def test_strip_concept_suffix():
    assert strip_concept_suffix("TeamConcept") == "Team"
    assert strip_concept_suffix("teamconcept") == "team"
    assert strip_concept_suffix("Concept") == "Concept"
    assert strip_concept_suffix("Team") == "Team"
