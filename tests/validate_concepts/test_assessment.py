"""Tests for the assessment clients and prompt building."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

from validate_concepts.assessment import (
    UNAVAILABLE_NOTE,
    OpenAIAssessmentClient,
    UnavailableAssessmentClient,
    build_assessment_client,
    parse_assessment,
)
from validate_concepts.assessment.openai_client import extract_json_fragment
from validate_concepts.assessment.prompts import build_aspect_prompt, build_review_prompt
from validate_concepts.config import ValidationConfig
from validate_concepts.source_extractor import SourceExtractor
from validate_concepts.spec_parser import ConceptSpecParser


@pytest.fixture
def team(team_spec_text, team_impl_text):
    spec = ConceptSpecParser().parse_one(team_spec_text, Path("team.concept"))
    module = SourceExtractor().analyze_source(team_impl_text, Path("team.ts"))
    return spec, module


@pytest.fixture
def client():
    return OpenAIAssessmentClient(api_key="sk-test", model="gpt-test", base_url="https://llm.local/v1/")


def _reply(content):
    response = Mock()
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


class TestOpenAIAssessmentClient:
    """Tests for the chat-completions client."""

    def test_initialization(self, client):
        assert client.url == "https://llm.local/v1/chat/completions"
        assert client.session.headers["Authorization"] == "Bearer sk-test"

    @patch("requests.Session.post")
    def test_assess_parses_reply(self, mock_post, client, team):
        reply = {
            "alignment": "good",
            "score": 82,
            "purposeAlignment": "Matches the purpose",
            "implementationQuality": "Solid",
            "issues": [{"type": "major", "description": "Too coupled", "suggestion": "Decouple"}],
            "suggestions": ["Add tests"],
        }
        mock_post.return_value = _reply("Here you go:\n" + json.dumps(reply) + "\nThanks")

        assessment = client.assess(*team, related_text="sync code")

        assert assessment.alignment == "good"
        assert assessment.score == 82
        assert assessment.purpose_alignment_note == "Matches the purpose"
        assert [(f.severity, f.suggestion) for f in assessment.issues] == [("major", "Decouple")]
        assert assessment.suggestions == ["Add tests"]

    @patch("requests.Session.post")
    def test_request_payload(self, mock_post, client, team):
        mock_post.return_value = _reply("{}")

        client.assess(*team)

        args, kwargs = mock_post.call_args
        assert args[0] == "https://llm.local/v1/chat/completions"
        assert kwargs["timeout"] == 60.0
        payload = kwargs["json"]
        assert payload["model"] == "gpt-test"
        assert payload["temperature"] == 0.1
        assert payload["max_tokens"] == 2000
        assert "Name: Team" in payload["messages"][1]["content"]

    @patch("requests.Session.post")
    def test_timeout_falls_back(self, mock_post, client, team):
        mock_post.side_effect = requests.exceptions.Timeout("slow")

        assessment = client.assess(*team)

        assert assessment.purpose_alignment_note == UNAVAILABLE_NOTE
        assert assessment.implementation_quality_note == UNAVAILABLE_NOTE

    @patch("requests.Session.post")
    def test_http_error_falls_back(self, mock_post, client, team):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("401")
        mock_post.return_value = response

        assert client.assess(*team).purpose_alignment_note == UNAVAILABLE_NOTE

    @patch("requests.Session.post")
    def test_empty_reply_falls_back(self, mock_post, client, team):
        mock_post.return_value = _reply("")

        assert client.assess(*team).purpose_alignment_note == UNAVAILABLE_NOTE

    @patch("requests.Session.post")
    def test_unexpected_shape_falls_back(self, mock_post, client, team):
        response = Mock()
        response.json.return_value = {"choices": []}
        mock_post.return_value = response

        assert client.assess(*team).purpose_alignment_note == UNAVAILABLE_NOTE

    @patch("validate_concepts.assessment.openai_client.parse_assessment")
    @patch("requests.Session.post")
    def test_unnormalizable_reply_keeps_raw_text(self, mock_post, mock_parse, client, team):
        mock_post.return_value = _reply('{"alignment": "good"}')
        mock_parse.side_effect = TypeError("bad field")

        assessment = client.assess(*team)

        assert assessment.purpose_alignment_note == '{"alignment": "good"}'
        assert assessment.implementation_quality_note == "Unable to parse detailed analysis"

    @patch("requests.Session.post")
    def test_assess_aspect(self, mock_post, client, team):
        mock_post.return_value = _reply("Independent enough.")

        answer = client.assess_aspect(*team, "independence")

        assert answer == "Independent enough."
        assert mock_post.call_args.kwargs["json"]["max_tokens"] == 500

    @patch("requests.Session.post")
    def test_assess_aspect_falls_back(self, mock_post, client, team):
        mock_post.side_effect = requests.exceptions.ConnectionError()

        assert client.assess_aspect(*team, "queries") == "Failed to analyze queries"


class TestParseAssessment:
    """Tests for reply normalization."""

    def test_plain_text_reply(self):
        text = "No JSON here. " * 30

        assessment = parse_assessment(text)

        assert assessment.purpose_alignment_note == text[:200]
        assert assessment.implementation_quality_note == "Unable to parse detailed analysis"

    def test_defaults_for_missing_fields(self):
        assessment = parse_assessment('{"issues": [{"type": "blocker", "description": "x"}]}')

        assert assessment.alignment == "fair"
        assert assessment.score == 50
        assert assessment.purpose_alignment_note == "No analysis provided"
        assert assessment.issues[0].severity == "minor"

    def test_score_is_clamped(self):
        assert parse_assessment('{"score": 140}').score == 100
        assert parse_assessment('{"score": -3}').score == 0

    def test_score_out_of_float_range(self):
        assert parse_assessment('{"score": 1e400}').score == 50
        assert parse_assessment('{"score": "high"}').score == 50

    @pytest.mark.parametrize(
        "reply",
        [
            '{"suggestions": 3}',
            '{"suggestions": "add docs"}',
            '{"issues": true}',
            '{"issues": {"type": "major"}}',
        ],
    )
    def test_non_list_fields_are_ignored(self, reply):
        assessment = parse_assessment(reply)

        assert assessment.issues == []
        assert assessment.suggestions == []

    def test_extract_json_fragment_handles_braces_in_strings(self):
        text = 'prefix {"a": "}{", "b": {"c": 1}} suffix {"d": 2}'

        assert extract_json_fragment(text) == '{"a": "}{", "b": {"c": 1}}'
        assert extract_json_fragment("none") is None


class TestFallbackAndFactory:
    """Tests for the offline client and client construction."""

    def test_unavailable_client(self, team):
        client = UnavailableAssessmentClient()

        assessment = client.assess(*team)

        assert assessment.purpose_alignment_note == UNAVAILABLE_NOTE
        assert assessment.issues == []
        assert len(assessment.suggestions) == 1
        assert client.assess_aspect(*team, "state") == "Failed to analyze state"

    def test_build_client_disabled(self):
        assert build_assessment_client(ValidationConfig()) is None

    def test_build_client_enabled(self):
        config = ValidationConfig(
            enable_assessment=True, assessment_credential="sk-x", assessment_model="gpt-4o"
        )

        client = build_assessment_client(config)

        assert isinstance(client, OpenAIAssessmentClient)
        assert client.model == "gpt-4o"


class TestPrompts:
    """Tests for prompt text."""

    def test_review_prompt_includes_both_sides(self, team):
        spec, module = team
        extractor = SourceExtractor()
        complexity = {m.name: extractor.complexity_of(m) for m in module.methods}

        prompt = build_review_prompt(spec, module, "syncs here", complexity)

        assert "Purpose: group users so they can collaborate on projects" in prompt
        assert "Class: TeamConcept" in prompt
        assert "- create(name: string, owner: string)" in prompt
        assert "## SYNCHRONIZATION CODE:\nsyncs here" in prompt
        assert "Dependencies: None" in prompt

    def test_aspect_prompt(self, team):
        prompt = build_aspect_prompt(*team, "queries")

        assert "_getByOwner" in prompt

    def test_unknown_aspect(self, team):
        with pytest.raises(ValueError, match="Unknown aspect"):
            build_aspect_prompt(*team, "performance")
