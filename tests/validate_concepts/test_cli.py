"""Tests for the validate-concepts command line."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from validate_concepts.cli import main


@pytest.fixture(autouse=True)
def no_credential(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def validate(project, *extra):
    return main(["validate", "--project", str(project), *extra])


def test_validate_clean_project(team_project, capsys):
    assert validate(team_project) == 0

    assert "Team" in capsys.readouterr().out


def test_validate_with_errors(session_project):
    assert validate(session_project) == 1


def test_strict_mode_fails_on_warnings(project, team_spec_text, team_impl_text):
    (project / "specs" / "team.concept").write_text(team_spec_text)
    (project / "concepts" / "team.ts").write_text(
        team_impl_text.replace("class TeamConcept", "class Teams")
    )

    assert validate(project) == 0
    assert validate(project, "--strict") == 1


def test_strict_mode_from_config_file(project, team_spec_text, team_impl_text):
    (project / "specs" / "team.concept").write_text(team_spec_text)
    (project / "concepts" / "team.ts").write_text(
        team_impl_text.replace("class TeamConcept", "class Teams")
    )
    (project / "concept-validation.config.json").write_text(json.dumps({"strict_mode": True}))

    assert validate(project) == 1


def test_all_formats_write_reports(team_project, tmp_path):
    output = tmp_path / "reports"

    assert validate(team_project, "--format", "all", "--output", str(output)) == 0

    assert (output / "validation-report.html").exists()
    assert (output / "validation-report.md").exists()
    data = json.loads((output / "validation-report.json").read_text())
    assert data["summary"]["conceptsAnalyzed"] == 1


def test_format_alias(team_project, tmp_path):
    output = tmp_path / "reports"

    assert validate(team_project, "--format", "json", "--output", str(output)) == 0

    assert (output / "validation-report.json").exists()
    assert not (output / "validation-report.html").exists()


def test_custom_directories(tmp_path, team_spec_text, team_impl_text):
    (tmp_path / "docs").mkdir()
    (tmp_path / "src").mkdir()
    (tmp_path / "docs" / "team.concept").write_text(team_spec_text)
    (tmp_path / "src" / "team.ts").write_text(team_impl_text)

    assert validate(tmp_path, "--specs", "docs", "--concepts", "src", "--workers", "2") == 0


def test_missing_directory_is_a_config_failure(tmp_path, capsys):
    assert validate(tmp_path) == 1

    assert "does not exist" in " ".join(capsys.readouterr().err.split())


def test_wrongly_typed_config_value(team_project, capsys):
    (team_project / "concept-validation.config.json").write_text(json.dumps({"workers": "x"}))

    assert validate(team_project) == 1

    assert "'workers' must be of type int" in " ".join(capsys.readouterr().err.split())


def test_unknown_concept(team_project, capsys):
    assert validate(team_project, "--concept", "Nope") == 1

    assert "not found" in capsys.readouterr().err


def test_single_concept(team_project, session_project):
    assert validate(team_project, "--concept", "team") == 0


def test_ai_without_key_still_validates(team_project):
    assert validate(team_project, "--ai") == 0


@patch("requests.Session.post")
def test_ai_with_failing_service(mock_post, team_project, tmp_path):
    mock_post.side_effect = requests.exceptions.ConnectionError("down")
    output = tmp_path / "reports"

    code = validate(team_project, "--ai", "--api-key", "sk-test", "-f", "structured", "-o", str(output))

    assert code == 0
    report = json.loads((output / "validation-report.json").read_text())["reports"][0]
    assert report["aiAnalysis"]["conceptPurposeAlignment"] == "AI analysis unavailable"


def test_init_writes_config(tmp_path, capsys):
    assert main(["init", "--project", str(tmp_path)]) == 0

    assert (tmp_path / "concept-validation.config.json").exists()
    assert "Configuration file created" in capsys.readouterr().out


def test_init_refuses_to_overwrite(tmp_path):
    assert main(["init", "--project", str(tmp_path)]) == 0
    assert main(["init", "--project", str(tmp_path)]) == 1
    assert main(["init", "--project", str(tmp_path), "--force"]) == 0


def test_analyze_requires_credential(team_project):
    assert main(["analyze", "Team", "purpose", "--project", str(team_project)]) == 1


@patch("requests.Session.post")
def test_analyze_prints_answer(mock_post, team_project, capsys):
    response = Mock()
    response.json.return_value = {"choices": [{"message": {"content": "Serves it well."}}]}
    mock_post.return_value = response

    code = main(
        ["analyze", "team", "purpose", "--project", str(team_project), "--api-key", "sk-test"]
    )

    assert code == 0
    assert "Serves it well." in capsys.readouterr().out


def test_analyze_unknown_concept(team_project):
    args = ["analyze", "Ghost", "state", "--project", str(team_project), "--api-key", "sk-test"]

    assert main(args) == 1


def test_analyze_rejects_unknown_aspect(team_project):
    with pytest.raises(SystemExit):
        main(["analyze", "Team", "speed", "--project", str(team_project)])
