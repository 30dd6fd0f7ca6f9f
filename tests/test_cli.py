import json
from pathlib import Path
from typing import Iterator

import pytest
from typer.testing import CliRunner

from pillar.cli import app
from pillar.config.settings import update_global_settings

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.chdir(tmp_path)
    with update_global_settings() as settings:
        old_author = settings.author
        settings.author = "Tester"
    yield tmp_path
    with update_global_settings() as settings:
        settings.author = old_author


def invoke(*args: str):
    result = runner.invoke(app, list(args))
    assert result.exit_code == 0, result.output
    return result


def test_outside_workspace_fails(workspace: Path):
    result = runner.invoke(app, ["project", "list"])
    assert result.exit_code == 1
    assert "pillar init" in result.output


def test_init_twice_fails(workspace: Path):
    invoke("init")
    assert (workspace / ".pillar" / "config.yml").is_file()

    result = runner.invoke(app, ["init"])
    assert result.exit_code == 1
    assert "already initialized" in result.output


def test_init_with_path(workspace: Path):
    invoke("init", "--path", "tracker")
    invoke("project", "create", "backend")
    assert (workspace / "tracker" / "backend" / "README.md").is_file()


def test_project_issue_comment_workflow(workspace: Path):
    invoke("init")
    result = invoke("project", "create", "backend", "--priority", "high")
    assert "Created project: backend" in result.output

    invoke("milestone", "create", "backend", "v1.0", "--date", "2025-03-01")
    result = invoke(
        "issue",
        "create",
        "backend",
        "Fix login bug",
        "-p",
        "urgent",
        "-m",
        "v1.0",
        "-t",
        "auth,bug",
    )
    assert "backend/001" in result.output
    assert (workspace / "backend" / "issues" / "001-fix-login-bug.md").is_file()

    invoke("issue", "edit", "backend/001", "--status", "in-progress")
    result = invoke("issue", "list", "--status", "in-progress")
    assert "Fix login bug" in result.output
    assert "Tags: auth, bug" in result.output

    result = invoke("comment", "add", "issue", "backend", "Reproduced on staging.", "001")
    assert "Added comment by Tester" in result.output

    result = invoke("comment", "list", "issue", "backend", "001")
    assert "Tester" in result.output
    assert "Reproduced on staging." in result.output

    text = (workspace / "backend" / "issues" / "001-fix-login-bug.md").read_text()
    assert text.startswith("---\n")
    assert "status: in-progress" in text
    assert "## Comments\n\n### [" in text
    assert "] - Tester\nReproduced on staging.\n" in text

    result = invoke("status")
    assert "Fix login bug" in result.output

    result = invoke("board", "backend")
    assert "In Progress (1)" in result.output

    result = invoke("search", "staging", "--type", "issue")
    assert "backend/001" in result.output


def test_project_comment_without_identifier(workspace: Path):
    invoke("init")
    invoke("project", "create", "backend")
    invoke("comment", "add", "project", "backend", "Kickoff done.")

    result = invoke("comment", "list", "project", "backend")
    assert "Kickoff done." in result.output


def test_invalid_values_fail(workspace: Path):
    invoke("init")
    invoke("project", "create", "backend")

    result = runner.invoke(app, ["issue", "create", "backend", "Thing", "-p", "critical"])
    assert result.exit_code == 1
    assert "Invalid priority" in result.output

    result = runner.invoke(app, ["issue", "show", "backend-001"])
    assert result.exit_code == 1

    result = runner.invoke(app, ["issue", "show", "backend/009"])
    assert result.exit_code == 1


def test_milestone_list_by_project(workspace: Path):
    invoke("init")
    invoke("project", "create", "backend")
    invoke("project", "create", "frontend")
    invoke("milestone", "create", "backend", "v1.0", "--date", "2025-03-01")
    invoke("milestone", "create", "frontend", "Beta")

    result = invoke("milestone", "list", "backend")
    assert "v1.0" in result.output
    assert "Beta" not in result.output

    result = invoke("milestone", "list")
    assert "v1.0" in result.output
    assert "Beta" in result.output


def test_export(workspace: Path):
    invoke("init")
    invoke("project", "create", "backend")
    invoke("issue", "create", "backend", "First")

    result = invoke("export", "--format", "json", "--type", "issue")
    issues = json.loads(result.output)
    assert [i["metadata"]["title"] for i in issues] == ["First"]

    invoke("export", "--format", "csv", "--type", "issue", "--output", "out/issues.csv")
    assert (workspace / "out" / "issues.csv").read_text().startswith("title,status")

    result = runner.invoke(app, ["export", "--format", "csv"])
    assert result.exit_code == 1


def test_prompts_and_version():
    result = invoke("prompts")
    assert "pillar" in result.output

    result = invoke("--version")
    assert result.output.startswith("pillar ")
