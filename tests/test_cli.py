"""CLI tests driven through the workflow environment variables."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from issue_guards import __version__
from issue_guards.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "ISSUE_JSON",
        "EVENT_NAME",
        "PR_NUMBER",
        "FINDINGS",
        "STRICTNESS",
        "GITHUB_REPOSITORY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _issue_json(labels: list[str], **extra: object) -> str:
    payload = {
        "number": 10,
        "title": "Add dark mode",
        "body": "Implement dark mode toggle",
        "user": {"login": "octocat"},
        "labels": [{"name": name} for name in labels],
    }
    payload.update(extra)
    return json.dumps(payload)


def test_root_help_lists_guards() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("triage", "plan", "implement", "remediate", "self-test"):
        assert command in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_triage_reads_event_from_environment() -> None:
    result = runner.invoke(
        app,
        ["triage"],
        env={"ISSUE_JSON": _issue_json(["needs-more-info"]), "EVENT_NAME": "edited"},
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["shouldTriage"] is True
    assert payload["isRetriage"] is True


def test_plan_without_repository_skips_lookup() -> None:
    result = runner.invoke(app, ["plan"], env={"ISSUE_JSON": _issue_json(["agent:plan"])})
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["shouldPlan"] is True
    assert payload["existingPlan"] is False


def test_implement_emits_branch_name() -> None:
    result = runner.invoke(
        app,
        [
            "implement",
            "--skip-pr-check",
            "--issue-json",
            _issue_json(["agent:implement", "wontfix"]),
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["shouldImplement"] is False
    assert payload["branchName"] == "cf/add-dark-mode-10"
    assert payload["blockedLabels"] == ["wontfix"]


def test_human_format() -> None:
    result = runner.invoke(
        app, ["plan", "--format", "human", "--issue-json", _issue_json(["agent:plan", "duplicate"])]
    )
    assert result.exit_code == 0
    assert "Plan guard: SKIP" in result.stdout
    assert "- duplicate" in result.stdout


@pytest.mark.parametrize("issue_json", ["{not json", "{}", '{"number": 0, "title": "x"}'])
def test_malformed_issue_payload_fails(issue_json: str) -> None:
    result = runner.invoke(app, ["triage"], env={"ISSUE_JSON": issue_json})
    assert result.exit_code == 1
    assert "ERROR:" in result.output
    assert "shouldTriage" not in result.output


def test_remediate_reads_findings_and_strictness() -> None:
    findings = [
        {
            "severity": "warning",
            "file": "src/engine.py",
            "line": 10,
            "message": "SQL injection risk",
        },
        {"severity": "suggestion", "file": "package.json", "line": None, "message": "Sort keys"},
        {"severity": "blocking", "file": "src/parser.py", "line": 42, "message": "Unhandled error"},
    ]
    result = runner.invoke(
        app,
        ["remediate"],
        env={"PR_NUMBER": "17", "FINDINGS": json.dumps(findings), "STRICTNESS": "strict"},
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["shouldRemediate"] is True
    assert payload["attemptNumber"] == 1
    assert payload["maxAttempts"] == 3
    assert payload["strictness"] == "strict"
    assert len(payload["securityBlockers"]) == 1
    assert len(payload["skippedFindings"]) == 1


def test_remediate_requires_pr_number() -> None:
    result = runner.invoke(app, ["remediate"], env={"FINDINGS": "[]"})
    assert result.exit_code == 1
    assert "PR_NUMBER" in result.output


def test_remediate_rejects_bad_findings() -> None:
    result = runner.invoke(app, ["remediate", "--pr-number", "3", "--findings", "[oops"])
    assert result.exit_code == 1
    assert "FINDINGS" in result.output


def test_config_file_overrides_rules(tmp_path: Path) -> None:
    (tmp_path / ".issue-guards.toml").write_text(
        '[planner]\ntrigger_label = "bot:plan"\n', encoding="utf-8"
    )
    result = runner.invoke(
        app, ["plan", "--repo", str(tmp_path), "--issue-json", _issue_json(["bot:plan"])]
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["shouldPlan"] is True


def test_invalid_config_fails(tmp_path: Path) -> None:
    (tmp_path / ".issue-guards.toml").write_text("format = 'xml'\n", encoding="utf-8")
    result = runner.invoke(
        app, ["triage", "--repo", str(tmp_path), "--issue-json", _issue_json([])]
    )
    assert result.exit_code == 1
    assert "format must be one of" in result.output


def test_self_test_command_passes() -> None:
    result = runner.invoke(app, ["self-test"])
    assert result.exit_code == 0
    assert "self-checks passed" in result.stdout


def test_self_test_ignores_custom_repository_labels(tmp_path: Path) -> None:
    (tmp_path / ".issue-guards.toml").write_text(
        '[planner]\ntrigger_label = "bot:plan"\n\n[implementer]\ntrigger_label = "bot:build"\n',
        encoding="utf-8",
    )
    result = runner.invoke(app, ["self-test"])
    assert result.exit_code == 0
    assert "self-checks passed" in result.stdout


def test_config_init_then_config(tmp_path: Path) -> None:
    out = tmp_path / ".issue-guards.toml"
    init = runner.invoke(app, ["config-init", "--out", str(out)])
    assert init.exit_code == 0
    assert out.exists()

    again = runner.invoke(app, ["config-init", "--out", str(out)])
    assert again.exit_code != 0

    shown = runner.invoke(app, ["config", "--repo", str(tmp_path)])
    assert shown.exit_code == 0
    payload = json.loads(shown.stdout)
    assert payload["source"] == str(out.resolve())
    assert payload["planner"]["trigger_label"] == "agent:plan"
