"""Decision rendering tests."""

from __future__ import annotations

import json

import click

from issue_guards.guards.planner import PlannerDecision
from issue_guards.guards.remediation import RemediationDecision
from issue_guards.output import render_human, render_json


def test_render_json_uses_camel_case_keys() -> None:
    decision = PlannerDecision(
        should_plan=False,
        issue_number=4,
        issue_title="Something",
        reason="Blocked by label(s): duplicate, invalid.",
        blocked_labels=("duplicate", "invalid"),
    )
    payload = json.loads(render_json(decision))
    assert set(payload) == {
        "shouldPlan",
        "issueNumber",
        "issueTitle",
        "reason",
        "existingPlan",
        "blockedLabels",
    }
    assert payload["blockedLabels"] == ["duplicate", "invalid"]


def test_render_human_lists_blockers_and_truncates_title() -> None:
    decision = PlannerDecision(
        should_plan=True,
        issue_number=4,
        issue_title="x" * 200,
        reason="Issue approved for planning.",
    )
    output = click.unstyle(render_human(decision))
    assert "Plan guard: GO" in output
    assert "x" * 69 + "..." in output
    assert "x" * 70 not in output


def test_render_human_remediation_attempts() -> None:
    decision = RemediationDecision(
        should_remediate=False,
        attempt_number=2,
        max_attempts=5,
        strictness="standard",
        reason="All findings are security-related and require human review.",
        security_blockers=("[blocking] src/auth.py:1 — Authentication bypass",),
    )
    output = click.unstyle(render_human(decision))
    assert "Remediate guard: SKIP" in output
    assert "Attempt: 2/5 (standard)" in output
    assert "Security blockers:" in output
    assert "- [blocking] src/auth.py:1 — Authentication bypass" in output
