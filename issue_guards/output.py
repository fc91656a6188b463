"""Output rendering for guard decisions."""

from __future__ import annotations

import json

import click

from issue_guards.guards.base import Decision
from issue_guards.text import capitalize, truncate

TITLE_WIDTH = 72


def render_json(decision: Decision) -> str:
    """Render the stable JSON decision record for the workflow."""
    return json.dumps(decision.to_dict(), indent=2, sort_keys=True)


def render_human(decision: Decision) -> str:
    """Render a short terminal summary of a decision."""
    payload = decision.to_dict()
    verdict = click.style("GO", fg="green", bold=True)
    if not decision.approved:
        verdict = click.style("SKIP", fg="yellow", bold=True)

    lines = [f"{capitalize(decision.guard)} guard: {verdict}"]
    if "issueNumber" in payload:
        title = truncate(payload["issueTitle"], TITLE_WIDTH)
        lines.append(f"Issue #{payload['issueNumber']}: {title}")
    if payload.get("branchName"):
        lines.append(f"Branch: {payload['branchName']}")
    if "attemptNumber" in payload:
        lines.append(
            f"Attempt: {payload['attemptNumber']}/{payload['maxAttempts']} "
            f"({payload['strictness']})"
        )
    lines.append(f"Reason: {decision.reason}")

    for heading, key in (
        ("Blocked labels", "blockedLabels"),
        ("Security blockers", "securityBlockers"),
        ("Skipped findings", "skippedFindings"),
    ):
        items = payload.get(key) or []
        if items:
            lines.append(click.style(f"{heading}:", bold=True))
            lines.extend(f"- {item}" for item in items)
    return "\n".join(lines)
