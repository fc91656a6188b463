"""Implementer gate and branch naming for issues labelled for automation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar

from issue_guards.config import DEFAULT_RULES, GuardRules, ImplementerRules
from issue_guards.guards.base import PULL_REQUEST_REASON, matching_labels
from issue_guards.lookup import NullStateLookup, StateLookup
from issue_guards.models import IssuePayload
from issue_guards.text import slugify

PR_REFERENCE = re.compile(r"PR #(\d+)")


@dataclass(frozen=True, slots=True)
class ImplementerDecision:
    """Whether an issue should be implemented automatically, and on which branch."""

    guard: ClassVar[str] = "implement"

    should_implement: bool
    issue_number: int
    issue_title: str
    branch_name: str
    reason: str
    existing_pr: int | None = None
    blocked_labels: tuple[str, ...] = field(default_factory=tuple)

    @property
    def approved(self) -> bool:
        return self.should_implement

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldImplement": self.should_implement,
            "issueNumber": self.issue_number,
            "issueTitle": self.issue_title,
            "branchName": self.branch_name,
            "reason": self.reason,
            "existingPR": self.existing_pr,
            "blockedLabels": list(self.blocked_labels),
        }


def slugify_title(title: str, rules: ImplementerRules | None = None) -> str:
    """Slugify ``title`` and cap it at the configured length."""
    effective = rules or DEFAULT_RULES.implementer
    return slugify(title)[: effective.slug_max_length]


def derive_branch_name(
    issue_number: int, issue_title: str, rules: ImplementerRules | None = None
) -> str:
    effective = rules or DEFAULT_RULES.implementer
    return f"{effective.branch_prefix}{slugify_title(issue_title, effective)}-{issue_number}"


def extract_pr_number(line: str | None) -> int | None:
    """Pull the ``PR #<digits>`` reference out of a marker comment line."""
    if not line:
        return None
    match = PR_REFERENCE.search(line)
    if match is None:
        return None
    return int(match.group(1)) or None


def first_pr_number(lines: list[str]) -> int | None:
    """Return the first PR reference found across marker lines, skipping lines without one."""
    for line in lines:
        number = extract_pr_number(line)
        if number is not None:
            return number
    return None


def evaluate_implementer(
    issue: IssuePayload,
    rules: GuardRules = DEFAULT_RULES,
    lookup: StateLookup | None = None,
    *,
    skip_pr_check: bool = False,
) -> ImplementerDecision:
    """Decide whether ``issue`` should be implemented automatically.

    The branch name is derived up front and returned on every decision,
    including refusals, so the workflow can log it.
    """
    implementer_rules = rules.implementer
    base = {
        "issue_number": issue.number,
        "issue_title": issue.title,
        "branch_name": derive_branch_name(issue.number, issue.title, implementer_rules),
    }

    if issue.is_pull_request:
        return ImplementerDecision(should_implement=False, reason=PULL_REQUEST_REASON, **base)

    if implementer_rules.trigger_label not in issue.labels:
        return ImplementerDecision(
            should_implement=False,
            reason=f"Missing required label '{implementer_rules.trigger_label}'.",
            **base,
        )

    blocked = matching_labels(issue.labels, implementer_rules.blocking_labels)
    if blocked:
        return ImplementerDecision(
            should_implement=False,
            reason=f"Blocked by label(s): {', '.join(blocked)}.",
            blocked_labels=tuple(blocked),
            **base,
        )

    if not skip_pr_check:
        state = lookup or NullStateLookup()
        marker_lines = state.find_marker_lines(issue.number, implementer_rules.marker_prefix)
        existing_pr = first_pr_number(marker_lines)
        if existing_pr is not None:
            return ImplementerDecision(
                should_implement=False,
                reason=f"A PR already exists for this issue: #{existing_pr}.",
                existing_pr=existing_pr,
                **base,
            )

    return ImplementerDecision(
        should_implement=True, reason="Issue approved for implementation.", **base
    )
