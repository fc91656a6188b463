"""Planner gate for issues labelled for an implementation plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from issue_guards.config import DEFAULT_RULES, GuardRules
from issue_guards.guards.base import PULL_REQUEST_REASON, matching_labels
from issue_guards.lookup import NullStateLookup, StateLookup
from issue_guards.models import IssuePayload


@dataclass(frozen=True, slots=True)
class PlannerDecision:
    """Whether an implementation plan should be posted on an issue."""

    guard: ClassVar[str] = "plan"

    should_plan: bool
    issue_number: int
    issue_title: str
    reason: str
    existing_plan: bool = False
    blocked_labels: tuple[str, ...] = field(default_factory=tuple)

    @property
    def approved(self) -> bool:
        return self.should_plan

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldPlan": self.should_plan,
            "issueNumber": self.issue_number,
            "issueTitle": self.issue_title,
            "reason": self.reason,
            "existingPlan": self.existing_plan,
            "blockedLabels": list(self.blocked_labels),
        }


def evaluate_planner(
    issue: IssuePayload,
    rules: GuardRules = DEFAULT_RULES,
    lookup: StateLookup | None = None,
    *,
    skip_plan_check: bool = False,
) -> PlannerDecision:
    """Decide whether ``issue`` should receive an implementation plan."""
    planner_rules = rules.planner
    base = {"issue_number": issue.number, "issue_title": issue.title}

    if issue.is_pull_request:
        return PlannerDecision(should_plan=False, reason=PULL_REQUEST_REASON, **base)

    if planner_rules.trigger_label not in issue.labels:
        return PlannerDecision(
            should_plan=False,
            reason=f"Missing required label '{planner_rules.trigger_label}'.",
            **base,
        )

    blocked = matching_labels(issue.labels, planner_rules.blocking_labels)
    if blocked:
        return PlannerDecision(
            should_plan=False,
            reason=f"Blocked by label(s): {', '.join(blocked)}.",
            blocked_labels=tuple(blocked),
            **base,
        )

    if not skip_plan_check:
        state = lookup or NullStateLookup()
        if state.find_marker_lines(issue.number, planner_rules.marker_prefix):
            return PlannerDecision(
                should_plan=False,
                reason="A plan has already been posted for this issue.",
                existing_plan=True,
                **base,
            )

    return PlannerDecision(should_plan=True, reason="Issue approved for planning.", **base)
