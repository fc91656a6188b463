"""Triage gate for newly opened or edited issues."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from issue_guards.config import DEFAULT_RULES, GuardRules, TriageRules
from issue_guards.guards.base import PULL_REQUEST_REASON, matching_labels
from issue_guards.models import IssuePayload


@dataclass(frozen=True, slots=True)
class TriageDecision:
    """Whether an issue event should be sent to automated triage."""

    guard: ClassVar[str] = "triage"

    should_triage: bool
    issue_number: int
    issue_title: str
    reason: str
    is_retriage: bool = False
    skip_reason: str = ""
    bot_detection: str | None = None

    @property
    def approved(self) -> bool:
        return self.should_triage

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldTriage": self.should_triage,
            "issueNumber": self.issue_number,
            "issueTitle": self.issue_title,
            "reason": self.reason,
            "isRetriage": self.is_retriage,
            "skipReason": self.skip_reason,
            "botDetection": self.bot_detection,
        }


def detect_bot(login: str, user_type: str | None, rules: TriageRules) -> str | None:
    """Return which bot check matched (``user_type`` or ``login_suffix:<s>``), else None."""
    if user_type == rules.bot_user_type:
        return "user_type"
    lowered = login.lower()
    for suffix in rules.bot_suffixes:
        if lowered.endswith(suffix.lower()):
            return f"login_suffix:{suffix}"
    return None


def is_bot(login: str, user_type: str | None = None, rules: TriageRules | None = None) -> bool:
    return detect_bot(login, user_type, rules or DEFAULT_RULES.triage) is not None


def is_already_triaged(
    labels: tuple[str, ...] | list[str], rules: TriageRules | None = None
) -> bool:
    effective = rules or DEFAULT_RULES.triage
    return bool(matching_labels(labels, effective.triaged_labels))


def should_retriage(
    labels: tuple[str, ...] | list[str], event_name: str, rules: TriageRules | None = None
) -> bool:
    effective = rules or DEFAULT_RULES.triage
    if event_name != "edited":
        return False
    return effective.retriage_label in labels


def evaluate_triage(
    issue: IssuePayload,
    event_name: str,
    rules: GuardRules = DEFAULT_RULES,
) -> TriageDecision:
    """Decide whether ``issue`` should be triaged for the given event.

    Checks run in strict precedence: pull requests, bot authors, then the
    event-specific already-triaged logic. Events other than ``edited`` are
    treated like ``opened``.
    """
    triage_rules = rules.triage
    labels = issue.labels

    def decide(should_triage: bool, reason: str, **extra: Any) -> TriageDecision:
        return TriageDecision(
            should_triage=should_triage,
            issue_number=issue.number,
            issue_title=issue.title,
            reason=reason,
            **extra,
        )

    if issue.is_pull_request:
        return decide(False, PULL_REQUEST_REASON, skip_reason="pull_request")

    detection = detect_bot(issue.user.login, issue.user.type, triage_rules)
    if detection is not None:
        return decide(
            False,
            f"Bot-authored issue ({issue.user.login}, {detection}) — skipping.",
            skip_reason="bot_author",
            bot_detection=detection,
        )

    already_triaged = is_already_triaged(labels, triage_rules)

    if event_name == "edited":
        if should_retriage(labels, event_name, triage_rules):
            return decide(
                True,
                f"Re-triage: issue edited with '{triage_rules.retriage_label}' label present.",
                is_retriage=True,
            )
        if not already_triaged:
            return decide(
                True, "Issue edited but never triaged — proceeding with initial triage."
            )
        return decide(
            False,
            "Edit event on already-triaged issue — skipping.",
            skip_reason="edit_already_triaged",
        )

    if already_triaged:
        return decide(
            False,
            "Issue already has a triage label — skipping.",
            skip_reason="already_triaged",
        )

    return decide(True, "New issue ready for triage.")
