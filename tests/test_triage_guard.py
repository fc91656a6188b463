"""Tests for the issue triage gate."""

from __future__ import annotations

import pytest

from issue_guards.config import DEFAULT_RULES, GuardRules, TriageRules
from issue_guards.guards.triage import (
    detect_bot,
    evaluate_triage,
    is_already_triaged,
    is_bot,
    should_retriage,
)
from tests.helpers_guards import make_issue


@pytest.mark.parametrize(
    ("login", "user_type", "expected"),
    [
        ("dependabot[bot]", None, "login_suffix:[bot]"),
        ("Renovate-Bot", None, "login_suffix:-bot"),
        ("github-actions", "Bot", "user_type"),
        ("octocat", "User", None),
    ],
)
def test_detect_bot_reports_which_check_matched(
    login: str, user_type: str | None, expected: str | None
) -> None:
    assert detect_bot(login, user_type, DEFAULT_RULES.triage) == expected


def test_is_bot_uses_default_rules() -> None:
    assert is_bot("dependabot[bot]")
    assert not is_bot("yasha-dev1")


def test_pull_request_is_never_triaged_even_with_retriage_label() -> None:
    issue = make_issue(labels=["needs-more-info"], pull_request=True, login="dependabot[bot]")
    decision = evaluate_triage(issue, "edited")
    assert decision.should_triage is False
    assert decision.skip_reason == "pull_request"
    assert "Pull request" in decision.reason


def test_bot_author_is_skipped_before_label_checks() -> None:
    decision = evaluate_triage(make_issue(login="ci-bot", labels=["needs-more-info"]), "edited")
    assert decision.should_triage is False
    assert decision.skip_reason == "bot_author"
    assert decision.bot_detection == "login_suffix:-bot"


def test_new_issue_is_triaged() -> None:
    decision = evaluate_triage(make_issue(labels=["bug"]), "opened")
    assert decision.should_triage is True
    assert decision.is_retriage is False
    assert decision.skip_reason == ""


def test_opened_issue_with_agent_implement_is_already_triaged() -> None:
    decision = evaluate_triage(make_issue(labels=["agent:implement"]), "opened")
    assert decision.should_triage is False
    assert decision.skip_reason == "already_triaged"


def test_unknown_event_behaves_like_opened() -> None:
    decision = evaluate_triage(make_issue(labels=["duplicate"]), "reopened")
    assert decision.skip_reason == "already_triaged"


def test_edit_with_needs_more_info_is_retriage_even_when_triaged() -> None:
    issue = make_issue(labels=["agent:plan", "needs-more-info", "wontfix"])
    decision = evaluate_triage(issue, "edited")
    assert decision.should_triage is True
    assert decision.is_retriage is True


def test_edit_on_untriaged_issue_runs_initial_triage() -> None:
    decision = evaluate_triage(make_issue(labels=["bug"]), "edited")
    assert decision.should_triage is True
    assert decision.is_retriage is False


def test_edit_on_triaged_issue_is_ignored() -> None:
    decision = evaluate_triage(make_issue(labels=["needs-human-review"]), "edited")
    assert decision.should_triage is False
    assert decision.skip_reason == "edit_already_triaged"


def test_label_helpers() -> None:
    assert is_already_triaged(["agent:plan"])
    assert not is_already_triaged(["bug", "enhancement"])
    assert should_retriage(["needs-more-info"], "edited")
    assert not should_retriage(["needs-more-info"], "opened")
    assert not should_retriage(["bug"], "edited")


def test_custom_rule_tables_are_honoured() -> None:
    rules = GuardRules(triage=TriageRules(bot_suffixes=("-automation",), retriage_label="reopen"))
    bot_issue = make_issue(login="deploy-automation")
    assert evaluate_triage(bot_issue, "opened", rules).should_triage is False
    assert evaluate_triage(make_issue(login="renovate-bot"), "opened", rules).should_triage is True
    assert evaluate_triage(make_issue(labels=["agent:plan", "reopen"]), "edited", rules).is_retriage


def test_triage_is_idempotent() -> None:
    issue = make_issue(labels=["needs-more-info"])
    assert evaluate_triage(issue, "edited") == evaluate_triage(issue, "edited")
