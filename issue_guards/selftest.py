"""Built-in self-check of each guard against fixed example payloads."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from issue_guards.config import DEFAULT_RULES, GuardRules
from issue_guards.guards import (
    derive_branch_name,
    evaluate_implementer,
    evaluate_planner,
    evaluate_remediation,
    evaluate_triage,
    is_already_triaged,
    is_bot,
    is_protected_file,
    is_security_finding,
    should_retriage,
    slugify_title,
)
from issue_guards.lookup import NullStateLookup
from issue_guards.models import Finding, IssuePayload, IssueUser

GUARD_NAMES = ("triage", "plan", "implement", "remediate")


@dataclass(frozen=True, slots=True)
class SelfTestResult:
    """Outcome of a single self-check."""

    guard: str
    description: str
    passed: bool


Check = tuple[str, Callable[[], bool]]


def run_self_test(guard: str | None = None) -> list[SelfTestResult]:
    """Run every check for ``guard`` (or all guards) against the built-in rule tables.

    Repository config is never consulted, so the fixed example payloads always
    meet the labels they were written for. External state is not touched.
    """
    if guard is not None and guard not in GUARD_NAMES:
        choices = ", ".join(GUARD_NAMES)
        raise ValueError(f"guard must be one of: {choices}")

    suites = {
        "triage": _triage_checks,
        "plan": _planner_checks,
        "implement": _implementer_checks,
        "remediate": _remediation_checks,
    }
    results: list[SelfTestResult] = []
    for name in GUARD_NAMES:
        if guard is not None and name != guard:
            continue
        for description, check in suites[name](DEFAULT_RULES):
            results.append(SelfTestResult(guard=name, description=description, passed=check()))
    return results


def _issue(
    number: int,
    title: str,
    labels: list[str],
    *,
    login: str = "user1",
    user_type: str | None = None,
    body: str | None = None,
    pull_request: bool = False,
) -> IssuePayload:
    return IssuePayload(
        number=number,
        title=title,
        body=body,
        user=IssueUser(login=login, type=user_type),
        labels=tuple(labels),
        is_pull_request=pull_request,
    )


def _triage_checks(rules: GuardRules) -> list[Check]:
    triage = rules.triage
    return [
        ("dependabot[bot] is a bot", lambda: is_bot("dependabot[bot]", rules=triage)),
        ("renovate-bot is a bot", lambda: is_bot("renovate-bot", rules=triage)),
        ("Bot user type is a bot", lambda: is_bot("github-actions", "Bot", rules=triage)),
        ("regular user is not a bot", lambda: not is_bot("octocat", rules=triage)),
        ("agent:plan marks triaged", lambda: is_already_triaged(["agent:plan"], triage)),
        (
            "regular labels are not triaged",
            lambda: not is_already_triaged(["bug", "enhancement"], triage),
        ),
        (
            "edit with needs-more-info re-triages",
            lambda: should_retriage(["needs-more-info"], "edited", triage),
        ),
        (
            "open with needs-more-info does not re-triage",
            lambda: not should_retriage(["needs-more-info"], "opened", triage),
        ),
        (
            "new issue is triaged",
            lambda: evaluate_triage(
                _issue(1, "Bug: login broken", []), "opened", rules
            ).should_triage,
        ),
        (
            "bot issue is skipped",
            lambda: not evaluate_triage(
                _issue(2, "Dep update", [], login="dependabot[bot]", user_type="Bot"),
                "opened",
                rules,
            ).should_triage,
        ),
        (
            "pull request is skipped",
            lambda: not evaluate_triage(
                _issue(3, "Fix", [], pull_request=True), "opened", rules
            ).should_triage,
        ),
        (
            "already triaged issue is skipped",
            lambda: evaluate_triage(
                _issue(4, "Feature", ["agent:implement"]), "opened", rules
            ).skip_reason
            == "already_triaged",
        ),
        (
            "edited issue with needs-more-info is a re-triage",
            lambda: evaluate_triage(
                _issue(5, "Bug report", ["needs-more-info", "agent:plan"]), "edited", rules
            ).is_retriage,
        ),
    ]


def _planner_checks(rules: GuardRules) -> list[Check]:
    def plan(issue: IssuePayload):
        return evaluate_planner(issue, rules, NullStateLookup(), skip_plan_check=True)

    return [
        (
            "missing agent:plan is skipped",
            lambda: not plan(_issue(1, "Add feature", ["bug"])).should_plan,
        ),
        (
            "agent:plan is planned",
            lambda: plan(_issue(10, "Add dark mode", ["agent:plan", "enhancement"])).should_plan,
        ),
        (
            "wontfix blocks planning",
            lambda: plan(_issue(2, "Something", ["agent:plan", "wontfix"])).blocked_labels
            == ("wontfix",),
        ),
        (
            "pull request is skipped",
            lambda: not plan(_issue(3, "PR title", ["agent:plan"], pull_request=True)).should_plan,
        ),
        (
            "every blocking label is reported",
            lambda: plan(
                _issue(4, "Something", ["agent:plan", "duplicate", "invalid"])
            ).blocked_labels
            == ("duplicate", "invalid"),
        ),
        (
            "agent:implement does not trigger planning",
            lambda: not plan(_issue(5, "Feature", ["agent:implement"])).should_plan,
        ),
    ]


def _implementer_checks(rules: GuardRules) -> list[Check]:
    implementer = rules.implementer

    def implement(issue: IssuePayload):
        return evaluate_implementer(issue, rules, NullStateLookup(), skip_pr_check=True)

    def ready_on_branch() -> bool:
        decision = implement(_issue(10, "Add dark mode", ["agent:implement", "enhancement"]))
        expected = f"{implementer.branch_prefix}add-dark-mode-10"
        return decision.should_implement and decision.branch_name == expected

    return [
        (
            "title is slugified",
            lambda: slugify_title("Add dark mode", implementer) == "add-dark-mode",
        ),
        (
            "special characters are removed",
            lambda: slugify_title("Fix: login! @bug#", implementer) == "fix-login-bug",
        ),
        (
            "slug is capped",
            lambda: len(slugify_title("x" * 100, implementer)) == implementer.slug_max_length,
        ),
        (
            "branch name is derived",
            lambda: derive_branch_name(42, "Add dark mode", implementer)
            == f"{implementer.branch_prefix}add-dark-mode-42",
        ),
        (
            "missing agent:implement is skipped",
            lambda: not implement(_issue(1, "Feature", ["bug"])).should_implement,
        ),
        (
            "agent:implement is implemented on the derived branch",
            ready_on_branch,
        ),
        (
            "wontfix blocks implementation",
            lambda: "wontfix"
            in implement(_issue(2, "Something", ["agent:implement", "wontfix"])).blocked_labels,
        ),
        (
            "pull request is skipped",
            lambda: not implement(
                _issue(3, "PR title", ["agent:implement"], pull_request=True)
            ).should_implement,
        ),
    ]


def _remediation_checks(rules: GuardRules) -> list[Check]:
    remediation = rules.remediation
    mixed = [
        Finding("blocking", "src/utils/parser.py", 42, "Unhandled error in except block"),
        Finding("warning", "src/core/engine.py", 10, "SQL injection vulnerability in query"),
        Finding("suggestion", "harness.config.json", None, "Consider adding more patterns"),
    ]

    def remediate(findings: list[Finding]):
        return evaluate_remediation(0, findings, "relaxed", rules, NullStateLookup())

    return [
        (
            "SQL injection is a security finding",
            lambda: is_security_finding(
                Finding("blocking", "src/auth.py", 10, "SQL injection vulnerability"), remediation
            ),
        ),
        (
            "unsanitized input is a security finding",
            lambda: is_security_finding(
                Finding("blocking", "src/api.py", 5, "Unsanitized user input passed to shell"),
                remediation,
            ),
        ),
        (
            "missing null check is not a security finding",
            lambda: not is_security_finding(
                Finding("warning", "src/utils.py", 5, "Missing null check on optional parameter"),
                remediation,
            ),
        ),
        (
            "CI workflow is protected",
            lambda: is_protected_file(".github/workflows/ci.yml", remediation),
        ),
        ("package.json is protected", lambda: is_protected_file("package.json", remediation)),
        (
            "regular source file is not protected",
            lambda: not is_protected_file("src/utils/helpers.py", remediation),
        ),
        (
            "mixed findings are remediated",
            lambda: _mixed_ok(remediate(mixed)),
        ),
        (
            "security-only findings need human review",
            lambda: not remediate(
                [Finding("blocking", "src/auth.py", 1, "Authentication bypass in login handler")]
            ).should_remediate,
        ),
        ("no findings are not remediated", lambda: not remediate([]).should_remediate),
    ]


def _mixed_ok(decision) -> bool:
    return (
        decision.should_remediate
        and len(decision.security_blockers) == 1
        and len(decision.skipped_findings) == 1
        and decision.actionable_count == 1
    )
