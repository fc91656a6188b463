"""Remediation gate for automated fixes of pull request findings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar

from issue_guards.config import DEFAULT_RULES, GuardRules, RemediationRules
from issue_guards.lookup import NullStateLookup, StateLookup
from issue_guards.models import Finding

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RemediationDecision:
    """Whether another remediation attempt should run on a pull request."""

    guard: ClassVar[str] = "remediate"

    should_remediate: bool
    attempt_number: int
    max_attempts: int
    strictness: str
    reason: str
    actionable_count: int = 0
    security_blockers: tuple[str, ...] = field(default_factory=tuple)
    skipped_findings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def approved(self) -> bool:
        return self.should_remediate

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldRemediate": self.should_remediate,
            "attemptNumber": self.attempt_number,
            "maxAttempts": self.max_attempts,
            "strictness": self.strictness,
            "reason": self.reason,
            "actionableCount": self.actionable_count,
            "securityBlockers": list(self.security_blockers),
            "skippedFindings": list(self.skipped_findings),
        }


def resolve_strictness(strictness: str | None, rules: RemediationRules | None = None) -> str:
    """Map ``strictness`` onto a known level, falling back to the permissive default."""
    effective = rules or DEFAULT_RULES.remediation
    if strictness in effective.max_attempts:
        return strictness
    if strictness:
        logger.warning(
            "unknown strictness %r; using %r", strictness, effective.default_strictness
        )
    return effective.default_strictness


def is_security_finding(finding: Finding, rules: RemediationRules | None = None) -> bool:
    effective = rules or DEFAULT_RULES.remediation
    message = finding.message.lower()
    return any(keyword in message for keyword in effective.security_keywords)


def is_protected_file(file_path: str, rules: RemediationRules | None = None) -> bool:
    effective = rules or DEFAULT_RULES.remediation
    return any(pattern.search(file_path) for pattern in effective.protected_patterns)


def format_finding(finding: Finding, prefix: str) -> str:
    """Render ``[prefix] path[:line] — message`` for audit trails."""
    if finding.file:
        location = f"{finding.file}:{finding.line}" if finding.line else finding.file
    else:
        location = "general"
    return f"[{prefix}] {location} — {finding.message}"


def evaluate_remediation(
    pr_number: int,
    findings: list[Finding],
    strictness: str | None = None,
    rules: GuardRules = DEFAULT_RULES,
    lookup: StateLookup | None = None,
) -> RemediationDecision:
    """Classify ``findings`` and decide whether to launch another remediation attempt.

    Each finding lands in exactly one bucket, checked in order: security
    blocker (message keyword match), protected-file skip, actionable. The
    attempt cap is enforced before any classification happens.
    """
    remediation_rules = rules.remediation
    level = resolve_strictness(strictness, remediation_rules)
    max_attempts = remediation_rules.max_attempts[level]
    state = lookup or NullStateLookup()
    next_attempt = (
        state.max_attempt_label(pr_number, remediation_rules.attempt_label_prefix) + 1
    )
    base = {"attempt_number": next_attempt, "max_attempts": max_attempts, "strictness": level}

    if next_attempt > max_attempts:
        return RemediationDecision(
            should_remediate=False,
            reason=(
                f"Remediation limit reached ({max_attempts} attempts for {level} mode). "
                "Human review required."
            ),
            **base,
        )

    security_blockers: list[str] = []
    skipped_findings: list[str] = []
    actionable: list[Finding] = []
    for finding in findings:
        if is_security_finding(finding, remediation_rules):
            security_blockers.append(format_finding(finding, finding.severity))
        elif finding.file and is_protected_file(finding.file, remediation_rules):
            skipped_findings.append(format_finding(finding, "protected"))
        else:
            actionable.append(finding)

    lists = {
        "security_blockers": tuple(security_blockers),
        "skipped_findings": tuple(skipped_findings),
    }

    if not actionable and security_blockers:
        return RemediationDecision(
            should_remediate=False,
            reason="All findings are security-related and require human review.",
            **base,
            **lists,
        )

    if not actionable:
        return RemediationDecision(
            should_remediate=False,
            reason="No actionable findings after filtering security and protected-file issues.",
            **base,
            **lists,
        )

    return RemediationDecision(
        should_remediate=True,
        reason=(
            f"{len(actionable)} actionable finding(s) to remediate "
            f"(attempt {next_attempt}/{max_attempts})."
        ),
        actionable_count=len(actionable),
        **base,
        **lists,
    )
