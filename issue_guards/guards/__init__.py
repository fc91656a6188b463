"""Guards package."""

from issue_guards.guards.implementer import (
    ImplementerDecision,
    derive_branch_name,
    evaluate_implementer,
    extract_pr_number,
    first_pr_number,
    slugify_title,
)
from issue_guards.guards.planner import PlannerDecision, evaluate_planner
from issue_guards.guards.remediation import (
    RemediationDecision,
    evaluate_remediation,
    format_finding,
    is_protected_file,
    is_security_finding,
    resolve_strictness,
)
from issue_guards.guards.triage import (
    TriageDecision,
    detect_bot,
    evaluate_triage,
    is_already_triaged,
    is_bot,
    should_retriage,
)

__all__ = [
    "ImplementerDecision",
    "PlannerDecision",
    "RemediationDecision",
    "TriageDecision",
    "derive_branch_name",
    "detect_bot",
    "evaluate_implementer",
    "evaluate_planner",
    "evaluate_remediation",
    "evaluate_triage",
    "extract_pr_number",
    "first_pr_number",
    "format_finding",
    "is_already_triaged",
    "is_bot",
    "is_protected_file",
    "is_security_finding",
    "resolve_strictness",
    "should_retriage",
    "slugify_title",
]
