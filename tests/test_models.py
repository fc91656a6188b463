"""Payload parsing tests."""

from __future__ import annotations

import json

import pytest

from issue_guards.models import PayloadError, parse_findings_json, parse_issue_json


def test_parse_issue_json_reads_labels_and_user() -> None:
    issue = parse_issue_json(
        json.dumps(
            {
                "number": 5,
                "title": "Bug report",
                "body": None,
                "user": {"login": "dependabot[bot]", "type": "Bot"},
                "labels": [{"name": "bug"}, "needs-more-info"],
            }
        )
    )
    assert issue.number == 5
    assert issue.body is None
    assert issue.user.type == "Bot"
    assert issue.labels == ("bug", "needs-more-info")
    assert issue.is_pull_request is False


def test_pull_request_marker_sets_flag() -> None:
    issue = parse_issue_json('{"number": 3, "title": "x", "pull_request": {"url": "https://x"}}')
    assert issue.is_pull_request is True


@pytest.mark.parametrize(
    "text",
    [None, "", "{}", '{"number": 0}', '{"number": "7"}', "[1, 2]", "{not json"],
)
def test_invalid_issue_payloads_raise(text: str | None) -> None:
    with pytest.raises(PayloadError):
        parse_issue_json(text)


def test_parse_findings_json() -> None:
    findings = parse_findings_json(
        json.dumps(
            [
                {"severity": "blocking", "file": "src/a.py", "line": 4, "message": "boom"},
                {"severity": "suggestion", "file": None, "line": None, "message": "tidy"},
            ]
        )
    )
    assert [finding.severity for finding in findings] == ["blocking", "suggestion"]
    assert findings[1].file is None


def test_absent_findings_are_empty() -> None:
    assert parse_findings_json(None) == []


@pytest.mark.parametrize(
    "text",
    [
        '{"severity": "warning"}',
        '[{"severity": "critical", "message": "x"}]',
        '[{"severity": "warning", "message": 3}]',
        '[{"severity": "warning", "message": "x", "line": "4"}]',
        "[oops",
    ],
)
def test_invalid_findings_raise(text: str) -> None:
    with pytest.raises(PayloadError):
        parse_findings_json(text)
