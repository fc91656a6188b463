"""Issue, pull request, and finding payload models."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

SEVERITIES = ("blocking", "warning", "suggestion")


class PayloadError(ValueError):
    """Raised when an external payload is missing or malformed."""


@dataclass(frozen=True, slots=True)
class IssueUser:
    """Author of an issue or pull request."""

    login: str
    type: str | None = None


@dataclass(frozen=True, slots=True)
class IssuePayload:
    """Issue metadata as delivered by the workflow event."""

    number: int
    title: str
    body: str | None
    user: IssueUser
    labels: tuple[str, ...] = ()
    is_pull_request: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> IssuePayload:
        if not isinstance(data, dict):
            raise PayloadError("issue payload must be a JSON object")

        number = data.get("number")
        if isinstance(number, bool) or not isinstance(number, int) or number == 0:
            raise PayloadError("issue payload must contain a valid issue number")

        raw_user = data.get("user")
        if raw_user is None:
            raw_user = {}
        if not isinstance(raw_user, dict):
            raise PayloadError("issue.user must be an object")
        user_type = raw_user.get("type")

        body = data.get("body")
        return cls(
            number=number,
            title=str(data.get("title") or ""),
            body=body if isinstance(body, str) else None,
            user=IssueUser(
                login=str(raw_user.get("login") or ""),
                type=user_type if isinstance(user_type, str) else None,
            ),
            labels=_parse_labels(data.get("labels")),
            is_pull_request=bool(data.get("pull_request")),
        )


@dataclass(frozen=True, slots=True)
class Finding:
    """A single review or analysis finding on a pull request."""

    severity: str
    file: str | None
    line: int | None
    message: str

    @classmethod
    def from_dict(cls, data: Any) -> Finding:
        if not isinstance(data, dict):
            raise PayloadError("each finding must be a JSON object")

        severity = data.get("severity")
        if severity not in SEVERITIES:
            choices = ", ".join(SEVERITIES)
            raise PayloadError(f"finding.severity must be one of: {choices}")

        message = data.get("message")
        if not isinstance(message, str):
            raise PayloadError("finding.message must be a string")

        file_path = data.get("file")
        if file_path is not None and not isinstance(file_path, str):
            raise PayloadError("finding.file must be a string or null")

        line = data.get("line")
        if line is not None and (isinstance(line, bool) or not isinstance(line, int)):
            raise PayloadError("finding.line must be an integer or null")

        return cls(severity=severity, file=file_path or None, line=line, message=message)


def parse_issue_json(text: str | None) -> IssuePayload:
    """Parse an ISSUE_JSON document; an absent document counts as empty."""
    try:
        loaded = json.loads(text or "{}")
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Failed to parse ISSUE_JSON: {exc}") from exc
    return IssuePayload.from_dict(loaded)


def parse_findings_json(text: str | None) -> list[Finding]:
    """Parse a FINDINGS document; an absent document is an empty list."""
    try:
        loaded = json.loads(text or "[]")
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Failed to parse FINDINGS JSON: {exc}") from exc
    if not isinstance(loaded, list):
        raise PayloadError("FINDINGS must be a JSON array")
    return [Finding.from_dict(item) for item in loaded]


def _parse_labels(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise PayloadError("issue.labels must be a list")

    names: list[str] = []
    for item in value:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, dict) and isinstance(item.get("name"), str):
            names.append(item["name"])
        else:
            raise PayloadError("issue.labels entries must be strings or {name} objects")
    return tuple(names)
