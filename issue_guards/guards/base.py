"""Base decision protocol and shared label helpers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

PULL_REQUEST_REASON = "Pull request — not an issue."


class Decision(Protocol):
    """Protocol for go/no-go records emitted by every guard."""

    guard: str
    reason: str

    @property
    def approved(self) -> bool:
        """Whether the guarded pipeline step should run."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON record consumed by the workflow."""


def matching_labels(labels: Iterable[str], rule_labels: Iterable[str]) -> list[str]:
    """Return ``labels`` that appear in ``rule_labels``, keeping input order."""
    rule_set = set(rule_labels)
    return [label for label in labels if label in rule_set]
