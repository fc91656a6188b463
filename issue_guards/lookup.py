"""External state lookups used for duplicate suppression and attempt counting."""

from __future__ import annotations

import logging
import re
from typing import Protocol

from issue_guards.github import GhError, get_issue_comment_bodies, get_pr_label_names

logger = logging.getLogger(__name__)


class StateLookup(Protocol):
    """Read-only view of state recorded on issues and pull requests."""

    def find_marker_lines(self, issue_number: int, marker: str) -> list[str]:
        """Return every comment line containing ``marker``, in posting order."""

    def max_attempt_label(self, pr_number: int, prefix: str) -> int:
        """Return the highest ``N`` among labels named ``<prefix><N>``, or 0."""


class NullStateLookup:
    """Lookup that never finds anything."""

    def find_marker_lines(self, issue_number: int, marker: str) -> list[str]:
        return []

    def max_attempt_label(self, pr_number: int, prefix: str) -> int:
        return 0


class GhStateLookup:
    """Best-effort lookup backed by the gh CLI.

    Every failure is logged and answered with the "nothing found" default:
    the lookup only suppresses duplicates and is never authoritative.
    """

    def __init__(self, repository: str | None, *, timeout_seconds: float = 30.0) -> None:
        self.repository = repository or None
        self.timeout_seconds = timeout_seconds

    def find_marker_lines(self, issue_number: int, marker: str) -> list[str]:
        if self.repository is None:
            logger.debug("no repository configured; skipping marker lookup for #%s", issue_number)
            return []
        try:
            lines = get_issue_comment_bodies(
                self.repository, issue_number, timeout=self.timeout_seconds
            )
        except GhError as exc:
            logger.warning("marker lookup for #%s failed: %s", issue_number, exc)
            return []
        return [line for line in lines if marker in line]

    def max_attempt_label(self, pr_number: int, prefix: str) -> int:
        if self.repository is None:
            logger.debug("no repository configured; skipping attempt lookup for #%s", pr_number)
            return 0
        try:
            labels = get_pr_label_names(self.repository, pr_number, timeout=self.timeout_seconds)
        except GhError as exc:
            logger.warning("attempt label lookup for #%s failed: %s", pr_number, exc)
            return 0
        return max_attempt_from_labels(labels, prefix)


def max_attempt_from_labels(labels: list[str], prefix: str) -> int:
    """Return the highest numeric suffix among labels exactly matching ``<prefix><N>``."""
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for label in labels:
        match = pattern.match(label)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest
