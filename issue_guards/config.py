"""Rule tables and configuration loading for issue-guards."""

from __future__ import annotations

import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

CONFIG_FILENAMES = (".issue-guards.toml", "issue-guards.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("issue_guards", "issue-guards")

DEFAULT_BLOCKING_LABELS = ("agent:skip", "wontfix", "duplicate", "invalid")


@dataclass(frozen=True, slots=True)
class TriageRules:
    """Bot detection and already-triaged label sets."""

    bot_suffixes: tuple[str, ...] = ("[bot]", "-bot")
    bot_user_type: str = "Bot"
    triaged_labels: tuple[str, ...] = (
        "agent:plan",
        "agent:implement",
        "needs-human-review",
        "wontfix",
        "duplicate",
        "invalid",
    )
    retriage_label: str = "needs-more-info"

    def to_dict(self) -> dict[str, Any]:
        return {
            "bot_suffixes": list(self.bot_suffixes),
            "bot_user_type": self.bot_user_type,
            "triaged_labels": list(self.triaged_labels),
            "retriage_label": self.retriage_label,
        }


@dataclass(frozen=True, slots=True)
class PlannerRules:
    """Trigger, blocking labels, and plan marker for the planner gate."""

    trigger_label: str = "agent:plan"
    blocking_labels: tuple[str, ...] = DEFAULT_BLOCKING_LABELS
    marker_prefix: str = "<!-- issue-planner:"

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_label": self.trigger_label,
            "blocking_labels": list(self.blocking_labels),
            "marker_prefix": self.marker_prefix,
        }


@dataclass(frozen=True, slots=True)
class ImplementerRules:
    """Trigger, blocking labels, PR marker, and branch naming for the implementer gate."""

    trigger_label: str = "agent:implement"
    blocking_labels: tuple[str, ...] = DEFAULT_BLOCKING_LABELS
    marker_prefix: str = "<!-- issue-implementer:"
    branch_prefix: str = "cf/"
    slug_max_length: int = 40

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_label": self.trigger_label,
            "blocking_labels": list(self.blocking_labels),
            "marker_prefix": self.marker_prefix,
            "branch_prefix": self.branch_prefix,
            "slug_max_length": self.slug_max_length,
        }


@dataclass(frozen=True, slots=True)
class RemediationRules:
    """Security keywords, protected paths, and attempt caps for remediation."""

    security_keywords: tuple[str, ...] = (
        "security",
        "injection",
        "xss",
        "ssrf",
        "csrf",
        "auth bypass",
        "authentication",
        "authorization",
        "privilege escalation",
        "secret",
        "credential",
        "token exposure",
        "vulnerability",
        "sanitize",
        "unsanitized",
    )
    protected_files: tuple[str, ...] = (
        r"^\.github/workflows/",
        r"^harness\.config\.json$",
        r"^KIRO\.md$",
        r"^package-lock\.json$",
        r"^package\.json$",
        r"^tsconfig\.json$",
        r"^eslint\.config\.js$",
    )
    max_attempts: Mapping[str, int] = field(
        default_factory=lambda: {"relaxed": 10, "standard": 5, "strict": 3}
    )
    default_strictness: str = "relaxed"
    attempt_label_prefix: str = "remediation-attempt-"
    protected_patterns: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # frozen dataclass: read-only caps and compiled patterns are set once at construction
        object.__setattr__(self, "max_attempts", MappingProxyType(dict(self.max_attempts)))
        object.__setattr__(
            self,
            "protected_patterns",
            tuple(re.compile(pattern) for pattern in self.protected_files),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "security_keywords": list(self.security_keywords),
            "protected_files": list(self.protected_files),
            "max_attempts": dict(self.max_attempts),
            "default_strictness": self.default_strictness,
            "attempt_label_prefix": self.attempt_label_prefix,
        }


@dataclass(frozen=True, slots=True)
class GuardRules:
    """All static rule tables, passed by reference into each guard."""

    triage: TriageRules = field(default_factory=TriageRules)
    planner: PlannerRules = field(default_factory=PlannerRules)
    implementer: ImplementerRules = field(default_factory=ImplementerRules)
    remediation: RemediationRules = field(default_factory=RemediationRules)

    def to_dict(self) -> dict[str, Any]:
        return {
            "triage": self.triage.to_dict(),
            "planner": self.planner.to_dict(),
            "implementer": self.implementer.to_dict(),
            "remediation": self.remediation.to_dict(),
        }


DEFAULT_RULES = GuardRules()


@dataclass(slots=True)
class LookupConfig:
    """Settings for the external state lookup."""

    timeout_seconds: float = 30.0

    def to_dict(self) -> dict[str, Any]:
        return {"timeout_seconds": self.timeout_seconds}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "json"
    rules: GuardRules = field(default_factory=GuardRules)
    lookup: LookupConfig = field(default_factory=LookupConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = self.rules.to_dict()
        payload["format"] = self.format
        payload["lookup"] = self.lookup.to_dict()
        payload["source"] = self.source
        return payload


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template mirroring the built-in rule tables."""
    return "\n".join(
        [
            'format = "json"',
            "",
            "[lookup]",
            "timeout_seconds = 30",
            "",
            "[triage]",
            'bot_suffixes = ["[bot]", "-bot"]',
            'bot_user_type = "Bot"',
            "triaged_labels = [",
            '  "agent:plan",',
            '  "agent:implement",',
            '  "needs-human-review",',
            '  "wontfix",',
            '  "duplicate",',
            '  "invalid",',
            "]",
            'retriage_label = "needs-more-info"',
            "",
            "[planner]",
            'trigger_label = "agent:plan"',
            'blocking_labels = ["agent:skip", "wontfix", "duplicate", "invalid"]',
            "",
            "[implementer]",
            'trigger_label = "agent:implement"',
            'blocking_labels = ["agent:skip", "wontfix", "duplicate", "invalid"]',
            'branch_prefix = "cf/"',
            "slug_max_length = 40",
            "",
            "[remediation]",
            'default_strictness = "relaxed"',
            'attempt_label_prefix = "remediation-attempt-"',
            "security_keywords = [",
            *(f'  "{keyword}",' for keyword in RemediationRules().security_keywords),
            "]",
            "protected_files = [",
            *(f"  '{pattern}'," for pattern in RemediationRules().protected_files),
            "]",
            "",
            "[remediation.max_attempts]",
            "relaxed = 10",
            "standard = 5",
            "strict = 3",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    format_value = _as_choice(mapping.get("format", "json"), {"human", "json"}, "format")
    lookup_mapping = _as_table(mapping.get("lookup"), "lookup")
    timeout = _as_number(lookup_mapping.get("timeout_seconds", 30.0), "lookup.timeout_seconds")
    if timeout <= 0:
        raise ValueError("lookup.timeout_seconds must be > 0")

    return AppConfig(
        format=format_value,
        rules=GuardRules(
            triage=_parse_triage_rules(_as_table(mapping.get("triage"), "triage")),
            planner=_parse_planner_rules(_as_table(mapping.get("planner"), "planner")),
            implementer=_parse_implementer_rules(
                _as_table(mapping.get("implementer"), "implementer")
            ),
            remediation=_parse_remediation_rules(
                _as_table(mapping.get("remediation"), "remediation")
            ),
        ),
        lookup=LookupConfig(timeout_seconds=timeout),
        source=source,
    )


def _parse_triage_rules(value: dict[str, Any]) -> TriageRules:
    defaults = TriageRules()
    return TriageRules(
        bot_suffixes=_as_str_tuple(
            value.get("bot_suffixes"), "triage.bot_suffixes", defaults.bot_suffixes
        ),
        bot_user_type=_as_str(
            value.get("bot_user_type", defaults.bot_user_type), "triage.bot_user_type"
        ),
        triaged_labels=_as_str_tuple(
            value.get("triaged_labels"), "triage.triaged_labels", defaults.triaged_labels
        ),
        retriage_label=_as_str(
            value.get("retriage_label", defaults.retriage_label), "triage.retriage_label"
        ),
    )


def _parse_planner_rules(value: dict[str, Any]) -> PlannerRules:
    defaults = PlannerRules()
    return PlannerRules(
        trigger_label=_as_str(
            value.get("trigger_label", defaults.trigger_label), "planner.trigger_label"
        ),
        blocking_labels=_as_str_tuple(
            value.get("blocking_labels"), "planner.blocking_labels", defaults.blocking_labels
        ),
        marker_prefix=_as_str(
            value.get("marker_prefix", defaults.marker_prefix), "planner.marker_prefix"
        ),
    )


def _parse_implementer_rules(value: dict[str, Any]) -> ImplementerRules:
    defaults = ImplementerRules()
    slug_max_length = _as_int(
        value.get("slug_max_length", defaults.slug_max_length), "implementer.slug_max_length"
    )
    if slug_max_length <= 0:
        raise ValueError("implementer.slug_max_length must be > 0")
    return ImplementerRules(
        trigger_label=_as_str(
            value.get("trigger_label", defaults.trigger_label), "implementer.trigger_label"
        ),
        blocking_labels=_as_str_tuple(
            value.get("blocking_labels"), "implementer.blocking_labels", defaults.blocking_labels
        ),
        marker_prefix=_as_str(
            value.get("marker_prefix", defaults.marker_prefix), "implementer.marker_prefix"
        ),
        branch_prefix=_as_str(
            value.get("branch_prefix", defaults.branch_prefix), "implementer.branch_prefix"
        ),
        slug_max_length=slug_max_length,
    )


def _parse_remediation_rules(value: dict[str, Any]) -> RemediationRules:
    defaults = RemediationRules()
    max_attempts = dict(defaults.max_attempts)
    for key, raw in _as_table(value.get("max_attempts"), "remediation.max_attempts").items():
        limit = _as_int(raw, f"remediation.max_attempts.{key}")
        if limit <= 0:
            raise ValueError(f"remediation.max_attempts.{key} must be > 0")
        max_attempts[key] = limit

    default_strictness = _as_choice(
        value.get("default_strictness", defaults.default_strictness),
        set(max_attempts),
        "remediation.default_strictness",
    )
    protected_files = _as_str_tuple(
        value.get("protected_files"), "remediation.protected_files", defaults.protected_files
    )
    for pattern in protected_files:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValueError(
                f"remediation.protected_files has invalid regex {pattern!r}: {exc}"
            ) from exc

    return RemediationRules(
        security_keywords=tuple(
            keyword.lower()
            for keyword in _as_str_tuple(
                value.get("security_keywords"),
                "remediation.security_keywords",
                defaults.security_keywords,
            )
        ),
        protected_files=protected_files,
        max_attempts=max_attempts,
        default_strictness=default_strictness,
        attempt_label_prefix=_as_str(
            value.get("attempt_label_prefix", defaults.attempt_label_prefix),
            "remediation.attempt_label_prefix",
        ),
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_tuple(value: Any, field_name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return tuple(items)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw


def _as_number(raw: Any, field_name: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"{field_name} must be a number")
    return float(raw)
