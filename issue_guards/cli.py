"""CLI entrypoint for issue-guards."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from issue_guards import __version__
from issue_guards.config import AppConfig, default_config_template, load_app_config
from issue_guards.guards import (
    evaluate_implementer,
    evaluate_planner,
    evaluate_remediation,
    evaluate_triage,
)
from issue_guards.guards.base import Decision
from issue_guards.lookup import GhStateLookup
from issue_guards.models import IssuePayload, PayloadError, parse_findings_json, parse_issue_json
from issue_guards.output import render_human, render_json
from issue_guards.selftest import GUARD_NAMES, run_self_test

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="issue-guards",
    no_args_is_help=True,
    help="Pre-flight gates deciding whether automation may act on an issue or pull request.",
)

RepoOption = Annotated[Path, typer.Option(help="Repository path used for config discovery.")]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config TOML file."),
]
FormatOption = Annotated[
    str | None, typer.Option(help="Output format: json|human.", show_default="json")
]
IssueJsonOption = Annotated[
    str | None,
    typer.Option("--issue-json", envvar="ISSUE_JSON", help="Issue payload as JSON."),
]
RepositoryOption = Annotated[
    str | None,
    typer.Option(
        "--repository",
        envvar="GITHUB_REPOSITORY",
        help="owner/name used for gh lookups; lookups are skipped when unset.",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command("triage")
def triage_command(
    issue_json: IssueJsonOption = None,
    event_name: Annotated[
        str, typer.Option("--event-name", envvar="EVENT_NAME", help="Issue event action.")
    ] = "opened",
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = None,
) -> None:
    """Decide whether a new or edited issue should be triaged."""
    app_config = _load_config_or_exit(repo, config_file)
    issue = _parse_issue_or_exit(issue_json)
    decision = evaluate_triage(issue, event_name or "opened", app_config.rules)
    _emit(decision, format or app_config.format)


@app.command("plan")
def plan_command(
    issue_json: IssueJsonOption = None,
    skip_plan_check: Annotated[
        bool, typer.Option("--skip-plan-check", help="Do not look for an existing plan comment.")
    ] = False,
    repository: RepositoryOption = None,
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = None,
) -> None:
    """Decide whether an issue should receive an implementation plan."""
    app_config = _load_config_or_exit(repo, config_file)
    issue = _parse_issue_or_exit(issue_json)
    decision = evaluate_planner(
        issue,
        app_config.rules,
        _build_lookup(repository, app_config),
        skip_plan_check=skip_plan_check,
    )
    _emit(decision, format or app_config.format)


@app.command("implement")
def implement_command(
    issue_json: IssueJsonOption = None,
    skip_pr_check: Annotated[
        bool, typer.Option("--skip-pr-check", help="Do not look for an existing PR marker.")
    ] = False,
    repository: RepositoryOption = None,
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = None,
) -> None:
    """Decide whether an issue should be implemented automatically."""
    app_config = _load_config_or_exit(repo, config_file)
    issue = _parse_issue_or_exit(issue_json)
    decision = evaluate_implementer(
        issue,
        app_config.rules,
        _build_lookup(repository, app_config),
        skip_pr_check=skip_pr_check,
    )
    _emit(decision, format or app_config.format)


@app.command("remediate")
def remediate_command(
    pr_number: Annotated[
        int, typer.Option("--pr-number", envvar="PR_NUMBER", help="Pull request number.")
    ] = 0,
    findings: Annotated[
        str | None,
        typer.Option("--findings", envvar="FINDINGS", help="Findings as a JSON array."),
    ] = None,
    strictness: Annotated[
        str | None,
        typer.Option(
            "--strictness", envvar="STRICTNESS", help="relaxed|standard|strict (attempt cap)."
        ),
    ] = None,
    repository: RepositoryOption = None,
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = None,
) -> None:
    """Decide whether another remediation attempt should run on a pull request."""
    app_config = _load_config_or_exit(repo, config_file)
    if not pr_number:
        _fail("PR_NUMBER environment variable is required.")
    try:
        parsed_findings = parse_findings_json(findings)
    except PayloadError as exc:
        _fail(str(exc))

    decision = evaluate_remediation(
        pr_number,
        parsed_findings,
        strictness,
        app_config.rules,
        _build_lookup(repository, app_config),
    )
    _emit(decision, format or app_config.format)


@app.command("self-test")
def self_test_command(
    guard: Annotated[
        str | None,
        typer.Argument(help=f"Guard to check: {'|'.join(GUARD_NAMES)}. Defaults to all."),
    ] = None,
) -> None:
    """Check each guard against fixed example payloads and the built-in rules."""
    try:
        results = run_self_test(guard)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="guard") from exc

    failures = 0
    for result in results:
        mark = typer.style("✔", fg="green") if result.passed else typer.style("✘", fg="red")
        typer.echo(f"{mark} [{result.guard}] {result.description}")
        if not result.passed:
            failures += 1

    if failures:
        typer.echo(f"{failures} of {len(results)} self-checks failed.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"All {len(results)} self-checks passed.")


@app.command("config")
def config_command(
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
) -> None:
    """Show resolved configuration and rule tables as JSON."""
    app_config = _load_config_or_exit(repo, config_file)
    typer.echo(json.dumps(app_config.to_dict(), indent=2, sort_keys=True))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".issue-guards.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _fail(message: str) -> NoReturn:
    typer.echo(f"ERROR: {message}", err=True)
    raise typer.Exit(code=1)


def _load_config_or_exit(repo: Path, config_file: Path | None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        _fail(str(exc))


def _parse_issue_or_exit(issue_json: str | None) -> IssuePayload:
    try:
        return parse_issue_json(issue_json)
    except PayloadError as exc:
        _fail(str(exc))


def _build_lookup(repository: str | None, app_config: AppConfig) -> GhStateLookup:
    return GhStateLookup(repository, timeout_seconds=app_config.lookup.timeout_seconds)


def _emit(decision: Decision, output_format: str) -> None:
    output_format = output_format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    logger.debug("%s decision: approved=%s", decision.guard, decision.approved)
    if output_format == "json":
        typer.echo(render_json(decision))
    else:
        typer.echo(render_human(decision))
