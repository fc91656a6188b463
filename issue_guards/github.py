"""GitHub CLI subprocess helpers."""

from __future__ import annotations

from subprocess import CalledProcessError, TimeoutExpired, run


class GhError(RuntimeError):
    """Raised when gh command execution fails."""


def get_issue_comment_bodies(repository: str, issue_number: int, *, timeout: float) -> list[str]:
    """Return every line of every comment body on an issue."""
    output = _run_gh(
        [
            "issue",
            "view",
            str(issue_number),
            "--repo",
            repository,
            "--json",
            "comments",
            "--jq",
            ".comments[].body",
        ],
        timeout=timeout,
    )
    return output.split("\n")


def get_pr_label_names(repository: str, pr_number: int, *, timeout: float) -> list[str]:
    """Return label names currently applied to a pull request."""
    output = _run_gh(
        [
            "pr",
            "view",
            str(pr_number),
            "--repo",
            repository,
            "--json",
            "labels",
            "--jq",
            ".labels[].name",
        ],
        timeout=timeout,
    )
    return [line for line in output.strip().split("\n") if line]


def _run_gh(args: list[str], *, timeout: float) -> str:
    try:
        completed = run(
            ["gh", *args],
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GhError(stderr or f"gh {' '.join(args)} failed") from exc
    except TimeoutExpired as exc:
        raise GhError(f"gh {' '.join(args)} timed out after {timeout}s") from exc
    except OSError as exc:
        raise GhError(f"unable to run gh: {exc}") from exc

    return completed.stdout
