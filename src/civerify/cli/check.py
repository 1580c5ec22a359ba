"""``civerify check [path]``: Analyze the shell scripts of a pipeline.

Loads the pipeline definition, runs every registered check and prints the
findings sorted by line.

Exit Codes:
    0 = No findings at or above the severity threshold.
    1 = One or more findings at or above the threshold.
    2 = The pipeline file could not be read or ShellCheck is unavailable.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from civerify.checks import CheckFinding, CheckInput, Severity, default_checks
from civerify.ci_yaml import load_ci_yaml
from civerify.configuration import (
    DEFAULT_GITLAB_CI_FILE,
    SHELLCHECK_ENV_VAR,
    CheckConfiguration,
    split_flags,
)
from civerify.exceptions import CiVerifyError, ParseError, ShellcheckNotFoundError

logger = logging.getLogger(__name__)

# Severity threshold mapping (string -> IntEnum)
_SEVERITY_MAP: dict[str, Severity] = {
    "style": Severity.STYLE,
    "info": Severity.INFO,
    "warning": Severity.WARNING,
    "error": Severity.ERROR,
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _filter_findings(
    findings: list[CheckFinding], threshold: Severity
) -> list[CheckFinding]:
    """Keep findings at or above ``threshold``.

    Findings of unknown severity are always kept: the tool reported
    something it could not classify, and hiding it would be worse.
    """
    return [
        f for f in findings
        if f.severity >= threshold or f.severity == Severity.UNKNOWN
    ]


def _findings_to_json(findings: list[CheckFinding]) -> list[dict]:
    """Convert findings to JSON-serializable dicts."""
    return [
        {
            "severity": f.severity.name,
            "code": f.code,
            "line": f.line,
            "message": f.message,
            "link": f.link,
            "file": str(f.file),
        }
        for f in findings
    ]


def _fail(message: str, output_format: str) -> NoReturn:
    if output_format == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(2)


def run_checks(configuration: CheckConfiguration) -> list[CheckFinding]:
    """Load the pipeline and run every built-in check against it.

    Raises:
        ParseError: If the pipeline cannot be loaded.
        ShellcheckNotFoundError: If ShellCheck cannot be located.
    """
    ci_yaml = load_ci_yaml(configuration.gitlab_ci_file)
    check_input = CheckInput(ci_yaml=ci_yaml, configuration=configuration)
    findings: list[CheckFinding] = []
    for check in default_checks():
        logger.debug("Running check %s", check.name)
        findings.extend(check.run(check_input))
    return sorted(findings, key=CheckFinding.sort_key)


@click.command("check")
@click.argument(
    "path",
    type=click.Path(dir_okay=False),
    required=False,
    default=DEFAULT_GITLAB_CI_FILE,
)
@click.option(
    "--shellcheck-flags",
    multiple=True,
    help="Extra ShellCheck flags; repeatable and comma-separated.",
)
@click.option(
    "--shellcheck-path",
    default=None,
    envvar=SHELLCHECK_ENV_VAR,
    show_envvar=True,
    help="ShellCheck executable (default: shellcheck on PATH).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format: text (default) or json.",
)
@click.option(
    "--severity-threshold",
    type=click.Choice(list(_SEVERITY_MAP)),
    default="style",
    help="Minimum severity to report (default: style).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def check_command(
    path: str,
    shellcheck_flags: tuple[str, ...],
    shellcheck_path: str | None,
    output_format: str,
    severity_threshold: str,
    verbose: bool,
) -> None:
    """Analyze the scripts of the pipeline at PATH (default: .gitlab-ci.yml).

    Exit code 0 if nothing is reported, 1 if findings exist, 2 if the
    pipeline or ShellCheck is unavailable.
    """
    _configure_logging(verbose)
    configuration = CheckConfiguration(
        gitlab_ci_file=Path(path),
        shellcheck_flags=split_flags(shellcheck_flags),
        shellcheck_path=shellcheck_path,
    )

    try:
        findings = run_checks(configuration)
    except (ParseError, ShellcheckNotFoundError) as exc:
        _fail(str(exc), output_format)
    except CiVerifyError as exc:
        _fail(f"internal error: {exc}", output_format)

    findings = _filter_findings(findings, _SEVERITY_MAP[severity_threshold])

    if output_format == "json":
        click.echo(json.dumps(_findings_to_json(findings), indent=2))
    else:
        from civerify.cli.output import print_findings
        print_findings(findings)

    sys.exit(1 if findings else 0)
