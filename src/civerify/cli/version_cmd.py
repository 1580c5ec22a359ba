"""``civerify version``: Show civerify and ShellCheck versions."""

from __future__ import annotations

import asyncio

import click

from civerify import __version__
from civerify.configuration import SHELLCHECK_ENV_VAR
from civerify.exceptions import ShellcheckNotFoundError
from civerify.shellcheck import ShellChecker


def _shellcheck_version(executable: str | None) -> str:
    try:
        checker = ShellChecker.create(executable)
    except ShellcheckNotFoundError:
        return "not found"
    return asyncio.run(checker.version())


@click.command("version")
@click.option(
    "--shellcheck-path",
    default=None,
    envvar=SHELLCHECK_ENV_VAR,
    show_envvar=True,
    help="ShellCheck executable to query (default: shellcheck on PATH).",
)
def version_command(shellcheck_path: str | None) -> None:
    """Show the civerify version and the ShellCheck it would use."""
    click.echo(f"civerify:   {__version__}")
    click.echo(f"shellcheck: {_shellcheck_version(shellcheck_path)}")
