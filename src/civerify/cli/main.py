"""civerify CLI: verify the shell scripts of a GitLab CI pipeline.

Entry point for the ``civerify`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    check    Run ShellCheck over every job script and report findings.
    version  Show civerify and ShellCheck versions.

Usage::

    civerify check                              # ./.gitlab-ci.yml
    civerify check ci/pipeline.yml --format json
    civerify check --shellcheck-flags "--exclude=SC2086"
    civerify version
"""

from __future__ import annotations

import click

from civerify import __version__
from civerify.cli.check import check_command
from civerify.cli.version_cmd import version_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """civerify: ShellCheck for the scripts inside GitLab CI pipelines.

    Extracts before_script, script and after_script from every job,
    analyzes them with ShellCheck and reports findings against the
    lines of the pipeline file.
    """


cli.add_command(check_command)
cli.add_command(version_command)
