"""Run configuration shared by the CLI and the checks.

The CLI builds a ``CheckConfiguration`` from its options; the checks treat
every value as opaque and pass it through to their collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# Environment variable backing the CLI's ``--shellcheck-path`` option.
SHELLCHECK_ENV_VAR = "CIVERIFY_SHELLCHECK"

DEFAULT_GITLAB_CI_FILE = ".gitlab-ci.yml"


@dataclass(frozen=True)
class CheckConfiguration:
    """Options for a verification run.

    Attributes:
        gitlab_ci_file: Path of the pipeline definition being verified.
            Tagged onto every finding.
        shellcheck_flags: Extra flag tokens appended to each ShellCheck
            invocation (e.g. ``("--exclude=SC2086",)``).
        shellcheck_path: Explicit ShellCheck executable, from
            ``--shellcheck-path`` or ``CIVERIFY_SHELLCHECK``. None means look
            up ``shellcheck`` on ``PATH``.
    """

    gitlab_ci_file: Path = field(default_factory=lambda: Path(DEFAULT_GITLAB_CI_FILE))
    shellcheck_flags: tuple[str, ...] = ()
    shellcheck_path: str | None = None


def split_flags(values: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Flatten repeated and comma-separated flag values into tokens.

    ``("-e SC2086,--severity=warning", "-x")`` becomes
    ``("-e", "SC2086", "--severity=warning", "-x")``. Empty tokens are dropped.
    """
    tokens: list[str] = []
    for value in values:
        for part in value.split(","):
            tokens.extend(part.split())
    return tuple(tokens)
