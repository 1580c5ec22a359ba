"""Shared fixtures for CLI tests.

Provides pipeline files and fake ShellCheck executables so the CLI can be
exercised end to end without a real ShellCheck installation.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

_WARNING_ON_LINE_ONE = json.dumps([{
    "file": "-",
    "line": 1,
    "endLine": 1,
    "column": 6,
    "endColumn": 8,
    "level": "warning",
    "code": 2086,
    "message": "Double quote to prevent globbing and word splitting.",
}])


@pytest.fixture
def pipeline_file(tmp_path: Path) -> Path:
    """A pipeline with one job whose script starts on line 4."""
    ci_file = tmp_path / ".gitlab-ci.yml"
    ci_file.write_text(
        "stages: [build]\n"
        "build:\n"
        "  script:\n"
        "    - echo $X\n"
        "    - ls -l\n",
        encoding="utf-8",
    )
    return ci_file


@pytest.fixture
def clean_shellcheck(fake_shellcheck_factory) -> Path:
    """A fake ShellCheck that reports nothing."""
    return fake_shellcheck_factory(stdout="[]", exit_code=0, name="clean-shellcheck")


@pytest.fixture
def warning_shellcheck(fake_shellcheck_factory) -> Path:
    """A fake ShellCheck that reports SC2086 on line 1 of every snippet."""
    return fake_shellcheck_factory(
        stdout=_WARNING_ON_LINE_ONE, exit_code=1, name="warning-shellcheck"
    )
