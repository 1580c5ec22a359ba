"""Shared fixtures for civerify tests."""

from __future__ import annotations

import asyncio
import stat
from collections.abc import Sequence
from pathlib import Path

import pytest

from civerify.shellcheck import RawDiagnostic


class StubAnalyzer:
    """In-memory ``ScriptAnalyzer`` keyed by the snippet text.

    ``responses`` maps a snippet (as text) to the diagnostics to return or
    to an exception to raise. Unknown snippets yield no diagnostics.
    """

    def __init__(
        self,
        responses: dict[str, list[RawDiagnostic] | Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[tuple[str, tuple[str, ...]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def analyze_snippet(
        self, snippet: bytes, flags: Sequence[str] = ()
    ) -> list[RawDiagnostic]:
        text = snippet.decode("utf-8")
        self.calls.append((text, tuple(flags)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses.get(text, [])
            if isinstance(response, Exception):
                raise response
            return list(response)
        finally:
            self.in_flight -= 1


@pytest.fixture
def stub_analyzer_cls() -> type[StubAnalyzer]:
    """Expose ``StubAnalyzer`` to test modules."""
    return StubAnalyzer


def write_fake_shellcheck(
    directory: Path,
    stdout: str = "[]",
    exit_code: int = 0,
    name: str = "fake-shellcheck",
) -> Path:
    """Write an executable that mimics ShellCheck's CLI.

    It consumes stdin, records its arguments to ``<name>.args``, answers
    ``--version`` like ShellCheck, and otherwise prints ``stdout``.
    """
    script = directory / name
    args_file = directory / f"{name}.args"
    out_file = directory / f"{name}.out"
    out_file.write_text(stdout, encoding="utf-8")
    script.write_text(
        "#!/bin/sh\n"
        'if [ "$1" = "--version" ]; then\n'
        "  echo 'ShellCheck - shell script analysis tool'\n"
        "  echo 'version: 0.9.0'\n"
        "  echo 'license: GNU General Public License, version 3'\n"
        "  exit 0\n"
        "fi\n"
        f"printf '%s\\n' \"$@\" > '{args_file}'\n"
        "cat > /dev/null\n"
        f"cat '{out_file}'\n"
        f"exit {exit_code}\n",
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def fake_shellcheck_factory(tmp_path: Path):
    """Return a function creating fake ShellCheck executables in tmp_path."""

    def factory(stdout: str = "[]", exit_code: int = 0, name: str = "fake-shellcheck") -> Path:
        return write_fake_shellcheck(tmp_path, stdout=stdout, exit_code=exit_code, name=name)

    return factory
