"""Async client for the ShellCheck executable.

ShellCheck is treated as a black box behind the ``ScriptAnalyzer``
protocol: a blob of shell code goes in, a list of ``RawDiagnostic`` comes
out, and any failure is a single ``AnalysisError``. The checks depend only
on the protocol, so tests substitute an in-memory stub for the process.

The snippet is piped through stdin (``shellcheck -``), so no temporary
files are written. ShellCheck exits 0 when clean and 1 when it reports
issues; every other exit status is a failure of the run itself.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from civerify.exceptions import AnalysisError, ShellcheckNotFoundError

logger = logging.getLogger(__name__)

# Seconds allowed for a single ShellCheck invocation.
DEFAULT_TIMEOUT: float = 60.0

DEFAULT_EXECUTABLE = "shellcheck"

_SUCCESS_EXIT_CODES = (0, 1)


@dataclass(frozen=True)
class RawDiagnostic:
    """A diagnostic as reported by the analysis tool.

    Attributes:
        level: Tool severity word ("error", "warning", "info", "style", or
            anything else the tool may emit).
        code: Numeric rule code (2086 for SC2086).
        line: 1-based line number relative to the analyzed blob.
        message: Tool-provided description.
        column: 1-based start column, 0 if not reported.
        end_line: Last line of the flagged range, 0 if not reported.
        end_column: End column of the flagged range, 0 if not reported.
    """

    level: str
    code: int
    line: int
    message: str
    column: int = 0
    end_line: int = 0
    end_column: int = 0


class ScriptAnalyzer(Protocol):
    """Anything that can analyze a shell snippet."""

    async def analyze_snippet(
        self, snippet: bytes, flags: Sequence[str] = ()
    ) -> list[RawDiagnostic]:
        """Analyze ``snippet`` and return its diagnostics.

        Raises:
            AnalysisError: If the snippet could not be analyzed at all.
        """
        ...


def parse_diagnostics(output: bytes | str) -> list[RawDiagnostic]:
    """Parse ShellCheck ``json`` or ``json1`` output.

    Args:
        output: Raw stdout of a ShellCheck run.

    Returns:
        Diagnostics in the order ShellCheck reported them.

    Raises:
        AnalysisError: If the output is not a diagnostic list.
    """
    text = output.decode("utf-8", errors="replace") if isinstance(output, bytes) else output
    if not text.strip():
        return []
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"ShellCheck produced invalid JSON: {exc}") from exc

    # json1 wraps the list in {"comments": [...]}.
    if isinstance(data, dict) and "comments" in data:
        data = data["comments"]
    if not isinstance(data, list):
        raise AnalysisError("ShellCheck output is not a list of comments")

    diagnostics: list[RawDiagnostic] = []
    for item in data:
        try:
            diagnostics.append(RawDiagnostic(
                level=str(item["level"]),
                code=int(item["code"]),
                line=int(item["line"]),
                message=str(item["message"]),
                column=int(item.get("column", 0)),
                end_line=int(item.get("endLine", 0)),
                end_column=int(item.get("endColumn", 0)),
            ))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise AnalysisError(f"Malformed ShellCheck comment: {item!r}") from exc
    return diagnostics


class ShellChecker:
    """Runs ShellCheck as a subprocess.

    Usage::

        checker = ShellChecker.create()
        diagnostics = await checker.analyze_snippet(b"echo $X\\n")
    """

    def __init__(self, executable: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.executable = executable
        self.timeout = timeout

    @classmethod
    def create(
        cls, executable: str | None = None, *, timeout: float = DEFAULT_TIMEOUT
    ) -> ShellChecker:
        """Locate the ShellCheck binary and build a checker for it.

        Args:
            executable: Path or command name. Defaults to ``shellcheck``
                looked up on ``PATH``.
            timeout: Per-invocation timeout in seconds.

        Raises:
            ShellcheckNotFoundError: If the executable cannot be found.
        """
        wanted = executable or DEFAULT_EXECUTABLE
        resolved = shutil.which(wanted)
        if resolved is None:
            raise ShellcheckNotFoundError(
                f"ShellCheck executable not found: {wanted}. "
                "Install shellcheck or pass --shellcheck-path."
            )
        logger.debug("Using ShellCheck at %s", resolved)
        return cls(resolved, timeout=timeout)

    async def _execute(
        self, args: Sequence[str], stdin: bytes | None = None
    ) -> tuple[int, bytes, bytes]:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise AnalysisError(f"Cannot start {self.executable}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(stdin), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise AnalysisError(
                f"{self.executable} timed out after {self.timeout:.0f}s"
            ) from exc
        return proc.returncode if proc.returncode is not None else -1, stdout, stderr

    async def analyze_snippet(
        self, snippet: bytes, flags: Sequence[str] = ()
    ) -> list[RawDiagnostic]:
        """Run ShellCheck over ``snippet`` as a bash script.

        Args:
            snippet: Script text, UTF-8 encoded.
            flags: Extra command-line tokens, placed before the input.

        Raises:
            AnalysisError: On a failed run or unusable output.
        """
        args = ["--format=json", "--shell=bash", *flags, "-"]
        returncode, stdout, stderr = await self._execute(args, stdin=snippet)
        if returncode not in _SUCCESS_EXIT_CODES:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise AnalysisError(
                f"ShellCheck exited with status {returncode}: {detail or 'no output'}"
            )
        return parse_diagnostics(stdout)

    async def version(self) -> str:
        """Return the ShellCheck version, or ``"N/A"`` if it cannot be read."""
        try:
            _, stdout, _ = await self._execute(["--version"])
        except AnalysisError:
            logger.debug("Could not query ShellCheck version", exc_info=True)
            return "N/A"
        for line in stdout.decode("utf-8", errors="replace").splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip() == "version":
                return value.strip()
        return "N/A"
