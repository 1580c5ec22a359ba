"""Tests for CLI output formatting helpers.

Verifies:
    - Severity style mapping.
    - print_findings renders findings verbatim and a per-severity summary.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from civerify.checks import CheckFinding, Severity
from civerify.cli import output
from civerify.cli.output import print_findings, severity_style


@pytest.fixture
def captured_console(monkeypatch) -> io.StringIO:
    """Redirect the module console to a wide, colourless buffer."""
    buffer = io.StringIO()
    monkeypatch.setattr(
        output, "console", Console(file=buffer, width=200, color_system=None)
    )
    return buffer


def _finding(severity: Severity = Severity.WARNING, line: int = 10) -> CheckFinding:
    return CheckFinding(
        severity=severity,
        code="SC-2086",
        line=line,
        message="[build:script:1] Double quote to prevent globbing",
        link="https://www.shellcheck.net/wiki/SC2086",
        file=Path(".gitlab-ci.yml"),
    )


class TestSeverityStyles:
    """Tests for severity-to-style mapping."""

    def test_error_is_bold_red(self) -> None:
        assert severity_style(Severity.ERROR) == "bold red"

    def test_warning_is_yellow(self) -> None:
        assert severity_style(Severity.WARNING) == "yellow"

    def test_info_is_cyan(self) -> None:
        assert severity_style(Severity.INFO) == "cyan"

    def test_style_is_green(self) -> None:
        assert severity_style(Severity.STYLE) == "green"

    def test_unknown_is_magenta(self) -> None:
        assert severity_style(Severity.UNKNOWN) == "magenta"


class TestPrintFindings:
    """Tests for print_findings output."""

    def test_empty_findings(self, captured_console: io.StringIO) -> None:
        """No findings should print the all-clear message."""
        print_findings([])
        assert "No findings" in captured_console.getvalue()

    def test_message_brackets_are_kept(self, captured_console: io.StringIO) -> None:
        """The job/field/line prefix is not swallowed as markup."""
        print_findings([_finding()])
        text = captured_console.getvalue()
        assert "[build:script:1] Double quote to prevent globbing" in text
        assert "SC-2086" in text
        assert "WARNING" in text
        assert ".gitlab-ci.yml" in text

    def test_summary_counts_per_severity(self, captured_console: io.StringIO) -> None:
        findings = [
            _finding(Severity.ERROR, 3),
            _finding(Severity.WARNING, 4),
            _finding(Severity.WARNING, 5),
        ]
        print_findings(findings)
        text = captured_console.getvalue()
        assert "3 findings" in text
        assert "1 error" in text
        assert "2 warning" in text
