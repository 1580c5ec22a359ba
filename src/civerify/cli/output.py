"""Rich output formatting helpers for the civerify CLI.

Severity Color Mapping:
    ERROR = bold red, WARNING = yellow, INFO = cyan, STYLE = green,
    UNKNOWN = magenta
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from civerify.checks import CheckFinding, Severity

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
    Severity.STYLE: "green",
    Severity.UNKNOWN: "magenta",
}

console = Console()


def severity_style(severity: Severity) -> str:
    """Return the Rich style string for a given severity level."""
    return _SEVERITY_STYLES.get(severity, "white")


def print_findings(findings: list[CheckFinding]) -> None:
    """Print a table of findings followed by a one-line summary.

    Args:
        findings: Findings to show, already filtered and sorted.
    """
    if not findings:
        console.print("[green]No findings. All job scripts passed.[/green]")
        return

    table = Table(
        title=f"civerify Findings: {escape(str(findings[0].file))}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Severity", justify="center", no_wrap=True)
    table.add_column("Line", justify="right", no_wrap=True)
    table.add_column("Code", style="dim", no_wrap=True)
    table.add_column("Message")

    for f in findings:
        table.add_row(
            Text(f.severity.name, style=severity_style(f.severity)),
            str(f.line),
            f.code,
            Text(f.message),
        )

    console.print(table)
    _print_summary(findings)


def _print_summary(findings: list[CheckFinding]) -> None:
    """Print finding counts per severity."""
    parts = [f"[bold]{len(findings)}[/bold] findings"]
    for severity in sorted(Severity, reverse=True):
        count = sum(1 for f in findings if f.severity == severity)
        if count:
            style = severity_style(severity)
            parts.append(f"[{style}]{count} {severity.name.lower()}[/{style}]")
    console.print(" | ".join(parts))
