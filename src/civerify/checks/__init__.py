"""Pipeline checks.

Each check implements ``Check`` and is registered in ``default_checks()``,
which the CLI runs in order against the loaded pipeline.
"""

from civerify.checks.base import Check, CheckFinding, CheckInput, Severity
from civerify.checks.shellcheck_scripts import (
    ScriptCheckReport,
    ShellScriptCheck,
    severity_of,
    translate,
)


def default_checks() -> list[Check]:
    """Return fresh instances of all built-in checks."""
    return [ShellScriptCheck()]


__all__ = [
    "Check",
    "CheckFinding",
    "CheckInput",
    "ScriptCheckReport",
    "Severity",
    "ShellScriptCheck",
    "default_checks",
    "severity_of",
    "translate",
]
