"""Base interface and data types for pipeline checks.

Every check implements the ``Check`` abstract base class and turns a
``CheckInput`` (the loaded pipeline plus run configuration) into a list of
``CheckFinding``. Findings are plain data so that formatters and exit-code
logic can consume them without knowing which check produced them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from civerify.ci_yaml.document import CiYaml
from civerify.configuration import CheckConfiguration


# ---------------------------------------------------------------------------
# Severity: Ordered finding severity levels
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Severity scale for findings.

    The integer encoding enables direct comparison:
    STYLE < INFO < WARNING < ERROR. ``UNKNOWN`` is reserved for levels a
    tool reports outside its documented vocabulary and sorts below every
    known level.
    """

    UNKNOWN = 0
    STYLE = 1
    INFO = 2
    WARNING = 3
    ERROR = 4


# ---------------------------------------------------------------------------
# CheckFinding: A single document-level observation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckFinding:
    """A single finding located in the pipeline document.

    Attributes:
        severity: Normalized severity.
        code: Stable rule identifier (e.g. "SC-2086").
        line: 1-based line in ``file``.
        message: Human-readable description, including enough context to
            find the offending line without re-running the check.
        link: Documentation URL for the rule.
        file: Path of the pipeline document.
    """

    severity: Severity
    code: str
    line: int
    message: str
    link: str
    file: Path

    def sort_key(self) -> tuple[str, int, str, str]:
        """Key for stable, reader-friendly ordering of findings."""
        return (str(self.file), self.line, self.code, self.message)


@dataclass(frozen=True)
class CheckInput:
    """Everything a check may look at."""

    ci_yaml: CiYaml
    configuration: CheckConfiguration


class Check(ABC):
    """Abstract base class for pipeline checks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the check (e.g. "shellcheck")."""

    @abstractmethod
    def run(self, check_input: CheckInput) -> list[CheckFinding]:
        """Run the check against a loaded pipeline.

        Returns:
            Findings in no particular order. Callers that need stable
            output sort with ``CheckFinding.sort_key``.
        """
