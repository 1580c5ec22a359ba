"""civerify exception hierarchy.

All public exceptions inherit from CiVerifyError, giving callers a single
base class to catch when they want to handle any civerify-specific failure
without swallowing unrelated errors.
"""


class CiVerifyError(Exception):
    """Base exception for all civerify errors."""


class ParseError(CiVerifyError):
    """Raised when a pipeline file cannot be read or parsed.

    Covers missing files, encoding issues and malformed YAML. Structural
    oddities inside a well-formed document (a job without scripts, a
    script given as a mapping) are not parse errors; they are skipped.
    """


class AnalysisError(CiVerifyError):
    """Raised when the analysis of a single script snippet fails.

    Covers a tool process that could not be started, exited abnormally,
    timed out, or produced output that is not a diagnostic list. Callers
    treat the snippet as unanalyzed; no partial result is returned.
    """


class ShellcheckNotFoundError(AnalysisError):
    """Raised when no usable ``shellcheck`` executable can be located.

    Unlike a plain ``AnalysisError`` this is not recovered per job: nothing
    can be analyzed without the tool, so the whole check fails up front.
    """


class PositionIndexError(CiVerifyError, IndexError):
    """Raised when a blob line number has no entry in its position index.

    This signals an internal contract breach between the snippet assembler
    and the analysis client, never an environmental condition.
    """
