"""ShellCheck analysis of the scripts embedded in pipeline jobs.

Pipeline
--------
1. ``extract_scripts`` locates every job's ``before_script``, ``script``
   and ``after_script`` lines.
2. One asyncio task per job assembles each field into a blob with its
   ``PositionIndex`` and hands the blob to the ``ScriptAnalyzer``.
3. Every returned diagnostic is translated into a ``CheckFinding`` whose
   line is looked up in the index of the blob that produced it. A job puts
   its findings on a shared queue once all of its fields are analyzed.
4. Once all tasks have finished, an end-of-stream marker closes the queue
   and the collector returns everything it drained.

A failed analysis of any field drops every finding of that job; it is logged
and the run continues. An analyzer that cannot be created at all fails the
whole run before any job starts. Result order follows task completion and
is not stable; sort with ``CheckFinding.sort_key`` when it matters.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from civerify.checks.base import Check, CheckFinding, CheckInput, Severity
from civerify.ci_yaml.scripts import (
    SCRIPT_KEYS,
    JobScripts,
    PositionIndex,
    assemble,
    extract_scripts,
)
from civerify.configuration import CheckConfiguration
from civerify.exceptions import AnalysisError
from civerify.shellcheck import RawDiagnostic, ScriptAnalyzer, ShellChecker

logger = logging.getLogger(__name__)

CODE_PREFIX = "SC-"
WIKI_URL_TEMPLATE = "https://www.shellcheck.net/wiki/SC{code}"

_LEVEL_SEVERITY: dict[str, Severity] = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "info": Severity.INFO,
    "style": Severity.STYLE,
}

AnalyzerFactory = Callable[[CheckConfiguration], ScriptAnalyzer]


def severity_of(level: str) -> Severity:
    """Map a ShellCheck level to a ``Severity``.

    Total over all strings: unrecognized levels map to ``Severity.UNKNOWN``.
    """
    return _LEVEL_SEVERITY.get(level, Severity.UNKNOWN)


def translate(
    diagnostic: RawDiagnostic,
    index: PositionIndex,
    job_name: str,
    field_key: str,
    file: Path,
) -> CheckFinding:
    """Convert a blob-relative diagnostic into a document-level finding.

    Args:
        diagnostic: Diagnostic as reported for the blob.
        index: Position index of that same blob.
        job_name: Job the blob was assembled from.
        field_key: Script field the blob was assembled from.
        file: Pipeline document path.

    Raises:
        PositionIndexError: If the diagnostic's line is not in ``index``.
    """
    return CheckFinding(
        severity=severity_of(diagnostic.level),
        code=f"{CODE_PREFIX}{diagnostic.code}",
        line=index[diagnostic.line].line,
        message=f"[{job_name}:{field_key}:{diagnostic.line}] {diagnostic.message}",
        link=WIKI_URL_TEMPLATE.format(code=diagnostic.code),
        file=file,
    )


def _default_analyzer_factory(configuration: CheckConfiguration) -> ScriptAnalyzer:
    return ShellChecker.create(configuration.shellcheck_path)


@dataclass
class ScriptCheckReport:
    """Outcome of one ``ShellScriptCheck`` run.

    Attributes:
        findings: All findings, in completion order.
        jobs_total: Jobs with at least one script field.
        jobs_analyzed: Jobs whose every field was analyzed.
        failed_jobs: Names of jobs with at least one failed field.
    """

    findings: list[CheckFinding] = field(default_factory=list)
    jobs_total: int = 0
    jobs_analyzed: int = 0
    failed_jobs: list[str] = field(default_factory=list)


# Queue marker meaning "every job task has finished".
_END_OF_STREAM = None


class ShellScriptCheck(Check):
    """Runs ShellCheck over every job script and remaps its diagnostics.

    Usage::

        check = ShellScriptCheck()
        findings = check.run(CheckInput(ci_yaml, configuration))

    Args:
        analyzer_factory: Builds the analyzer from the configuration.
            Defaults to locating the ShellCheck binary.
        keys: Script fields to analyze, in analysis order.
    """

    def __init__(
        self,
        analyzer_factory: AnalyzerFactory | None = None,
        keys: Sequence[str] = SCRIPT_KEYS,
    ) -> None:
        self._analyzer_factory = analyzer_factory or _default_analyzer_factory
        self.keys = tuple(keys)

    @property
    def name(self) -> str:
        return "shellcheck"

    def run(self, check_input: CheckInput) -> list[CheckFinding]:
        return asyncio.run(self.run_report(check_input)).findings

    async def run_report(self, check_input: CheckInput) -> ScriptCheckReport:
        """Analyze all jobs concurrently and collect their findings.

        Raises:
            ShellcheckNotFoundError: If the analyzer cannot be created.
            PositionIndexError: If a diagnostic points outside its blob.
        """
        configuration = check_input.configuration
        analyzer = self._analyzer_factory(configuration)

        queue: asyncio.Queue[CheckFinding | None] = asyncio.Queue()
        jobs = list(extract_scripts(check_input.ci_yaml.root))
        tasks = [
            asyncio.create_task(self._analyze_job(job, analyzer, configuration, queue))
            for job in jobs
        ]

        async def close_when_done() -> list[bool | BaseException]:
            try:
                return await asyncio.gather(*tasks, return_exceptions=True)
            finally:
                queue.put_nowait(_END_OF_STREAM)

        closer = asyncio.create_task(close_when_done())

        report = ScriptCheckReport(jobs_total=len(jobs))
        while True:
            item = await queue.get()
            if item is _END_OF_STREAM:
                break
            report.findings.append(item)

        outcomes = await closer
        for job, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome:
                report.jobs_analyzed += 1
            else:
                report.failed_jobs.append(job.job_name)

        logger.info(
            "Analyzed %d of %d job(s), %d finding(s)",
            report.jobs_analyzed, report.jobs_total, len(report.findings),
        )
        return report

    async def _analyze_job(
        self,
        job: JobScripts,
        analyzer: ScriptAnalyzer,
        configuration: CheckConfiguration,
        queue: asyncio.Queue[CheckFinding | None],
    ) -> bool:
        """Analyze every requested field of one job.

        Findings are published only once every field has been analyzed, so
        a job either contributes all of its findings or none.

        Returns:
            True if all fields were analyzed, False if any failed.
        """
        findings: list[CheckFinding] = []
        for key, snippet in assemble(job, self.keys):
            try:
                diagnostics = await analyzer.analyze_snippet(
                    snippet.blob, configuration.shellcheck_flags
                )
            except AnalysisError as exc:
                logger.warning(
                    "Failed to analyze snippet in job %s (%s): %s",
                    job.job_name, key, exc,
                )
                return False

            findings.extend(
                translate(
                    diagnostic, snippet.index, job.job_name, key,
                    configuration.gitlab_ci_file,
                )
                for diagnostic in diagnostics
            )

        for finding in findings:
            await queue.put(finding)
        return True
