"""Script location and snippet assembly for GitLab CI jobs.

GitLab CI jobs carry shell code in up to three fields (``before_script``,
``script``, ``after_script``), each either a single string or a list of
command strings, any of which may be a multi-line block scalar. ShellCheck
only understands a whole script, so the lines of one field are joined into a
single blob before analysis. This module keeps the bookkeeping that makes
the results usable afterwards:

- ``extract_scripts`` walks the composed document and yields one
  ``JobScripts`` per job, splitting every scalar into ``LineNode`` objects
  that remember their true source line.
- ``concat`` joins a field's lines into a blob and builds the
  ``PositionIndex`` mapping blob line *i* (1-based) back to its ``LineNode``.
- ``assemble`` produces one blob per requested field of a job.

Line accounting
---------------
Block scalars (``|`` and ``>``) start their content on the line after the
indicator. Plain and quoted scalars start on their own line; escaped
newlines inside a quoted scalar stay on that line. Literal blocks map value
lines to source lines one to one. Folded blocks and multi-line plain or
quoted scalars are matched back against the source text, because folding
merges lines and collapses blank ones. One trailing newline is dropped,
blank lines in the middle are kept so the blob and the index stay aligned
line for line.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

import yaml

from civerify.exceptions import PositionIndexError

# Script-bearing job fields, in execution order.
SCRIPT_KEYS: tuple[str, ...] = ("before_script", "script", "after_script")

# Top-level keys that configure the pipeline rather than define a job.
# ``default`` is deliberately absent: it may hold before/after scripts.
_GLOBAL_KEYWORDS: frozenset[str] = frozenset({
    "after_script",
    "before_script",
    "cache",
    "image",
    "include",
    "services",
    "stages",
    "types",
    "variables",
    "workflow",
})

_MERGE_TAG = "tag:yaml.org,2002:merge"
_NULL_TAG = "tag:yaml.org,2002:null"
_SEQ_TAG = "tag:yaml.org,2002:seq"
_BLOCK_STYLES = ("|", ">")


@dataclass(frozen=True)
class LineNode:
    """One line of script text and the 1-based source line it came from."""

    text: str
    line: int

    def __post_init__(self) -> None:
        if "\n" in self.text:
            raise ValueError(f"LineNode text must be a single line: {self.text!r}")
        if self.line < 1:
            raise ValueError(f"Source line numbers are 1-based, got {self.line}")


@dataclass(frozen=True)
class JobScripts:
    """The script fields of one job.

    Attributes:
        job_name: Job key as written in the document.
        script_parts: Field key to its ordered lines. Only non-empty fields
            are present, in ``SCRIPT_KEYS`` order.
    """

    job_name: str
    script_parts: dict[str, tuple[LineNode, ...]]


class PositionIndex:
    """1-based mapping from blob line numbers to originating ``LineNode``.

    ``index[1]`` is the first line of the blob. Out-of-range lookups raise
    ``PositionIndexError`` instead of wrapping or clamping.
    """

    __slots__ = ("_lines",)

    def __init__(self, lines: Iterable[LineNode]) -> None:
        self._lines: tuple[LineNode, ...] = tuple(lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[LineNode]:
        return iter(self._lines)

    def __getitem__(self, blob_line: int) -> LineNode:
        if not 1 <= blob_line <= len(self._lines):
            raise PositionIndexError(
                f"Blob line {blob_line} outside position index of "
                f"{len(self._lines)} line(s)"
            )
        return self._lines[blob_line - 1]

    def source_line(self, blob_line: int) -> int:
        """Return the document line number for a 1-based blob line."""
        return self[blob_line].line

    def __repr__(self) -> str:
        return f"PositionIndex({len(self._lines)} lines)"


@dataclass(frozen=True)
class Snippet:
    """An assembled blob and the index describing its lines."""

    blob: bytes
    index: PositionIndex

    @property
    def text(self) -> str:
        return self.blob.decode("utf-8")


# ---------------------------------------------------------------------------
# Script Locator
# ---------------------------------------------------------------------------


def extract_scripts(root: yaml.Node | None) -> Iterator[JobScripts]:
    """Yield the script fields of every job in document order.

    Jobs whose script fields are all absent or empty are skipped, as are
    top-level global keywords and entries that are not mappings.

    Args:
        root: Root node of a composed pipeline document.

    Yields:
        One ``JobScripts`` per job with at least one non-empty field.
    """
    if not isinstance(root, yaml.MappingNode):
        return
    for key_node, value_node in root.value:
        if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == _MERGE_TAG:
            continue
        job_name = key_node.value
        if job_name in _GLOBAL_KEYWORDS or not isinstance(value_node, yaml.MappingNode):
            continue

        fields = _job_fields(value_node)
        parts: dict[str, tuple[LineNode, ...]] = {}
        for key in SCRIPT_KEYS:
            if key not in fields:
                continue
            lines = tuple(_field_lines(fields[key], ()))
            if lines:
                parts[key] = lines

        if parts:
            yield JobScripts(job_name=job_name, script_parts=parts)


def _job_fields(mapping: yaml.MappingNode) -> dict[str, yaml.Node]:
    """Resolve a job mapping's keys, honouring ``<<`` merge keys.

    Explicit keys win over merged ones; among merged mappings the first
    listed wins, as in YAML 1.1.
    """
    merged: dict[str, yaml.Node] = {}
    explicit: dict[str, yaml.Node] = {}
    for key_node, value_node in mapping.value:
        if key_node.tag == _MERGE_TAG:
            sources = (
                value_node.value
                if isinstance(value_node, yaml.SequenceNode)
                else [value_node]
            )
            for source in sources:
                if isinstance(source, yaml.MappingNode):
                    for key, node in _job_fields(source).items():
                        merged.setdefault(key, node)
        elif isinstance(key_node, yaml.ScalarNode):
            explicit[key_node.value] = value_node
    return {**merged, **explicit}


def _field_lines(node: yaml.Node, ancestors: tuple[int, ...]) -> list[LineNode]:
    """Flatten a script field value into lines.

    Sequences nested through aliases are flattened in order. Tagged
    sequences such as ``!reference [job, script]`` point at other parts of
    the pipeline and are skipped.
    """
    if isinstance(node, yaml.ScalarNode):
        if node.tag == _NULL_TAG:
            return []
        return scalar_lines(node)
    if isinstance(node, yaml.SequenceNode):
        if node.tag != _SEQ_TAG or id(node) in ancestors:
            return []
        lines: list[LineNode] = []
        for item in node.value:
            lines.extend(_field_lines(item, ancestors + (id(node),)))
        return lines
    return []


def scalar_lines(node: yaml.ScalarNode) -> list[LineNode]:
    """Split a scalar node into ``LineNode`` objects with source lines."""
    value = node.value
    if value.endswith("\n"):
        value = value[:-1]
    if not value:
        return []

    texts = value.split("\n")
    if node.style == "|" or node.start_mark.buffer is None:
        numbers = _offset_lines(node, len(texts))
    else:
        numbers = _matched_lines(node, texts)
    return [
        LineNode(text=text, line=number + 1)
        for text, number in zip(texts, numbers)
    ]


def _offset_lines(node: yaml.ScalarNode, count: int) -> list[int]:
    """0-based source lines for a value whose lines map one to one.

    Exact for literal blocks; elsewhere lines are clamped to the scalar.
    """
    first = node.start_mark.line + (1 if node.style in _BLOCK_STYLES else 0)
    last = max(first, node.end_mark.line)
    return [min(first + offset, last) for offset in range(count)]


def _matched_lines(node: yaml.ScalarNode, texts: list[str]) -> list[int]:
    """0-based source lines for a value YAML has folded.

    Folding joins source lines with spaces and turns runs of blank lines into
    fewer newlines, so each value line is matched in order against the
    stripped source lines between the scalar's marks. A value line that
    cannot be matched, such as one produced by an escape in a quoted scalar,
    keeps the line of the previous match.
    """
    start, end = node.start_mark, node.end_mark
    segment = start.buffer[start.pointer:end.pointer].split("\n")
    source = [(start.line + offset, part.strip()) for offset, part in enumerate(segment)]
    if node.style == ">":
        # The header line holds only the indicator.
        source = source[1:]
    elif source:
        line, part = source[0]
        # Anchor and tag properties precede the value.
        while part[:1] in ("&", "!"):
            part = part.partition(" ")[2].lstrip()
        if node.style in ('"', "'"):
            part = part[1:]
        source[0] = (line, part)
        if node.style in ('"', "'"):
            line, part = source[-1]
            if part.endswith(node.style):
                source[-1] = (line, part[:-1])

    numbers: list[int] = []
    cursor = 0
    current = source[0][0] if source else start.line
    for text in texts:
        remaining = text.strip()
        if not remaining:
            if cursor < len(source) and not source[cursor][1]:
                current = source[cursor][0]
                cursor += 1
            numbers.append(current)
            continue

        while cursor < len(source) and not source[cursor][1]:
            cursor += 1
        matched = False
        while cursor < len(source) and remaining:
            line, part = source[cursor]
            if not part or not remaining.startswith(part):
                break
            if not matched:
                current, matched = line, True
            remaining = remaining[len(part):].lstrip(" ")
            cursor += 1
        numbers.append(current)
    return numbers


# ---------------------------------------------------------------------------
# Snippet Assembler
# ---------------------------------------------------------------------------


def concat(lines: Sequence[LineNode]) -> Snippet:
    """Join lines into a newline-terminated UTF-8 blob with its index.

    Line *k* of the blob is ``lines[k - 1].text`` and ``index[k]`` is
    ``lines[k - 1]``, for every *k* from 1 to ``len(lines)``.
    """
    text = "".join(f"{line.text}\n" for line in lines)
    return Snippet(blob=text.encode("utf-8"), index=PositionIndex(lines))


def assemble(
    job: JobScripts, keys: Iterable[str] = SCRIPT_KEYS
) -> Iterator[tuple[str, Snippet]]:
    """Assemble one snippet per requested field of ``job``.

    Fields are produced in the order of ``keys``; keys the job lacks, or
    whose field is empty, produce nothing. Fields are never merged, so the
    returned key always names the field the snippet was built from.
    """
    for key in keys:
        lines = job.script_parts.get(key, ())
        if lines:
            yield key, concat(lines)
