"""Loader for GitLab CI pipeline definitions.

The document is *composed*, not constructed: PyYAML's composer returns the
node graph with a ``start_mark``/``end_mark`` on every node, which is what
lets findings point back at real source lines. Composing also means custom
tags such as ``!reference`` need no constructor; they simply stay tagged
nodes.

A pipeline may start with a ``spec:`` header document (pipeline inputs)
separated by ``---``. The header is skipped and the document after it is the
pipeline. Line numbers still count from the top of the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from civerify.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CiYaml:
    """A pipeline definition held in memory.

    Attributes:
        path: Where the document was read from (used to tag findings).
        content: Raw document text.
        root: Root node of the composed document, or None for an empty file.
    """

    path: Path
    content: str
    root: yaml.Node | None


def parse_ci_yaml(content: str, path: Path | str = Path(".gitlab-ci.yml")) -> CiYaml:
    """Compose a pipeline definition from text.

    Args:
        content: YAML source text.
        path: Path recorded on the result. Nothing is read from it.

    Returns:
        A ``CiYaml`` holding the composed root node.

    Raises:
        ParseError: If the text is not well-formed YAML, or holds more than
            one document besides an optional ``spec:`` header.
    """
    try:
        documents = list(yaml.compose_all(content, Loader=yaml.SafeLoader))
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid YAML in {path}: {exc}") from exc

    if len(documents) > 1 and _is_header(documents[0]):
        logger.debug("Skipping spec header of %s", path)
        documents = documents[1:]
    if len(documents) > 1:
        raise ParseError(
            f"Invalid YAML in {path}: expected one pipeline document, "
            f"found {len(documents)}"
        )
    root = documents[0] if documents else None
    return CiYaml(path=Path(path), content=content, root=root)


def _is_header(node: yaml.Node | None) -> bool:
    """Whether ``node`` is a ``spec:`` header document (pipeline inputs)."""
    if not isinstance(node, yaml.MappingNode):
        return False
    keys = [key.value for key, _ in node.value if isinstance(key, yaml.ScalarNode)]
    return keys == ["spec"]


def load_ci_yaml(path: Path | str) -> CiYaml:
    """Read and compose the pipeline definition at ``path``.

    Raises:
        ParseError: If the file cannot be read or is not valid YAML.
    """
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Cannot read {file_path}: {exc}") from exc
    logger.debug("Loaded %s (%d bytes)", file_path, len(content))
    return parse_ci_yaml(content, file_path)
