"""GitLab CI document model: loading, script location and snippet assembly.

Submodules
----------
- ``document``: ``CiYaml`` and the PyYAML-based loader.
- ``scripts``: ``LineNode``, ``JobScripts``, ``PositionIndex``, the script
  locator (``extract_scripts``) and the snippet assembler (``concat``,
  ``assemble``).

Public names are re-exported here::

    from civerify.ci_yaml import load_ci_yaml, extract_scripts, assemble
"""

from civerify.ci_yaml.document import CiYaml, load_ci_yaml, parse_ci_yaml
from civerify.ci_yaml.scripts import (
    SCRIPT_KEYS,
    JobScripts,
    LineNode,
    PositionIndex,
    Snippet,
    assemble,
    concat,
    extract_scripts,
)

__all__ = [
    "CiYaml",
    "JobScripts",
    "LineNode",
    "PositionIndex",
    "SCRIPT_KEYS",
    "Snippet",
    "assemble",
    "concat",
    "extract_scripts",
    "load_ci_yaml",
    "parse_ci_yaml",
]
