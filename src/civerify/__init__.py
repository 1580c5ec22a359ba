"""civerify: ShellCheck analysis for the scripts embedded in GitLab CI pipelines."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
