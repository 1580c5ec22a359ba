"""Tests for run configuration helpers."""

from __future__ import annotations

from pathlib import Path

from civerify.configuration import CheckConfiguration, split_flags


class TestSplitFlags:
    """Tests for flattening CLI flag values."""

    def test_comma_and_space_separated(self) -> None:
        assert split_flags(("-e SC2086,--severity=warning", "-x")) == (
            "-e", "SC2086", "--severity=warning", "-x",
        )

    def test_empty_values_dropped(self) -> None:
        assert split_flags(("", ",", " ")) == ()


class TestCheckConfiguration:
    """Tests for configuration defaults."""

    def test_defaults(self) -> None:
        config = CheckConfiguration()
        assert config.gitlab_ci_file == Path(".gitlab-ci.yml")
        assert config.shellcheck_flags == ()

    def test_no_executable_by_default(self) -> None:
        """Without an explicit path, ShellCheck is looked up on PATH."""
        assert CheckConfiguration().shellcheck_path is None
