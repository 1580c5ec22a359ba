"""Command-line interface for civerify."""
