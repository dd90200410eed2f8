"""Command-line interface for aecflow."""

from aecflow.cli.main import cli

__all__ = ["cli"]
