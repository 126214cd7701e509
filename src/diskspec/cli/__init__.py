"""
diskspec CLI Module.

Provides the command-line interface to the partitioning language.
"""

from diskspec.cli.main import cli, main

__all__ = ["main", "cli"]
