"""CLI command modules.

This package contains all CLI subcommand implementations.
Each module exports a Typer app that is registered in cli.py.
"""

from __future__ import annotations
