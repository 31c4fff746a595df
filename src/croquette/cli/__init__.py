"""Croquette CLI package."""

from .app import console_main, main
from .commands import CLIContext, register_subcommands

__all__ = ["CLIContext", "console_main", "main", "register_subcommands"]
