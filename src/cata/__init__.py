"""Lifecycle hooks and opt-in telemetry for tree-shaped command-line tools."""

from __future__ import annotations

__version__ = "0.1.0"

from cata.command import BaseCommand, Command, CommandChainError, execute

__all__ = ["BaseCommand", "Command", "CommandChainError", "execute", "__version__"]
