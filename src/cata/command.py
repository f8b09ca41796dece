"""Lifecycle hooks for arbitrarily deep chains of argparse commands.

A command is a single unit of work. Commands cooperate in one lifecycle by
exposing three hooks and an optional successor:

* ``pre_run`` performs setup before the command runs;
* ``run`` is the body of the command and may be a coroutine;
* ``post_run`` performs cleanup after the command and everything beneath it
  succeeded;
* ``next`` returns the subcommand selected on the command line, if any.

:func:`execute` starts at the root command and walks the chain. ``pre_run``
and ``run`` fire parent first; ``post_run`` fires child first on the way back
up. The first exception raised by any hook aborts the walk and reaches the
caller untouched, and no pending ``post_run`` is called.
"""

from __future__ import annotations

import argparse
import inspect
import re
from typing import Any, ClassVar, Optional, Protocol, Sequence, runtime_checkable


class CommandChainError(RuntimeError):
    pass


@runtime_checkable
class Command(Protocol):
    def pre_run(self) -> None:
        ...

    def run(self) -> Any:
        ...

    def post_run(self) -> None:
        ...

    def next(self) -> Optional["Command"]:
        ...


async def execute(cmd: Command) -> None:
    """Execute ``cmd`` and every command chained beneath it."""
    cmd.pre_run()

    result = cmd.run()
    if inspect.isawaitable(result):
        await result

    successor = cmd.next()
    if successor is not None:
        if successor is cmd:
            raise CommandChainError(f"{type(cmd).__name__}.next() returned the command itself")
        await execute(successor)

    cmd.post_run()


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class BaseCommand:
    """Default no-op hooks plus the declarations used by :mod:`cata.cli`.

    Parent commands usually implement ``pre_run``/``post_run`` and list their
    children in ``subcommands``; leaf commands implement ``run``.
    """

    name: ClassVar[Optional[str]] = None
    help: ClassVar[Optional[str]] = None
    description: ClassVar[Optional[str]] = None
    subcommands: ClassVar[Sequence[type["BaseCommand"]]] = ()
    subcommand_required: ClassVar[bool] = True

    def __init__(self, args: argparse.Namespace | None = None) -> None:
        self.args = args if args is not None else argparse.Namespace()
        self.subcommand: Optional[Command] = None

    @classmethod
    def command_name(cls) -> str:
        if cls.name:
            return cls.name
        return _CAMEL_BOUNDARY.sub("-", cls.__name__).lower()

    @classmethod
    def configure(cls, parser: argparse.ArgumentParser) -> None:
        """Add this command's arguments to ``parser``."""

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "BaseCommand":
        return cls(args)

    def pre_run(self) -> None:
        return None

    async def run(self) -> None:
        return None

    def post_run(self) -> None:
        return None

    def next(self) -> Optional[Command]:
        return self.subcommand


__all__ = ["BaseCommand", "Command", "CommandChainError", "execute"]
