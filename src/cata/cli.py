"""argparse wiring for command classes.

Each :class:`~cata.command.BaseCommand` subclass declares its own arguments
(``configure``) and children (``subcommands``). :func:`build_parser` turns
the root class into a parser tree, :func:`parse` instantiates the commands
selected on the command line and links them through ``subcommand`` so that
:func:`~cata.command.execute` can walk them, and :func:`main` runs the whole
invocation.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from cata.command import BaseCommand, Command, execute
from cata.logging_config import setup_logging
from cata.settings import RuntimeSettings, load_settings
from cata.telemetry.jsonl import JsonlHandler
from cata.telemetry.layer import Telemetry
from cata.telemetry.posthog import Posthog

logger = logging.getLogger(__name__)

_CLASS_KEY = "_cata_command_{depth}"


def _add_commands(parser: argparse.ArgumentParser, cls: type[BaseCommand], depth: int) -> None:
    cls.configure(parser)
    if not cls.subcommands:
        return
    sub = parser.add_subparsers(
        dest=f"_cata_name_{depth}",
        required=cls.subcommand_required,
        metavar="COMMAND",
    )
    for child in cls.subcommands:
        child_parser = sub.add_parser(
            child.command_name(),
            help=child.help,
            description=child.description or child.help,
        )
        child_parser.set_defaults(**{_CLASS_KEY.format(depth=depth + 1): child})
        _add_commands(child_parser, child, depth + 1)


def build_parser(root: type[BaseCommand], prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description=root.description or root.help,
    )
    parser.set_defaults(**{_CLASS_KEY.format(depth=0): root})
    _add_commands(parser, root, 0)
    return parser


def link(args: argparse.Namespace) -> BaseCommand:
    """Instantiate the command chain recorded in ``args``."""
    depth = 0
    head: BaseCommand | None = None
    current: BaseCommand | None = None
    while True:
        cls = getattr(args, _CLASS_KEY.format(depth=depth), None)
        if cls is None:
            break
        command = cls.from_args(args)
        if current is None:
            head = command
        else:
            current.subcommand = command
        current = command
        depth += 1
    if head is None:
        raise ValueError("namespace does not describe a command chain")
    return head


def parse(root: type[BaseCommand], argv: Sequence[str] | None = None, prog: str | None = None) -> BaseCommand:
    parser = build_parser(root, prog=prog)
    args = parser.parse_args(argv)
    return link(args)


def build_telemetry(settings: RuntimeSettings) -> Telemetry | None:
    """Build the telemetry layer requested by ``settings``, if any."""
    if not settings.telemetry_enabled:
        return None
    if settings.posthog_api_key:
        handler = Posthog(
            settings.posthog_api_key,
            name=settings.tool_name,
            version=settings.cli_version,
            host=settings.posthog_host,
        )
    else:
        handler = JsonlHandler(settings.telemetry_log, name=settings.tool_name, version=settings.cli_version)
    telemetry = Telemetry(handler, name=settings.tool_name)
    if settings.telemetry_activity:
        telemetry = telemetry.with_activity()
    if settings.telemetry_errors:
        telemetry = telemetry.with_errors()
    return telemetry


def run(command: Command) -> None:
    """Execute ``command`` on a fresh event loop.

    ``asyncio.run`` waits for the loop's default executor on shutdown, so
    telemetry deliveries scheduled during the run complete before it returns.
    """
    asyncio.run(execute(command))


def main(
    root: type[BaseCommand],
    argv: Sequence[str] | None = None,
    *,
    prog: str | None = None,
    settings: RuntimeSettings | None = None,
    telemetry: Telemetry | None = None,
) -> int:
    settings = settings or load_settings(prog or root.command_name())
    if telemetry is None:
        telemetry = build_telemetry(settings)
    setup_logging(settings.log_level, telemetry=telemetry)
    command = parse(root, argv, prog=prog)
    try:
        run(command)
    except Exception as exc:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


__all__ = ["build_parser", "build_telemetry", "link", "main", "parse", "run"]
