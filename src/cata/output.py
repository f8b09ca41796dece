"""Structured output for commands.

Users of a CLI choose between a table (``pretty``, the default), JSON and
YAML. Add the option on a root command and every subcommand can print
through it::

    class Root(BaseCommand):
        @classmethod
        def configure(cls, parser):
            Format.add_argument(parser)

        async def run(self):
            self.args.output.list(things)

Items are dataclasses or mappings. In tables every field is rendered with
``str()``; ``None`` renders as an empty cell and a dataclass field can pick
its own renderer with ``field(metadata={"display": display})``.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from enum import Enum
from typing import IO, Any, Callable, Iterable, Mapping, Sequence

import yaml
from rich import box
from rich.console import Console
from rich.table import Table


def display(values: Iterable[Any]) -> str:
    """Render a collection as one sorted, newline separated table cell."""
    return "\n".join(sorted(str(value) for value in values))


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _columns(item: Any) -> list[tuple[str, Any, Callable[[Any], str]]]:
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return [
            (fld.name, getattr(item, fld.name), fld.metadata.get("display", _cell))
            for fld in dataclasses.fields(item)
        ]
    if isinstance(item, Mapping):
        return [(str(key), value, _cell) for key, value in item.items()]
    raise TypeError(f"Cannot render {type(item).__name__} as a table row")


def _payload(item: Any) -> Any:
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    if isinstance(item, Mapping):
        return dict(item)
    if hasattr(item, "to_dict"):
        return item.to_dict()
    return item


class Format(str, Enum):
    PRETTY = "pretty"
    JSON = "json"
    YAML = "yaml"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def add_argument(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-o",
            "--output",
            type=cls,
            choices=list(cls),
            default=cls.PRETTY,
            help="Output format (default: pretty)",
        )

    def list(self, data: Sequence[Any], *, stream: IO[str] | None = None) -> None:
        """Print a list of items."""
        out = stream or sys.stdout
        if self is Format.PRETTY:
            _print_table(data, out)
        elif self is Format.JSON:
            print(json.dumps([_payload(item) for item in data], ensure_ascii=False, indent=2), file=out)
        else:
            print(yaml.safe_dump([_payload(item) for item in data], sort_keys=False, allow_unicode=True), file=out, end="")

    def item(self, data: Any, *, stream: IO[str] | None = None) -> None:
        """Print a single item; tables still get a header row."""
        out = stream or sys.stdout
        if self is Format.PRETTY:
            self.list([data], stream=out)
        elif self is Format.JSON:
            print(json.dumps(_payload(data), ensure_ascii=False, indent=2), file=out)
        else:
            print(yaml.safe_dump(_payload(data), sort_keys=False, allow_unicode=True), file=out, end="")


def _print_table(data: Sequence[Any], out: IO[str]) -> None:
    table = Table(box=box.ASCII, show_header=True, header_style=None)
    rows: list[list[str]] = []
    for index, item in enumerate(data):
        columns = _columns(item)
        if index == 0:
            for name, _, _ in columns:
                table.add_column(name, overflow="fold")
        rows.append([render(value) for _, value, render in columns])
    for row in rows:
        table.add_row(*row)
    console = Console(file=out, highlight=False, color_system=None, soft_wrap=False)
    console.print(table)


__all__ = ["Format", "display"]
