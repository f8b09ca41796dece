"""Print structured data as a table, JSON or YAML.

    python examples/output.py --output yaml
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field

from cata import BaseCommand
from cata.cli import main
from cata.output import Format, display


@dataclass
class Thing:
    single: str
    multiple: list[str] = field(default_factory=list, metadata={"display": display})


class Root(BaseCommand):
    @classmethod
    def configure(cls, parser: argparse.ArgumentParser) -> None:
        Format.add_argument(parser)

    async def run(self) -> None:
        things = [
            Thing("single", ["one", "two"]),
            Thing("another", ["three", "four"]),
        ]
        self.args.output.list(things)
        self.args.output.item(things[0])


if __name__ == "__main__":
    sys.exit(main(Root, prog="output"))
