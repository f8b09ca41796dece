"""Read a JSON or YAML file given on the command line.

    python examples/file.py thing.yaml
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field

from cata import BaseCommand
from cata.cli import main
from cata.file import File


@dataclass
class Thing:
    single: str
    multiple: list[str] = field(default_factory=list)


class Root(BaseCommand):
    @classmethod
    def configure(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("input", type=File(Thing), help="Path to a .json or .yaml file")

    async def run(self) -> None:
        print(f"input: {self.args.input!r}")


if __name__ == "__main__":
    sys.exit(main(Root, prog="file"))
