"""A root command delegating to a child command.

    python examples/basic.py child
"""

from __future__ import annotations

import sys

from cata import BaseCommand
from cata.cli import main


class Child(BaseCommand):
    help = "Say hello"

    async def run(self) -> None:
        print("Hello")


class Root(BaseCommand):
    subcommands = (Child,)

    def pre_run(self) -> None:
        print("root: pre_run")

    def post_run(self) -> None:
        print("root: post_run")


if __name__ == "__main__":
    sys.exit(main(Root, prog="basic"))
