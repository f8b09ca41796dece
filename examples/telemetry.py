"""Report command activity and errors.

Events go to PostHog when TELEMETRY_POSTHOG_API_KEY is set, otherwise to
~/.telemetry/logs/telemetry.jsonl:

    TELEMETRY_TELEMETRY=all python examples/telemetry.py work --fail
"""

from __future__ import annotations

import argparse
import logging
import sys

from cata import BaseCommand
from cata.cli import main
from cata.telemetry import instrument

logger = logging.getLogger(__name__)


class Work(BaseCommand):
    help = "Do some work, optionally failing"

    @classmethod
    def configure(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--fail", action="store_true")

    @instrument("telemetry::work", err=True)
    async def run(self) -> None:
        logger.info("working", extra={"activity": "telemetry::work::step", "step": 1})
        if self.args.fail:
            raise RuntimeError("work failed")


class Root(BaseCommand):
    subcommands = (Work,)


if __name__ == "__main__":
    sys.exit(main(Root, prog="telemetry"))
