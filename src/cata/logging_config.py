"""Logging setup for cata based tools."""

from __future__ import annotations

import logging
import sys
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from cata.telemetry.layer import Telemetry

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        return logging.WARNING
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: str | int | None = None,
    *,
    telemetry: "Telemetry | None" = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Configure the root logger for a command-line invocation.

    The console handler filters by ``level``. Telemetry does its own opt-in
    filtering, so when it is installed the root logger is opened up to DEBUG
    and console verbosity no longer decides what reaches it. A telemetry
    layer installed by an earlier call is closed and replaced.
    """
    root = logging.getLogger()
    console_level = _resolve_level(level)

    for handler in list(root.handlers):
        if getattr(handler, "_cata_console", False):
            root.removeHandler(handler)
        elif getattr(handler, "_cata_telemetry", False) and handler is not telemetry:
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    console._cata_console = True  # type: ignore[attr-defined]
    root.addHandler(console)

    if telemetry is not None:
        telemetry.install(logger=root)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(console_level)
    return root
