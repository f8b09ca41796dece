"""Local JSON-lines telemetry backend."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any

from cata import __version__
from cata.telemetry.event import Event, validate_event
from cata.telemetry.visitor import BaseHandler


class JsonlHandler(BaseHandler):
    """Append captured events to a JSON-lines file.

    Useful when no remote backend is configured, and for inspecting what a
    tool would report.
    """

    def __init__(self, path: Path, *, name: str = "cata", version: str = __version__) -> None:
        super().__init__(name=name, version=version)
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def capture(self, event: Event) -> None:
        validate_event(event)
        record: dict[str, Any] = {"ts": time.time(), **event.to_dict()}
        line = json.dumps(record, ensure_ascii=False) + "\n"
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line)


__all__ = ["JsonlHandler"]
