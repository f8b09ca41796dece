"""Field extraction shared by the bundled telemetry backends.

Every event carries a standard set of properties:

- ``name``: the span name, or ``event <file>:<line>`` for log records.
- ``$lib``: always ``telemetry/python``.
- ``level``: the lower-cased level of the span/record.
- ``module``: the logger name or instrumentation scope.
- ``version``: the version of the tool reporting the event.
- ``$screen_name``: the value of the ``activity`` field, when present.

Any other field attached to the span or record is added on top. Ad hoc fields
never replace the standard identity keys above, apart from ``$screen_name``.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

from cata import __version__
from cata.telemetry.event import Event, Metadata

ACTIVITY_FIELD = "activity"
ERROR_FIELD = "error"
LIB = "telemetry/python"

STANDARD_KEYS = frozenset({"name", "$lib", "level", "module", "version"})

_SKIPPED_FIELDS = {"self"}
_RECORD_ATTRIBUTES = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}
_SCALARS = (bool, int, float, str)


def _convert(value: Any) -> Any:
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, BaseException):
        return str(value)
    if isinstance(value, (list, tuple)) and all(item is None or isinstance(item, _SCALARS) for item in value):
        return list(value)
    return repr(value)


class Visitor:
    """Collects the fields of one span or record as JSON values."""

    def __init__(self) -> None:
        self.fields: dict[str, Any] = {}

    def record(self, name: str, value: Any) -> None:
        if name in _SKIPPED_FIELDS:
            return
        self.fields[name] = _convert(value)

    def visit_values(self, values: Mapping[str, Any]) -> "Visitor":
        for name, value in values.items():
            self.record(name, value)
        return self

    def visit_record(self, record: logging.LogRecord) -> "Visitor":
        for name, value in record.__dict__.items():
            if name in _RECORD_ATTRIBUTES:
                continue
            self.record(name, value)
        self.record("message", record.getMessage())
        return self

    def merge(self, props: dict[str, Any]) -> None:
        for name, value in self.fields.items():
            if name in STANDARD_KEYS:
                continue
            props[name] = value


def properties(metadata: Metadata, visitor: Visitor, version: str) -> dict[str, Any]:
    props: dict[str, Any] = {
        "name": metadata.name,
        "$lib": LIB,
        "level": metadata.level,
        "module": metadata.module,
        "version": version,
    }
    if ACTIVITY_FIELD in visitor.fields:
        props["$screen_name"] = visitor.fields[ACTIVITY_FIELD]
    visitor.merge(props)
    return props


class BaseHandler:
    """Builds events for the bundled backends; subclasses implement ``capture``.

    Spans and activity records are named ``<name>::activity``. Records that
    carry the ``error`` field are named ``<name>::error``.
    """

    def __init__(self, name: str = "cata", version: str = __version__) -> None:
        self._version = version
        self._on_span = f"{name}::activity"
        self._on_event = f"{name}::error"

    @property
    def names(self) -> tuple[str, str]:
        return self._on_span, self._on_event

    def with_names(self, on_span: str, on_event: str) -> "BaseHandler":
        """Return a copy of this handler using the given event names."""
        clone = copy.copy(self)
        clone._on_span = on_span
        clone._on_event = on_event
        return clone

    def on_span(self, user_id: str, metadata: Metadata, values: Mapping[str, Any]) -> Event:
        visitor = Visitor().visit_values(values)
        return Event(
            name=self._on_span,
            user_id=user_id,
            properties=properties(metadata, visitor, self._version),
        )

    def on_event(self, user_id: str, record: logging.LogRecord) -> Event:
        visitor = Visitor().visit_record(record)
        name = self._on_event if ERROR_FIELD in visitor.fields else self._on_span
        return Event(
            name=name,
            user_id=user_id,
            properties=properties(Metadata.from_record(record), visitor, self._version),
        )

    def capture(self, event: Event) -> None:  # pragma: no cover - abstract
        raise NotImplementedError


__all__ = [
    "ACTIVITY_FIELD",
    "BaseHandler",
    "ERROR_FIELD",
    "LIB",
    "STANDARD_KEYS",
    "Visitor",
    "properties",
]
