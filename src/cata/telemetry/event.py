"""Events, metadata and the backend handler protocol."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any, Iterator, Mapping, Protocol, Tuple

from jsonschema import Draft202012Validator

_SCHEMA_RESOURCE = "event.schema.json"
_SCHEMA_PACKAGE = "cata.resources"

SPAN_LEVEL = "info"


@dataclass(frozen=True)
class Metadata:
    """Descriptive data about a single span or log record."""

    name: str
    level: str
    module: str
    file: str | None = None
    line: int | None = None

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "Metadata":
        return cls(
            name=f"event {record.pathname}:{record.lineno}",
            level=record.levelname.lower(),
            module=record.name,
            file=record.pathname,
            line=record.lineno,
        )

    @classmethod
    def from_span(cls, span: Any) -> "Metadata":
        scope = span.instrumentation_scope
        return cls(
            name=span.name,
            level=SPAN_LEVEL,
            module=scope.name if scope is not None else "",
        )


@dataclass(frozen=True)
class Event:
    """An event constructed by a handler, ready to be captured."""

    name: str
    user_id: str
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "user_id": self.user_id,
            "properties": dict(self.properties),
        }


class Handler(Protocol):  # pragma: no cover
    """Capability that turns tracing data into an :class:`Event` and delivers it.

    ``on_span`` is called for new spans, ``on_event`` for log records; both
    only see records that carry the ``activity`` or ``error`` field.
    ``capture`` is called from a worker thread, so implementations must be
    safe to share across threads. It raises on failure and never retries.
    """

    def on_span(self, user_id: str, metadata: Metadata, values: Mapping[str, Any]) -> Event:
        ...

    def on_event(self, user_id: str, record: logging.LogRecord) -> Event:
        ...

    def capture(self, event: Event) -> None:
        ...


@lru_cache(maxsize=1)
def _load_schema() -> dict[str, Any]:
    resource = resources.files(_SCHEMA_PACKAGE) / _SCHEMA_RESOURCE
    with resource.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    return Draft202012Validator(_load_schema())


def iter_event_errors(event: Event) -> Iterator[Tuple[str, str]]:
    """Yield (path, message) pairs for schema issues in the event."""
    for error in _validator().iter_errors(event.to_dict()):
        path = ".".join(str(item) for item in error.absolute_path)
        yield path, error.message


def validate_event(event: Event) -> None:
    errors = list(iter_event_errors(event))
    if errors:
        details = "; ".join(f"{path or '<root>'}: {message}" for path, message in errors)
        raise ValueError(f"Invalid telemetry event {event.name!r}: {details}")


__all__ = ["Event", "Handler", "Metadata", "iter_event_errors", "validate_event"]
